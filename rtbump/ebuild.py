"""
Ebuild creation, commit and build smoke test in the Gentoo overlay.
"""

import shutil
from pathlib import Path
from typing import List, Tuple

from rtbump.common import logger, run_checked, which
from rtbump.config import BumpConfig
from rtbump.errors import RepositoryError
from rtbump.models import CommitTool


class EbuildManager:
    """Create, commit, merge and unmerge rt-sources ebuilds."""

    def __init__(self, config: BumpConfig):
        self.config = config

    @property
    def package_dir(self) -> Path:
        return self.config.rt_sources_dir

    def ensure_package_dir(self) -> Path:
        """Return the package directory, failing if it is missing."""
        if not self.package_dir.is_dir():
            raise RepositoryError(
                f"Failed to change to {self.package_dir}: no such directory",
                step="bump_branch",
            )
        return self.package_dir

    def exists(self, ebuild: str) -> bool:
        """Check if an ebuild is already present in the package directory."""
        return (self.package_dir / ebuild).exists()

    def required_tools(self) -> List[str]:
        """Executables needed for the mutating steps."""
        tools = [self.config.commit_tool.value]
        if self.config.build:
            tools.extend(["sudo", "ebuild"])
        return tools

    def verify_tools(self) -> Tuple[bool, List[str]]:
        """
        Verify the commit and build tools are available.

        Returns:
            Tuple of (all_present, missing_tools)
        """
        missing = [tool for tool in self.required_tools() if not which(tool)]
        if missing:
            logger.error(f"Missing tools: {', '.join(missing)}")
            return False, missing
        logger.debug("Commit and build tools verified")
        return True, []

    def create_from_template(self, template: str, ebuild: str) -> Path:
        """
        Copy the template ebuild of a line to the new ebuild name.

        Args:
            template: Last known-good ebuild of the line
            ebuild: New ebuild file name

        Returns:
            Path to the new ebuild
        """
        src = self.package_dir / template
        dest = self.package_dir / ebuild
        if dest.exists():
            raise RepositoryError(f"Copy failed: {dest} already exists", step="create_ebuild")
        try:
            shutil.copy2(src, dest)
        except OSError as e:
            raise RepositoryError(f"Copy failed: {e}", step="create_ebuild")
        return dest

    def commit_commands(self, message: str) -> List[List[str]]:
        """Commands that generate the Manifest and commit the staged ebuild."""
        if self.config.commit_tool == CommitTool.PKGDEV:
            return [
                ["pkgdev", "manifest"],
                ["pkgdev", "commit", "-m", message],
            ]
        return [["repoman", "ci", "-m", message]]

    def commit(self, message: str) -> None:
        for cmd in self.commit_commands(message):
            run_checked(cmd, cwd=self.package_dir, verbose=self.config.verbose, step="commit_ebuild")

    def merge(self, ebuild: str) -> None:
        """Build and install the ebuild."""
        run_checked(
            ["sudo", "ebuild", ebuild, "clean", "merge"],
            cwd=self.package_dir,
            timeout=self.config.build_timeout,
            verbose=self.config.verbose,
            step="merge_ebuild",
        )

    def unmerge(self, ebuild: str) -> None:
        """Remove the package installed by merge()."""
        run_checked(
            ["sudo", "ebuild", ebuild, "unmerge"],
            cwd=self.package_dir,
            timeout=self.config.build_timeout,
            verbose=self.config.verbose,
            step="unmerge_ebuild",
        )
