"""
Main rt-sources bump workflow orchestration.
"""

from typing import Optional

from rtbump.common import console, logger
from rtbump.config import BumpConfig, RtBranch
from rtbump.ebuild import EbuildManager
from rtbump.errors import ConfigurationError, RtBumpError
from rtbump.models import BranchResult, BumpStatus, RunSummary
from rtbump.repo import GentooRepo, LinuxRepo
from rtbump.versions import commit_message, rt_version_to_ebuild


class BumpWorkflow:
    """
    Bump the rt-sources ebuilds of every tracked kernel line.

    The run is a single forward pass. The first error stops it: lines
    committed before that stay committed on the work branch, the failing
    line is marked aborted and later lines stay pending. ``summary`` is
    kept up to date so the caller can report it either way.
    """

    def __init__(
        self,
        config: BumpConfig,
        linux: Optional[LinuxRepo] = None,
        gentoo: Optional[GentooRepo] = None,
        ebuilds: Optional[EbuildManager] = None,
    ):
        self.config = config
        self.linux = linux or LinuxRepo(config.linux_dir, verbose=config.verbose)
        self.gentoo = gentoo or GentooRepo(config.gentoo_dir, verbose=config.verbose)
        self.ebuilds = ebuilds or EbuildManager(config)
        self.summary = RunSummary(
            branch=config.branch,
            dry_run=config.dry_run,
            results=[BranchResult(kernel_version=b.version) for b in config.rt_branches],
        )

    def run(self) -> RunSummary:
        """
        Run the complete bump workflow.

        Returns:
            RunSummary with one result per tracked line

        Raises:
            RtBumpError: on the first failure
        """
        config = self.config

        logger.info("=== rt-sources bump ===")
        logger.info(f"Kernel lines: {', '.join(b.version for b in config.rt_branches)}")
        logger.info(f"Dry run: {config.dry_run}")

        self.linux.update()
        self.gentoo.update(config.main_branch, config.upstream_ref)

        if not config.dry_run:
            tools_ok, missing = self.ebuilds.verify_tools()
            if not tools_ok:
                raise ConfigurationError(
                    f"Missing tools: {', '.join(missing)}", step="verify_tools"
                )

        self.create_branch()

        for rt_branch in config.rt_branches:
            result = self.summary.result_for(rt_branch.version)
            try:
                self.bump_branch(rt_branch, result)
            except RtBumpError as e:
                if e.step is None:
                    e.step = "bump_branch"
                result.status = BumpStatus.ABORTED
                result.error_message = str(e)
                raise

        return self.summary

    def create_branch(self) -> None:
        """Create the work branch in the overlay; skipped on dry runs."""
        console.print(f"Creating branch [bold green]{self.config.branch}[/bold green]...")
        if not self.config.dry_run:
            self.gentoo.create_branch(self.config.branch)

    def bump_branch(self, rt_branch: RtBranch, result: Optional[BranchResult] = None) -> BranchResult:
        """
        Add the ebuild for the latest rt release of one kernel line.

        Does nothing when the ebuild already exists.

        Args:
            rt_branch: Tracked kernel line
            result: Result record to update (a new one if omitted)

        Returns:
            The updated BranchResult
        """
        if result is None:
            result = BranchResult(kernel_version=rt_branch.version)
        config = self.config

        latest = self.linux.latest_rt_release(rt_branch)
        result.latest_tag = latest
        ebuild = rt_version_to_ebuild(latest)
        result.ebuild = ebuild
        logger.info(f"Kernel {rt_branch.version}: latest rt release is {latest}")

        self.ebuilds.ensure_package_dir()
        if self.ebuilds.exists(ebuild):
            logger.info(f"{ebuild} already exists, nothing to do")
            result.status = BumpStatus.UP_TO_DATE
            return result

        if config.dry_run:
            console.print(f"Would create new ebuild [bold green]{ebuild}[/bold green]")
            result.status = BumpStatus.WOULD_BUMP
            return result

        self.ebuilds.create_from_template(rt_branch.ebuild, ebuild)
        console.print(f"Created new ebuild [bold green]{ebuild}[/bold green]")

        # Add the ebuild, generate manifest and commit
        logger.info(f"Running {config.commit_tool.value}...")
        self.gentoo.add(f"{config.package}/{ebuild}")
        self.ebuilds.commit(commit_message(config.package, latest))
        result.committed = True

        if config.build:
            logger.info("Merge it...")
            self.ebuilds.merge(ebuild)
            logger.info("Unmerge it...")
            self.ebuilds.unmerge(ebuild)

        result.status = BumpStatus.BUMPED
        return result
