"""
Git operations on the Linux mirror and the Gentoo overlay.
"""

from pathlib import Path
from typing import List, Optional, Union

from git import Repo
from git.exc import CommandError as GitError
from git.exc import InvalidGitRepositoryError, NoSuchPathError

from rtbump.common import logger
from rtbump.config import RtBranch
from rtbump.errors import CommandError, RepositoryError
from rtbump.versions import filter_tags_for_line, get_latest_rt_release


class GitRepository:
    """Thin wrapper around a local GitPython checkout."""

    step = "git"

    def __init__(self, path: Path, verbose: bool = False):
        self.path = Path(path)
        self.verbose = verbose
        self._repo = None

    @property
    def repo(self) -> Repo:
        """Open the repository on first use."""
        if self._repo is None:
            try:
                self._repo = Repo(self.path, search_parent_directories=True)
            except NoSuchPathError:
                raise RepositoryError(f"Failed to change dir into {self.path}", step=self.step)
            except InvalidGitRepositoryError:
                raise RepositoryError(f"Not a git repository: {self.path}", step=self.step)
        return self._repo

    def git(self, *args: str, step: Optional[str] = None) -> str:
        """
        Run a git subcommand inside the checkout.

        Raises:
            CommandError: if git is missing or exits non-zero
        """
        cmd = ["git", *args]
        logger.debug(f"Running: {' '.join(cmd)} (in {self.path})")
        try:
            output = self.repo.git.execute(cmd)
        except GitError as e:
            returncode = e.status if isinstance(e.status, int) else -1
            raise CommandError(cmd, returncode, str(e.stderr or ""), step=step or self.step)
        if self.verbose and output:
            logger.info(output)
        return output


class LinuxRepo(GitRepository):
    """Local mirror of the upstream kernel carrying the -rt tags."""

    step = "update_linux_repo"

    def update(self) -> None:
        """Fetch all remotes."""
        logger.info("Update Linux repo...")
        self.git("remote", "update")

    def list_rt_tags(self, rt_branch: RtBranch) -> List[str]:
        """List rt tags of a kernel line, in git's order."""
        output = self.git("tag", "-l", rt_branch.tag_pattern, step="get_latest_rt_release")
        return filter_tags_for_line(output.splitlines(), rt_branch.version)

    def latest_rt_release(self, rt_branch: RtBranch) -> str:
        """
        Latest rt release tag of a kernel line.

        Raises:
            NoReleaseError: if the line has no release tag
        """
        tags = self.list_rt_tags(rt_branch)
        logger.debug(f"Found {len(tags)} rt tags for {rt_branch.version}")
        return get_latest_rt_release(tags, rt_branch.version)


class GentooRepo(GitRepository):
    """Gentoo overlay checkout the new ebuilds are committed to."""

    step = "update_gentoo_repo"

    def update(self, main_branch: str = "master", upstream_ref: str = "upstream/master") -> None:
        """Switch to the main branch and fast-forward it from upstream."""
        logger.info("Update Gentoo repo...")
        self.git("checkout", main_branch)
        self.git("remote", "update")
        self.git("merge", "--ff", upstream_ref)

    def create_branch(self, name: str) -> None:
        """Create and switch to the work branch."""
        self.git("checkout", "-b", name, step="create_gentoo_repo_branch")

    def add(self, path: Union[str, Path]) -> None:
        """Stage a file."""
        self.git("add", str(path), step="stage_ebuild")
