"""
Configuration constants and tracked kernel lines for rtbump.
"""

import os
import random
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Sequence

from rtbump.errors import ConfigurationError
from rtbump.models import CommitTool


@dataclass(frozen=True)
class RtBranch:
    """A tracked realtime kernel line and its last known-good ebuild."""
    version: str
    ebuild: str

    @property
    def tag_pattern(self) -> str:
        """Glob handed to ``git tag -l`` for this line."""
        return f"v{self.version}.*rt*"


# Tracked lines, processed in this order
RT_BRANCHES: List[RtBranch] = [
    RtBranch(version="4.4", ebuild="rt-sources-4.4.277_p224-r1.ebuild"),
    RtBranch(version="4.9", ebuild="rt-sources-4.9.282_p187.ebuild"),
    RtBranch(version="4.14", ebuild="rt-sources-4.14.246_p122.ebuild"),
    RtBranch(version="4.19", ebuild="rt-sources-4.19.206_p87.ebuild"),
    RtBranch(version="5.4", ebuild="rt-sources-5.4.143_p64.ebuild"),
    RtBranch(version="5.10", ebuild="rt-sources-5.10.59_p52.ebuild"),
]

SUPPORTED_KERNELS = [b.version for b in RT_BRANCHES]

BRANCH_PREFIX = "rtbump-"
PACKAGE = "sys-kernel/rt-sources"


def generate_branch_name() -> str:
    """Random fallback name for the overlay work branch."""
    return f"{BRANCH_PREFIX}{random.randrange(10000)}"


@dataclass(frozen=True)
class BumpConfig:
    """Run configuration, built once at start and passed to each step."""

    # Checkouts
    linux_dir: Path = field(default_factory=lambda: Path.home() / "git" / "linux")
    gentoo_dir: Path = field(default_factory=lambda: Path.home() / "git" / "gentoo")
    package: str = PACKAGE

    # Overlay branches
    main_branch: str = "master"
    upstream_ref: str = "upstream/master"
    branch: str = field(default_factory=generate_branch_name)

    # Behaviour
    dry_run: bool = False
    verbose: bool = False
    build: bool = True
    commit_tool: CommitTool = CommitTool.REPOMAN

    # Merge/unmerge smoke test
    build_timeout: int = 3600  # 1 hour

    rt_branches: Sequence[RtBranch] = field(default_factory=lambda: tuple(RT_BRANCHES))
    log_file: Optional[Path] = None

    @property
    def rt_sources_dir(self) -> Path:
        """Package directory holding the rt-sources ebuilds."""
        return self.gentoo_dir / self.package

    @classmethod
    def from_env(cls, **overrides) -> "BumpConfig":
        """
        Create configuration from environment variables.

        Keyword arguments that are not None take precedence over the
        environment, which takes precedence over the defaults.
        """
        values = {}

        linux_dir = os.getenv("RTBUMP_LINUX_DIR")
        if linux_dir:
            values["linux_dir"] = Path(linux_dir).expanduser()
        gentoo_dir = os.getenv("RTBUMP_GENTOO_DIR")
        if gentoo_dir:
            values["gentoo_dir"] = Path(gentoo_dir).expanduser()
        upstream_ref = os.getenv("RTBUMP_UPSTREAM_REF")
        if upstream_ref:
            values["upstream_ref"] = upstream_ref
        commit_tool = os.getenv("RTBUMP_COMMIT_TOOL")
        if commit_tool:
            values["commit_tool"] = commit_tool

        values.update({k: v for k, v in overrides.items() if v is not None})

        if "commit_tool" in values:
            try:
                values["commit_tool"] = CommitTool(values["commit_tool"])
            except ValueError:
                raise ConfigurationError(
                    f"Unknown commit tool: {values['commit_tool']}", step="configuration"
                )
        for key in ("linux_dir", "gentoo_dir", "log_file"):
            if key in values:
                values[key] = Path(values[key]).expanduser()
        if "rt_branches" in values:
            values["rt_branches"] = tuple(values["rt_branches"])

        return cls(**values)

    def with_kernels(self, versions: Sequence[str]) -> "BumpConfig":
        """Restrict the run to the given tracked lines, keeping their order."""
        unknown = [v for v in versions if get_rt_branch(v, self.rt_branches) is None]
        if unknown:
            raise ConfigurationError(
                f"Unsupported kernel version(s): {', '.join(unknown)}", step="configuration"
            )
        selected = tuple(b for b in self.rt_branches if b.version in versions)
        return replace(self, rt_branches=selected)


def get_rt_branch(
    version: str,
    branches: Optional[Sequence[RtBranch]] = None,
) -> Optional[RtBranch]:
    """Get the tracked line for a kernel version."""
    for rt_branch in branches if branches is not None else RT_BRANCHES:
        if rt_branch.version == version:
            return rt_branch
    return None
