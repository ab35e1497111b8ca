"""
Data models for rtbump using Pydantic for validation.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from rtbump.errors import VersionParseError


# Unanchored: v5.10.4-rt22-rebase matches too
RT_VERSION_RE = re.compile(r"v(\d+)\.(\d+)\.(\d+)-rt(\d+)")


class CommitTool(str, Enum):
    """Gentoo tools able to generate the Manifest and commit."""
    REPOMAN = "repoman"
    PKGDEV = "pkgdev"


class BumpStatus(str, Enum):
    """Outcome of one tracked line in a run."""
    PENDING = "pending"
    UP_TO_DATE = "up_to_date"
    WOULD_BUMP = "would_bump"
    BUMPED = "bumped"
    ABORTED = "aborted"


class RtVersion(BaseModel):
    """A realtime kernel release such as v5.10.4-rt22."""
    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    stable: int = Field(ge=0)
    rt: int = Field(ge=0)

    @classmethod
    def parse(cls, tag: str) -> "RtVersion":
        """Parse a tag like 'v5.10.4-rt22' into an RtVersion."""
        match = RT_VERSION_RE.search(tag)
        if not match:
            raise VersionParseError(tag)
        major, minor, stable, rt = (int(g) for g in match.groups())
        return cls(major=major, minor=minor, stable=stable, rt=rt)

    @property
    def ordinal(self) -> int:
        """
        Positional encoding used to order releases.

        Only exact while minor < 100 and stable, rt < 10. Real tags exceed
        that, so e.g. v5.10.10-rt1 (6101) sorts below v5.10.9-rt20 (6110).
        """
        return self.major * 1000 + self.minor * 100 + self.stable * 10 + self.rt

    @property
    def package_version(self) -> str:
        """Gentoo package version, e.g. '5.10.4_p22'."""
        return f"{self.major}.{self.minor}.{self.stable}_p{self.rt}"

    @property
    def ebuild_name(self) -> str:
        """Ebuild file name for this release."""
        return f"rt-sources-{self.package_version}.ebuild"


@dataclass
class BranchResult:
    """Result of processing one tracked kernel line."""
    kernel_version: str
    status: BumpStatus = BumpStatus.PENDING
    latest_tag: Optional[str] = None
    ebuild: Optional[str] = None
    committed: bool = False
    error_message: Optional[str] = None


@dataclass
class RunSummary:
    """Per-line outcome of a run, kept in processing order."""
    branch: str
    dry_run: bool = False
    results: List[BranchResult] = field(default_factory=list)

    def result_for(self, kernel_version: str) -> Optional[BranchResult]:
        for result in self.results:
            if result.kernel_version == kernel_version:
                return result
        return None

    @property
    def bumped(self) -> List[BranchResult]:
        return [r for r in self.results if r.status == BumpStatus.BUMPED]

    @property
    def pending(self) -> List[BranchResult]:
        return [r for r in self.results if r.status == BumpStatus.PENDING]
