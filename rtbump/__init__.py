"""
rtbump - Bump Gentoo rt-sources ebuilds to the latest realtime kernel tags.

This package provides tools for:
- Selecting the latest -rt release tag of each tracked kernel line
- Deriving the rt-sources ebuild name of a release
- Updating the Linux and Gentoo repositories
- Creating, committing and test-building the new ebuilds
"""

__version__ = "1.0.0"

from rtbump.config import BumpConfig, RtBranch, RT_BRANCHES, SUPPORTED_KERNELS
from rtbump.models import BumpStatus, RtVersion, RunSummary

__all__ = [
    "__version__",
    "BumpConfig",
    "RtBranch",
    "RT_BRANCHES",
    "SUPPORTED_KERNELS",
    "BumpStatus",
    "RtVersion",
    "RunSummary",
]
