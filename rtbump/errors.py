"""
Exception hierarchy for the rtbump workflow.

Every error is terminal for the whole run. Steps raise, the command line
handler reports the failing step and exits with a non-zero status.
"""

from typing import List, Optional


EXIT_FAILURE = 255


class RtBumpError(Exception):
    """Base class for all fatal rtbump errors."""

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self) -> str:
        return self.message


class ConfigurationError(RtBumpError):
    """Invalid configuration or command line usage."""
    pass


class RepositoryError(RtBumpError):
    """A local checkout or package directory is missing or unusable."""
    pass


class CommandError(RtBumpError):
    """An external command exited unsuccessfully."""

    def __init__(
        self,
        cmd: List[str],
        returncode: int,
        stderr: str = "",
        step: Optional[str] = None,
    ):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f'Command "{" ".join(self.cmd)}" failed', step)


class VersionParseError(RtBumpError):
    """A tag does not look like v<major>.<minor>.<stable>-rt<rt>."""

    def __init__(self, tag: str, step: Optional[str] = None):
        self.tag = tag
        super().__init__(f"Invalid rt version {tag}", step)


class NoReleaseError(RtBumpError):
    """No release tag exists for a tracked kernel line."""

    def __init__(self, line: str, step: Optional[str] = None):
        self.line = line
        super().__init__(f"No rt release tag found for kernel {line}", step)
