"""
Realtime kernel tag selection and ebuild name derivation.
"""

from typing import Iterable, List

from rtbump.errors import NoReleaseError
from rtbump.models import RT_VERSION_RE, RtVersion


# Ordinal of tags that are not releases; below every real ordinal
NON_RELEASE = -1

NON_RELEASE_MARKERS = ("rebase", "patches")


def rt_version_to_int(tag: str) -> int:
    """
    Map a tag to its ordering ordinal.

    Args:
        tag: Tag name, e.g. "v5.10.4-rt22"

    Returns:
        major*1000 + minor*100 + stable*10 + rt, or NON_RELEASE for tags
        that do not match the pattern or carry a rebase/patches marker
    """
    if not RT_VERSION_RE.search(tag):
        return NON_RELEASE
    if any(marker in tag for marker in NON_RELEASE_MARKERS):
        return NON_RELEASE
    return RtVersion.parse(tag).ordinal


def is_release_tag(tag: str) -> bool:
    """Check if a tag takes part in release comparison."""
    return rt_version_to_int(tag) != NON_RELEASE


def filter_tags_for_line(tags: Iterable[str], kernel_version: str) -> List[str]:
    """Keep tags of the given kernel line that mention rt."""
    prefix = f"v{kernel_version}."
    return [t for t in tags if t.startswith(prefix) and "rt" in t]


def get_latest_rt_release(tags: Iterable[str], kernel_version: str = "") -> str:
    """
    Select the latest realtime release among tags.

    Ties on the ordinal go to the tag that sorts last.

    Args:
        tags: Candidate tag names, not pre-filtered
        kernel_version: Line name used in the error message

    Returns:
        Tag name with the highest ordinal

    Raises:
        NoReleaseError: if no candidate is a release tag
    """
    releases = [t for t in tags if is_release_tag(t)]
    if not releases:
        raise NoReleaseError(kernel_version or "?")
    return max(releases, key=lambda t: (rt_version_to_int(t), t))


def rt_version_to_ebuild(tag: str) -> str:
    """
    Derive the ebuild file name for a release tag.

    Raises:
        VersionParseError: if the tag is malformed
    """
    return RtVersion.parse(tag).ebuild_name


def commit_message(package: str, tag: str) -> str:
    """Commit message for adding the ebuild of a release."""
    return f"{package}: Add rt sources {tag}"
