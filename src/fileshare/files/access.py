"""Bucket allow-list enforcement for restricted sections."""
from pathlib import Path

from fileshare.files.registry import Section


def first_segment(relative_path: str) -> str | None:
    """Return the first non-empty segment of a slash-separated path.

    Args:
        relative_path: Path relative to a section key.

    Returns:
        The first segment, or None for the section root itself.
    """
    for segment in relative_path.split("/"):
        if segment:
            return segment
    return None


def is_permitted(section: Section, relative_path: str) -> bool:
    """Decide whether a path may be traversed at all.

    Runs before any filesystem access so the existence of directories
    outside the allow-list cannot be probed.

    Args:
        section: The section the path belongs to.
        relative_path: Path relative to the section key.

    Returns:
        True for unrestricted sections, the section root, and paths whose
        first segment is exactly a bucket slug.
    """
    if not section.restricted:
        return True

    segment = first_segment(relative_path)
    if segment is None:
        return True
    return segment in section.bucket_slugs


def containment_root(section: Section, parts: tuple[str, ...]) -> Path:
    """Directory that symlinks below a path must resolve inside.

    In a restricted section this is the bucket the path lives in, so a link
    placed in one bucket cannot reach a sibling outside the allow-list.

    Args:
        section: The section the path belongs to.
        parts: Normalized segments below the section root, already permitted.

    Returns:
        The bucket directory for bucket paths, otherwise the section root.
    """
    if not section.restricted or not parts:
        return section.physical_root
    for bucket in section.buckets:
        if bucket.slug == parts[0]:
            return bucket.physical_dir
    return section.physical_root
