"""Directory enumeration for plain and union listings."""

import os
import unicodedata
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

import structlog

from fileshare.files.classify import EntryKind, FilesystemError, kind_of, stat_contained
from fileshare.files.registry import Bucket, Section
from fileshare.files.schemas import Entry

logger = structlog.get_logger()


class ListingResult:
    """Accumulator for one directory enumeration.

    Children that fail to stat are dropped and counted instead of failing
    the whole listing.

    Attributes:
        entries: Successfully described children.
        skipped: Number of children dropped after an error.
        skipped_buckets: Number of union buckets that could not be read.
    """

    def __init__(self) -> None:
        """Initialize an empty result."""
        self.entries: list[Entry] = []
        self.skipped = 0
        self.skipped_buckets = 0

    def add(self, entry: Entry) -> None:
        """Record a successfully described child."""
        self.entries.append(entry)

    def skip(self) -> None:
        """Record a child dropped after an error."""
        self.skipped += 1

    def merge(self, other: "ListingResult") -> None:
        """Fold another result into this one."""
        self.entries.extend(other.entries)
        self.skipped += other.skipped
        self.skipped_buckets += other.skipped_buckets


def is_excluded(name: str) -> bool:
    """Check if a child should never appear in a listing.

    Args:
        name: Filename to check.

    Returns:
        True for hidden files and directories.
    """
    return name.startswith(".")


def collation_key(name: str) -> tuple[str, str, str]:
    """Sort key that keeps accented letters next to their base letter.

    Compares the accent-stripped, casefolded name first, then the accents,
    then the raw name so the order is total.

    Args:
        name: Entry name.

    Returns:
        Tuple usable as a sort key.
    """
    decomposed = unicodedata.normalize("NFD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), decomposed.casefold(), name)


def sort_entries(entries: Iterable[Entry]) -> list[Entry]:
    """Order entries with directories first, then by collated name.

    Args:
        entries: Entries in enumeration order.

    Returns:
        New list, independent of the filesystem's enumeration order.
    """
    return sorted(
        entries,
        key=lambda e: (
            0 if e.is_directory else 1,
            collation_key(e.name),
            e.source_tag or "",
        ),
    )


def _describe(child: Path, root: Path, result: ListingResult) -> Entry | None:
    try:
        st = stat_contained(child, root)
    except OSError as e:
        logger.debug("listing_child_error", path=str(child), error=str(e))
        result.skip()
        return None

    if st is None:
        result.skip()
        return None

    kind = kind_of(st)
    if kind is EntryKind.MISSING:
        return None

    is_directory = kind is EntryKind.DIRECTORY
    return Entry(
        name=child.name,
        is_directory=is_directory,
        size=None if is_directory else st.st_size,
        modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
    )


def _scan(absolute_dir: Path, root: Path) -> ListingResult:
    result = ListingResult()
    with os.scandir(absolute_dir) as it:
        names = [entry.name for entry in it]

    for name in names:
        if is_excluded(name):
            continue
        entry = _describe(absolute_dir / name, root, result)
        if entry is not None:
            result.add(entry)
    return result


def list_directory(absolute_dir: Path, root: Path) -> ListingResult:
    """List the immediate children of a directory.

    Args:
        absolute_dir: Directory classified as DIRECTORY.
        root: Directory symlinks must resolve inside; the bucket directory
            in restricted sections, otherwise the section root.

    Returns:
        Sorted entries and the number of children skipped.

    Raises:
        FileNotFoundError: If the directory vanished since classification.
        NotADirectoryError: If it was replaced by a file.
        FilesystemError: If it cannot be opened for another reason.
    """
    try:
        result = _scan(absolute_dir, root)
    except (FileNotFoundError, NotADirectoryError):
        raise
    except OSError as e:
        logger.error("listing_failed", path=str(absolute_dir), error=str(e))
        raise FilesystemError.from_os_error(e, absolute_dir) from e

    result.entries = sort_entries(result.entries)
    if result.skipped:
        logger.debug(
            "listing_partial",
            path=str(absolute_dir),
            entries=len(result.entries),
            skipped=result.skipped,
        )
    return result


def _list_bucket(bucket: Bucket) -> ListingResult:
    try:
        scanned = _scan(bucket.physical_dir, bucket.physical_dir)
    except OSError as e:
        logger.debug("bucket_unavailable", bucket=bucket.slug, error=str(e))
        unavailable = ListingResult()
        unavailable.skipped_buckets = 1
        return unavailable

    result = ListingResult()
    result.skipped = scanned.skipped
    for entry in scanned.entries:
        if entry.is_directory:
            continue
        result.add(entry.model_copy(update={"source_tag": bucket.tag, "bucket": bucket.slug}))
    return result


def list_union(section: Section) -> ListingResult:
    """Merge the regular files of every bucket into one virtual listing.

    A missing or unreadable bucket contributes nothing. Sub-directories of
    buckets only show up when browsing into the bucket itself.

    Args:
        section: Restricted section whose root is being listed.

    Returns:
        Sorted, bucket-tagged file entries.
    """
    result = ListingResult()
    for bucket in section.buckets:
        result.merge(_list_bucket(bucket))

    result.entries = sort_entries(result.entries)
    logger.debug(
        "union_listing_built",
        section=section.key,
        entries=len(result.entries),
        skipped=result.skipped,
        skipped_buckets=result.skipped_buckets,
    )
    return result
