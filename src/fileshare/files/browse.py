"""Per-request resolution pipeline from URL path to download or listing."""
import asyncio
from enum import Enum

import structlog
from pydantic import BaseModel

from fileshare.files.access import containment_root, is_permitted
from fileshare.files.aggregate import ListingResult, list_directory, list_union
from fileshare.files.classify import EntryKind, FilesystemError, classify
from fileshare.files.paths import (
    RejectReason,
    Rejected,
    decode_path,
    is_hidden,
    relative_parts,
    resolve_safe,
)
from fileshare.files.registry import Section, SectionRegistry
from fileshare.files.rows import (
    breadcrumbs,
    join_url,
    parent_row,
    title_for,
    to_row,
)
from fileshare.files.schemas import DownloadTarget, Listing, Row

logger = structlog.get_logger()


class FailureKind(str, Enum):
    """Why a request could not be served."""

    INVALID_PATH = "invalid_path"
    TRAVERSAL = "traversal"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


# Traversal looks like any other bad path and a forbidden path like a
# missing one, so clients learn nothing about why they were refused.
_FAILURE_RESPONSES: dict[FailureKind, tuple[int, str]] = {
    FailureKind.INVALID_PATH: (400, "Invalid path"),
    FailureKind.TRAVERSAL: (400, "Invalid path"),
    FailureKind.FORBIDDEN: (404, "Not found"),
    FailureKind.NOT_FOUND: (404, "Not found"),
    FailureKind.INTERNAL: (500, "Internal error"),
}

_REJECT_TO_FAILURE: dict[RejectReason, FailureKind] = {
    RejectReason.INVALID_PATH: FailureKind.INVALID_PATH,
    RejectReason.TRAVERSAL: FailureKind.TRAVERSAL,
}


class Failure(BaseModel):
    """Request refused; converted to an HTTP error at the boundary."""

    kind: FailureKind

    @property
    def status_code(self) -> int:
        """HTTP status for this failure."""
        return _FAILURE_RESPONSES[self.kind][0]

    @property
    def message(self) -> str:
        """Generic message safe to show to clients."""
        return _FAILURE_RESPONSES[self.kind][1]


class Download(BaseModel):
    """Request resolved to a regular file."""

    target: DownloadTarget


class Page(BaseModel):
    """Request resolved to a directory listing."""

    listing: Listing


BrowseOutcome = Download | Page | Failure


def key_segments(section: Section) -> list[str]:
    """Decoded URL segments of a section key."""
    return section.key[1:].split("/")


def home_listing(registry: SectionRegistry) -> Listing:
    """Listing of the registered sections, shown at the site root.

    Args:
        registry: Section registry.

    Returns:
        Listing with one directory row per section.
    """
    rows = [
        Row(
            name=section.key[1:] + "/",
            href=join_url(key_segments(section)),
            is_directory=True,
        )
        for section in registry.sections
    ]
    return Listing(title="/", breadcrumbs=breadcrumbs([]), rows=rows)


def build_listing(
    segments: list[str],
    result: ListingResult,
    at_section_root: bool,
    union: bool = False,
) -> Listing:
    """Turn aggregated entries into the listing handed to the renderer.

    Args:
        segments: Decoded URL segments of the listed directory.
        result: Sorted aggregation result.
        at_section_root: Whether the directory is a section root.
        union: Whether the entries come from the union of buckets.

    Returns:
        Listing with rows, breadcrumbs and title.
    """
    current = join_url(segments)
    rows = [to_row(entry, current) for entry in result.entries]
    if not at_section_root:
        rows.insert(0, parent_row(segments))

    return Listing(
        title=title_for(segments),
        breadcrumbs=breadcrumbs(segments),
        rows=rows,
        union=union,
        skipped=result.skipped,
    )


async def browse(registry: SectionRegistry, url_path: str) -> BrowseOutcome:
    """Resolve a request path to a download, a listing, or a failure.

    Filesystem calls run in worker threads so a slow disk never blocks
    unrelated requests.

    Args:
        registry: Section registry built at startup.
        url_path: Raw percent-encoded request path without query string.

    Returns:
        Download for files, Page for directories, Failure otherwise.
    """
    if url_path in ("", "/"):
        return Page(listing=home_listing(registry))

    match = registry.match(url_path)
    if match is None:
        return Failure(kind=FailureKind.NOT_FOUND)

    section = match.section
    root = section.physical_root

    decoded = decode_path(match.relative_path)
    if decoded is None:
        logger.info("path_rejected", path=url_path, reason=FailureKind.INVALID_PATH.value)
        return Failure(kind=FailureKind.INVALID_PATH)

    if not is_permitted(section, decoded):
        logger.info("path_forbidden", path=url_path, section=section.key)
        return Failure(kind=FailureKind.FORBIDDEN)

    resolved = resolve_safe(root, match.relative_path)
    if isinstance(resolved, Rejected):
        logger.warning("path_rejected", path=url_path, reason=resolved.reason.value)
        return Failure(kind=_REJECT_TO_FAILURE[resolved.reason])

    parts = relative_parts(root, resolved.path)
    # Re-check after normalization so ".." cannot step out of a bucket.
    if is_hidden(parts) or not is_permitted(section, "/".join(parts)):
        logger.info("path_forbidden", path=url_path, section=section.key)
        return Failure(kind=FailureKind.FORBIDDEN)

    # Symlinks under a bucket must stay inside that bucket.
    fence = containment_root(section, parts)
    try:
        classification = await asyncio.to_thread(classify, resolved.path, fence)
    except FilesystemError as e:
        logger.error("filesystem_error", path=e.path, code=e.code, error=str(e))
        return Failure(kind=FailureKind.INTERNAL)

    if classification.kind is EntryKind.MISSING:
        return Failure(kind=FailureKind.NOT_FOUND)

    if classification.kind is EntryKind.FILE:
        # "b.txt/" names a directory that does not exist.
        if decoded.endswith("/"):
            return Failure(kind=FailureKind.NOT_FOUND)
        st = classification.stat
        return Download(
            target=DownloadTarget(
                absolute_path=resolved.path,
                suggested_filename=resolved.path.name,
                size=st.st_size if st is not None else 0,
            )
        )

    segments = key_segments(section) + list(parts)
    union = section.restricted and not parts
    try:
        if union:
            result = await asyncio.to_thread(list_union, section)
        else:
            result = await asyncio.to_thread(list_directory, resolved.path, fence)
    except (FileNotFoundError, NotADirectoryError):
        logger.info("directory_vanished", path=str(resolved.path))
        return Failure(kind=FailureKind.NOT_FOUND)
    except FilesystemError as e:
        logger.error("filesystem_error", path=e.path, code=e.code, error=str(e))
        return Failure(kind=FailureKind.INTERNAL)

    logger.debug(
        "listing_built",
        path=title_for(segments),
        entries=len(result.entries),
        skipped=result.skipped,
        union=union,
    )
    return Page(
        listing=build_listing(segments, result, at_section_root=not parts, union=union)
    )
