"""Path resolution and access control for the served file tree."""

from fileshare.files.access import containment_root, is_permitted
from fileshare.files.aggregate import (
    ListingResult,
    list_directory,
    list_union,
    sort_entries,
)
from fileshare.files.browse import (
    BrowseOutcome,
    Download,
    Failure,
    FailureKind,
    Page,
)
from fileshare.files.classify import (
    Classification,
    EntryKind,
    FilesystemError,
)
from fileshare.files.paths import (
    RejectReason,
    Rejected,
    ResolvedTarget,
    Safe,
    decode_path,
    resolve_safe,
)
from fileshare.files.registry import (
    Bucket,
    RegistryError,
    Section,
    SectionMatch,
    SectionRegistry,
)
from fileshare.files.rows import breadcrumbs, parent_row, to_row
from fileshare.files.schemas import (
    Breadcrumb,
    DownloadTarget,
    Entry,
    ErrorResponse,
    Listing,
    Row,
)

__all__ = [
    "Breadcrumb",
    "BrowseOutcome",
    "Bucket",
    "Classification",
    "Download",
    "DownloadTarget",
    "Entry",
    "EntryKind",
    "ErrorResponse",
    "Failure",
    "FailureKind",
    "FilesystemError",
    "Listing",
    "ListingResult",
    "Page",
    "RegistryError",
    "RejectReason",
    "Rejected",
    "ResolvedTarget",
    "Row",
    "Safe",
    "Section",
    "SectionMatch",
    "SectionRegistry",
    "breadcrumbs",
    "containment_root",
    "decode_path",
    "is_permitted",
    "list_directory",
    "list_union",
    "parent_row",
    "resolve_safe",
    "sort_entries",
    "to_row",
]
