"""Projection of aggregated entries into renderable rows."""
from urllib.parse import quote

from fileshare.files.schemas import Breadcrumb, Entry, Row

PARENT_LABEL = "../"


def encode_segment(segment: str) -> str:
    """Percent-encode one path segment, slashes included."""
    return quote(segment, safe="")


def join_url(segments: list[str] | tuple[str, ...]) -> str:
    """Build a directory URL from decoded segments.

    Args:
        segments: Decoded path segments from the site root.

    Returns:
        Encoded absolute URL path ending with a slash.
    """
    if not segments:
        return "/"
    return "/" + "/".join(encode_segment(s) for s in segments) + "/"


def with_trailing_slash(current_path: str) -> str:
    """Normalize a directory URL so children can be appended to it."""
    return current_path if current_path.endswith("/") else current_path + "/"


def to_row(entry: Entry, current_path: str) -> Row:
    """Project an entry onto a row linking to it.

    Files use the same href for navigation and download; the response
    headers tell them apart.

    Args:
        entry: Aggregated entry.
        current_path: Encoded URL path of the directory being listed.

    Returns:
        Row with display name and href.
    """
    href = with_trailing_slash(current_path)
    if entry.bucket:
        href += encode_segment(entry.bucket) + "/"
    href += encode_segment(entry.name)

    name = entry.name
    if entry.is_directory:
        href += "/"
        name += "/"

    return Row(
        name=name,
        href=href,
        is_directory=entry.is_directory,
        size=entry.size,
        modified_at=entry.modified_at,
        source_tag=entry.source_tag,
    )


def parent_row(segments: list[str] | tuple[str, ...]) -> Row:
    """Synthetic row leading one level up.

    Args:
        segments: Decoded segments of the current directory, non-empty.

    Returns:
        Parent row pointing at the enclosing directory.
    """
    return Row(
        name=PARENT_LABEL,
        href=join_url(segments[:-1]),
        is_directory=True,
        is_parent=True,
    )


def breadcrumbs(segments: list[str] | tuple[str, ...]) -> list[Breadcrumb]:
    """Navigation trail from the home page to the current directory.

    Args:
        segments: Decoded segments of the current directory.

    Returns:
        One crumb for the home page plus one per segment.
    """
    crumbs = [Breadcrumb(label="/", href="/")]
    for index, segment in enumerate(segments, start=1):
        crumbs.append(Breadcrumb(label=segment, href=join_url(segments[:index])))
    return crumbs


def title_for(segments: list[str] | tuple[str, ...]) -> str:
    """Decoded path shown as the page title."""
    return "/" + "/".join(segments)
