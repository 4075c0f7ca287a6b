"""Security-first path resolution for section access."""
import os
import re
from enum import Enum
from pathlib import Path
from urllib.parse import unquote_to_bytes

from pydantic import BaseModel, ConfigDict

_ESCAPE_PATTERN = re.compile(r"%(?![0-9A-Fa-f]{2})")


class RejectReason(str, Enum):
    """Why a path was refused by the resolver."""

    INVALID_PATH = "invalid_path"
    TRAVERSAL = "traversal"


class Safe(BaseModel):
    """Resolution outcome for a path contained in its root."""

    model_config = ConfigDict(frozen=True)

    path: Path


class Rejected(BaseModel):
    """Resolution outcome for a path that must not be served."""

    model_config = ConfigDict(frozen=True)

    reason: RejectReason


ResolvedTarget = Safe | Rejected


def decode_path(raw: str) -> str | None:
    """Strictly percent-decode a URL path.

    Unlike ``urllib.parse.unquote`` this refuses malformed input instead of
    passing it through.

    Args:
        raw: Percent-encoded path.

    Returns:
        The decoded path, or None if an escape is malformed, the bytes are
        not valid UTF-8, or the result contains a null byte.
    """
    if _ESCAPE_PATTERN.search(raw):
        return None
    try:
        decoded = unquote_to_bytes(raw).decode("utf-8")
    except UnicodeDecodeError:
        return None
    if "\0" in decoded:
        return None
    return decoded


def is_within(root: Path, candidate: Path) -> bool:
    """Check that a normalized path equals root or lies below it.

    Compares on a separator boundary so ``/files2`` is not inside ``/files``.

    Args:
        root: Canonical root directory.
        candidate: Normalized absolute path.

    Returns:
        True if candidate is root or a descendant of it.
    """
    root_str = str(root)
    candidate_str = str(candidate)
    if candidate_str == root_str:
        return True
    prefix = root_str if root_str.endswith(os.sep) else root_str + os.sep
    return candidate_str.startswith(prefix)


def resolve_safe(physical_root: Path, relative_url_path: str) -> ResolvedTarget:
    """Resolve a request path to an absolute path within a section root.

    Decodes first, normalizes ``.`` and ``..`` algebraically, then checks
    containment. The prefix check never runs on an un-normalized path. No
    filesystem access is performed.

    Args:
        physical_root: Canonical root directory of the section.
        relative_url_path: Percent-encoded path relative to the section key.

    Returns:
        Safe with the absolute path, or Rejected with the reason.
    """
    decoded = decode_path(relative_url_path)
    if decoded is None:
        return Rejected(reason=RejectReason.INVALID_PATH)

    # A leading slash would make the join discard the root.
    joined = os.path.join(str(physical_root), "." + "/" + decoded.lstrip("/"))
    normalized = Path(os.path.normpath(joined))

    if not is_within(physical_root, normalized):
        return Rejected(reason=RejectReason.TRAVERSAL)

    return Safe(path=normalized)


def relative_parts(physical_root: Path, path: Path) -> tuple[str, ...]:
    """Split a resolved path into its segments below the root.

    Args:
        physical_root: Canonical root directory.
        path: Path previously returned inside a Safe result.

    Returns:
        Segments below the root, empty for the root itself.
    """
    return path.relative_to(physical_root).parts


def is_hidden(parts: tuple[str, ...]) -> bool:
    """Check if any segment names a hidden file or directory.

    Args:
        parts: Path segments below a section root.

    Returns:
        True if a segment starts with a dot.
    """
    return any(part.startswith(".") for part in parts)
