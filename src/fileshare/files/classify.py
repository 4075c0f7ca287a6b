"""Filesystem classification of resolved paths.

Symlinks are followed only while their real path stays inside the section
root; anything escaping it is reported as missing. Sockets, FIFOs and device
files are never served and are reported as missing too.
"""
import errno
import os
import stat as stat_module
from enum import Enum
from pathlib import Path

import structlog

from fileshare.files.paths import is_within

logger = structlog.get_logger()


class EntryKind(str, Enum):
    """What a resolved path turned out to be."""

    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


class FilesystemError(Exception):
    """Raised when a filesystem operation fails unexpectedly."""

    def __init__(self, message: str, path: str, code: str | None = None) -> None:
        """Initialize filesystem error.

        Args:
            message: Error description.
            path: Path that caused the error.
            code: Optional error code (e.g., EACCES).
        """
        super().__init__(message)
        self.path = path
        self.code = code

    @classmethod
    def from_os_error(cls, error: OSError, path: Path) -> "FilesystemError":
        """Wrap an OSError raised for a path."""
        code = errno.errorcode.get(error.errno) if error.errno is not None else None
        return cls(f"Filesystem operation failed: {error}", str(path), code)


class Classification:
    """Result of classifying a path.

    Attributes:
        kind: FILE, DIRECTORY or MISSING.
        stat: Stat of the target, None when MISSING.
    """

    def __init__(self, kind: EntryKind, stat: os.stat_result | None = None) -> None:
        """Initialize classification.

        Args:
            kind: Classified entry kind.
            stat: Stat result for FILE and DIRECTORY.
        """
        self.kind = kind
        self.stat = stat

    def __repr__(self) -> str:
        return f"Classification(kind={self.kind.value})"


def stat_contained(path: Path, root: Path) -> os.stat_result | None:
    """Stat a path, following symlinks only while they stay inside root.

    Args:
        path: Normalized absolute path inside root.
        root: Canonical section root.

    Returns:
        Stat of the target, or None if it does not exist, is a dangling or
        looping symlink, or resolves outside root.

    Raises:
        OSError: For failures other than absence.
    """
    real = Path(os.path.realpath(path))
    if real != path and not is_within(root, real):
        logger.warning("symlink_escape", path=str(path), target=str(real))
        return None

    try:
        return os.stat(real)
    except (FileNotFoundError, NotADirectoryError):
        return None
    except OSError as e:
        if e.errno == errno.ELOOP:
            return None
        raise


def kind_of(st: os.stat_result) -> EntryKind:
    """Map a stat result onto an entry kind."""
    if stat_module.S_ISREG(st.st_mode):
        return EntryKind.FILE
    if stat_module.S_ISDIR(st.st_mode):
        return EntryKind.DIRECTORY
    return EntryKind.MISSING


def classify(path: Path, root: Path) -> Classification:
    """Classify a resolved path as file, directory or missing.

    Args:
        path: Absolute path from a Safe resolution.
        root: Directory symlinks must resolve inside, the bucket directory
            for bucket paths and the section root otherwise.

    Returns:
        Classification with the stat result for files and directories.

    Raises:
        FilesystemError: If stat fails for a reason other than absence,
            such as a permission error on an existing path.
    """
    try:
        st = stat_contained(path, root)
    except OSError as e:
        logger.error("classify_failed", path=str(path), error=str(e))
        raise FilesystemError.from_os_error(e, path) from e

    if st is None:
        return Classification(EntryKind.MISSING)

    kind = kind_of(st)
    if kind is EntryKind.MISSING:
        logger.info("special_file_refused", path=str(path), mode=oct(st.st_mode))
        return Classification(EntryKind.MISSING)
    return Classification(kind, st)
