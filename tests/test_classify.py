"""Entry classifier tests."""

import errno
import os
from pathlib import Path

import pytest

import fileshare.files.classify as classify_module
from fileshare.files.classify import EntryKind, FilesystemError, classify


@pytest.fixture
def root(files_root: Path) -> Path:
    return (files_root / "docs").resolve()


def test_regular_file(root: Path) -> None:
    """Regular files carry their stat result."""
    result = classify(root / "b.txt", root)
    assert result.kind is EntryKind.FILE
    assert result.stat is not None
    assert result.stat.st_size == 5


def test_directory(root: Path) -> None:
    """Directories are classified as such, the root included."""
    assert classify(root / "sub", root).kind is EntryKind.DIRECTORY
    assert classify(root, root).kind is EntryKind.DIRECTORY


def test_missing(root: Path) -> None:
    """Absent paths and paths below a file are missing, not errors."""
    assert classify(root / "nope", root).kind is EntryKind.MISSING
    assert classify(root / "b.txt" / "child", root).kind is EntryKind.MISSING


def test_symlink_inside_root_is_followed(root: Path) -> None:
    """Symlinks resolving inside the root take their target's type."""
    (root / "link.txt").symlink_to(root / "b.txt")
    (root / "linkdir").symlink_to(root / "sub")
    assert classify(root / "link.txt", root).kind is EntryKind.FILE
    assert classify(root / "linkdir", root).kind is EntryKind.DIRECTORY


def test_symlink_escaping_root_is_missing(root: Path, files_root: Path) -> None:
    """Symlinks whose real path leaves the root are never followed."""
    outside = files_root.parent / "outside"
    (root / "escape").symlink_to(outside)
    (root / "escape.txt").symlink_to(outside / "passwd")
    assert classify(root / "escape", root).kind is EntryKind.MISSING
    assert classify(root / "escape.txt", root).kind is EntryKind.MISSING
    assert classify(root / "escape" / "passwd", root).kind is EntryKind.MISSING


def test_dangling_symlink_is_missing(root: Path) -> None:
    """A symlink to nothing is missing."""
    (root / "dangling").symlink_to(root / "does-not-exist")
    assert classify(root / "dangling", root).kind is EntryKind.MISSING


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires mkfifo")
def test_fifo_is_missing(root: Path) -> None:
    """Special files are never served."""
    os.mkfifo(root / "pipe")
    assert classify(root / "pipe", root).kind is EntryKind.MISSING


def test_unexpected_error_is_raised(root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Failures other than absence surface as FilesystemError."""

    def denied(path: object) -> os.stat_result:
        raise PermissionError(errno.EACCES, "Permission denied", str(path))

    monkeypatch.setattr(classify_module.os, "stat", denied)
    with pytest.raises(FilesystemError) as excinfo:
        classify(root / "b.txt", root)
    assert excinfo.value.code == "EACCES"
    assert excinfo.value.path == str(root / "b.txt")
