"""Bucket allow-list tests."""

from pathlib import Path

import pytest

from fileshare.files.access import containment_root, first_segment, is_permitted
from fileshare.files.registry import Bucket, Section

ROOT = Path("/srv/files/games")

RESTRICTED = Section(
    key="/games",
    physical_root=ROOT,
    buckets=(
        Bucket(slug="solo", physical_dir=ROOT / "solo", tag="Solo"),
        Bucket(slug="multi", physical_dir=ROOT / "multi", tag="Multi"),
    ),
)

OPEN = Section(key="/docs", physical_root=Path("/srv/files/docs"))


@pytest.mark.parametrize(
    "relative",
    ["", "/", "/solo", "/solo/", "/solo/anything", "/multi/x/y", "//solo/a"],
)
def test_restricted_allows_root_and_buckets(relative: str) -> None:
    """The union root and bucket sub-paths are permitted."""
    assert is_permitted(RESTRICTED, relative)


@pytest.mark.parametrize(
    "relative",
    ["/other", "/solo2", "/..%2f..", "/../solo", "/Solo", "/sol", "/readme.txt"],
)
def test_restricted_rejects_everything_else(relative: str) -> None:
    """Any other first segment is refused."""
    assert not is_permitted(RESTRICTED, relative)


@pytest.mark.parametrize("relative", ["", "/", "/anything", "/a/b/c", "/.."])
def test_unrestricted_allows_all(relative: str) -> None:
    """Unrestricted sections leave traversal checks to the resolver."""
    assert is_permitted(OPEN, relative)


def test_first_segment() -> None:
    """Leading and doubled slashes are skipped."""
    assert first_segment("//a/b") == "a"
    assert first_segment("/") is None
    assert first_segment("") is None


def test_containment_root_narrows_to_bucket() -> None:
    """Bucket paths are fenced to their bucket, everything else to the root."""
    assert containment_root(RESTRICTED, ("solo", "a.zip")) == ROOT / "solo"
    assert containment_root(RESTRICTED, ("multi",)) == ROOT / "multi"
    assert containment_root(RESTRICTED, ()) == ROOT
    assert containment_root(OPEN, ("a", "b")) == OPEN.physical_root
