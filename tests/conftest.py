"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from fileshare.app import create_app
from fileshare.config import Settings
from fileshare.files.registry import SectionRegistry


def _write(path: Path, content: bytes = b"") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    """Create a served tree with a restricted and an unrestricted section.

    files/
      games/solo/{b.zip, a.zip, extras/}
      games/multi/c.zip
      games/secret/x.txt
      games/readme.txt
      docs/{a b&c/inner.txt, b.txt, .hidden, sub/deep.txt}
    """
    root = tmp_path / "files"
    _write(root / "games" / "solo" / "b.zip", b"BB")
    _write(root / "games" / "solo" / "a.zip", b"A")
    (root / "games" / "solo" / "extras").mkdir()
    _write(root / "games" / "multi" / "c.zip", b"CCC")
    _write(root / "games" / "secret" / "x.txt", b"secret")
    _write(root / "games" / "readme.txt", b"readme")
    _write(root / "docs" / "a b&c" / "inner.txt", b"inner")
    _write(root / "docs" / "b.txt", b"hello")
    _write(root / "docs" / ".hidden", b"hidden")
    _write(root / "docs" / "sub" / "deep.txt", b"deep")
    _write(tmp_path / "outside" / "passwd", b"root:x:0:0")
    return root


@pytest.fixture
def settings(files_root: Path) -> Settings:
    """Create test settings."""
    return Settings(
        host="127.0.0.1",
        port=3000,
        debug=True,
        root=files_root,
        rate_limit_max=0,
        auth_users_raw="",
    )


@pytest.fixture
def registry(settings: Settings) -> SectionRegistry:
    """Registry built from the default section table."""
    return SectionRegistry.build(settings.root, settings.sections)


@pytest.fixture
def client(settings: Settings) -> TestClient:
    """Create test client with configured app."""
    app = create_app(settings)
    return TestClient(app)
