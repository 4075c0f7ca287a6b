"""HTML renderer tests."""

from datetime import datetime, timezone

from fileshare.files.schemas import Breadcrumb, Listing, Row
from fileshare.render import format_date_fr, format_size_fr, render_listing


def test_format_size_fr() -> None:
    """Sizes use French units and decimal commas."""
    assert format_size_fr(None) == ""
    assert format_size_fr(0) == "0 o"
    assert format_size_fr(512) == "512 o"
    assert format_size_fr(1024) == "1 Ko"
    assert format_size_fr(1536) == "1,5 Ko"
    assert format_size_fr(15 * 1024**2) == "15 Mo"
    assert format_size_fr(int(3.3 * 1024**3)) == "3,3 Go"
    assert format_size_fr(2000 * 1024**3) == "2\u202f000 Go"


def test_format_date_fr() -> None:
    """Dates use abbreviated French month names."""
    local = datetime(2026, 10, 16, 14, 5).astimezone()
    assert format_date_fr(local) == "16 oct. 2026, 14:05"
    assert format_date_fr(None) == ""


def test_render_escapes_names_and_crumbs() -> None:
    """Markup in names and titles is escaped."""
    listing = Listing(
        title="/docs/<b>",
        breadcrumbs=[Breadcrumb(label="/", href="/"), Breadcrumb(label="<b>", href="/docs/%3Cb%3E/")],
        rows=[
            Row(
                name="<script>.txt",
                href="/docs/%3Cscript%3E.txt",
                is_directory=False,
                size=10,
                modified_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            )
        ],
    )
    html = render_listing(listing)
    assert "<script>" not in html
    assert "&lt;script&gt;.txt" in html
    assert "<title>Index /docs/&lt;b&gt;</title>" in html
    assert "10 o" in html
    assert "<th>Source</th>" not in html
