"""HTML rendering of directory listings."""
from datetime import datetime

from jinja2 import Environment, select_autoescape

from fileshare.files.schemas import Listing

_UNITS: tuple[tuple[str, int], ...] = (
    ("Go", 1024**3),
    ("Mo", 1024**2),
    ("Ko", 1024),
)

_MONTHS_FR: tuple[str, ...] = (
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
)

# fr-FR groups thousands with a narrow no-break space.
_GROUP_SEPARATOR = "\u202f"


def _format_number_fr(value: float, decimals: int) -> str:
    text = f"{value:,.{decimals}f}"
    if decimals:
        text = text.rstrip("0").rstrip(".")
    return text.replace(",", _GROUP_SEPARATOR).replace(".", ",")


def format_size_fr(size: int | None) -> str:
    """Format a byte count in French units, base 1024.

    Values of 10 units or more are shown without decimals, smaller ones with
    at most one.

    Args:
        size: Size in bytes, None for directories.

    Returns:
        Human readable size such as ``1,5 Mo`` or ``512 o``.
    """
    if size is None:
        return ""
    for unit, value in _UNITS:
        if size >= value:
            n = size / value
            return f"{_format_number_fr(n, 0 if n >= 10 else 1)} {unit}"
    return f"{_format_number_fr(size, 0)} o"


def format_date_fr(moment: datetime | None) -> str:
    """Format a timestamp as a medium French date and short time.

    Args:
        moment: Timestamp, converted to server local time.

    Returns:
        Text such as ``16 oct. 2026, 14:05``.
    """
    if moment is None:
        return ""
    local = moment.astimezone()
    month = _MONTHS_FR[local.month - 1]
    return f"{local.day} {month} {local.year}, {local:%H:%M}"


_TEMPLATE = """<!doctype html>
<html lang="fr">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Index {{ listing.title }}</title>
<style>
  :root { color-scheme: light dark; }
  body{font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu; margin:24px; line-height:1.35; background-color:#1C1C1C; color:#fefefe;}
  header{display:flex;justify-content:space-between;align-items:center;gap:16px;margin-bottom:12px;flex-wrap:wrap;}
  table{border-collapse:collapse; width:100%;}
  th,td{padding:8px 10px; border-bottom:1px solid #fefefe;}
  th{background:#800020; text-align:left;}
  th.size, th.date, td.size, td.date{text-align:right; white-space:nowrap; font-variant-numeric:tabular-nums;}
  td.tag{white-space:nowrap; opacity:.8;}
  a{color:#DD3A44; text-decoration:none;}
  a:hover{text-decoration:underline;}
</style>
</head>
<body>
  <header>
    <h1>&#9889; files &rarr;</h1>
    <nav>
      {%- for crumb in listing.breadcrumbs -%}
        {%- if not loop.first %} &raquo; {% endif -%}
        <a href="{{ crumb.href }}">{{ crumb.label }}</a>
      {%- endfor -%}
    </nav>
  </header>
  <table>
    <thead>
      <tr>
        <th>Nom</th>
        {% if listing.union %}<th>Source</th>{% endif %}
        <th class="size">Taille</th>
        <th class="date">Modifié</th>
      </tr>
    </thead>
    <tbody>
    {%- for row in listing.rows %}
      <tr>
        <td><a href="{{ row.href }}">{% if not row.is_parent %}&#128230; {% endif %}{{ row.name }}</a></td>
        {% if listing.union %}<td class="tag">{{ row.source_tag or "" }}</td>{% endif %}
        <td class="size">{{ row.size | size_fr }}</td>
        <td class="date">{{ row.modified_at | date_fr }}</td>
      </tr>
    {%- endfor %}
    </tbody>
  </table>
</body>
</html>
"""

_environment = Environment(autoescape=select_autoescape(default=True, default_for_string=True))
_environment.filters["size_fr"] = format_size_fr
_environment.filters["date_fr"] = format_date_fr
_template = _environment.from_string(_TEMPLATE)


def render_listing(listing: Listing) -> str:
    """Render a listing as a complete HTML document.

    Args:
        listing: Rows, breadcrumbs and title for the page.

    Returns:
        HTML document.
    """
    return _template.render(listing=listing)
