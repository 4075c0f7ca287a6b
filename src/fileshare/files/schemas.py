"""Pydantic schemas for listing and download outcomes."""

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

CACHE_CONTROL = "public, max-age=86400, immutable"


class Entry(BaseModel):
    """Immediate child of a listed directory."""

    name: str
    is_directory: bool
    size: int | None = Field(default=None, description="File size in bytes")
    modified_at: datetime
    source_tag: str | None = Field(
        default=None, description="Display tag of the bucket, union view only"
    )
    bucket: str | None = Field(
        default=None, description="Slug of the bucket, union view only"
    )


class Row(BaseModel):
    """Renderable projection of an entry."""

    name: str = Field(description="Display name, directories end with a slash")
    href: str
    is_directory: bool
    is_parent: bool = False
    size: int | None = None
    modified_at: datetime | None = None
    source_tag: str | None = None


class Breadcrumb(BaseModel):
    """One navigation step from the home page to the current directory."""

    label: str
    href: str


class Listing(BaseModel):
    """Everything the renderer needs for one directory page."""

    title: str = Field(description="Decoded current path")
    breadcrumbs: list[Breadcrumb]
    rows: list[Row]
    union: bool = False
    skipped: int = Field(default=0, description="Children omitted after errors")


class DownloadTarget(BaseModel):
    """Everything the response layer needs to stream a file."""

    absolute_path: Path
    suggested_filename: str
    size: int
    cache_control: str = CACHE_CONTROL
    disposition: Literal["attachment"] = "attachment"


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
