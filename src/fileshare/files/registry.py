"""Static mapping from URL sections to physical directory trees."""
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import quote

import structlog
from pydantic import BaseModel, ConfigDict

from fileshare.config import SectionConfig
from fileshare.files.paths import decode_path

logger = structlog.get_logger()

RESERVED_PREFIXES: frozenset[str] = frozenset({"/api"})


class RegistryError(Exception):
    """Raised at startup when the section table is inconsistent."""

    def __init__(self, message: str, key: str) -> None:
        """Initialize registry error.

        Args:
            message: Error description.
            key: The offending section key or bucket slug.
        """
        super().__init__(message)
        self.key = key


class Bucket(BaseModel):
    """Allow-listed sub-directory of a restricted section."""

    model_config = ConfigDict(frozen=True)

    slug: str
    physical_dir: Path
    tag: str


class Section(BaseModel):
    """Logical URL area mapped onto one physical directory tree."""

    model_config = ConfigDict(frozen=True)

    key: str
    physical_root: Path
    buckets: tuple[Bucket, ...] = ()

    @property
    def restricted(self) -> bool:
        """Whether only bucket sub-paths may be traversed."""
        return bool(self.buckets)

    @property
    def bucket_slugs(self) -> frozenset[str]:
        """Slugs of the declared buckets."""
        return frozenset(bucket.slug for bucket in self.buckets)


class SectionMatch(BaseModel):
    """A section together with the request path remaining after its key.

    Attributes:
        section: The matched section.
        relative_path: Percent-encoded path after the key, empty or starting
            with a slash.
    """

    model_config = ConfigDict(frozen=True)

    section: Section
    relative_path: str


def _validate_key(key: str) -> None:
    if not key.startswith("/") or key.endswith("/"):
        raise RegistryError("Section key needs a leading and no trailing slash", key)
    segments = key[1:].split("/")
    if any(segment in ("", ".", "..") for segment in segments):
        raise RegistryError("Section key contains an empty or dot segment", key)
    if "%" in key or "\0" in key:
        raise RegistryError("Section key must be a plain path", key)
    if any(key == prefix or key.startswith(prefix + "/") for prefix in RESERVED_PREFIXES):
        raise RegistryError("Section key uses a reserved prefix", key)


def _validate_slug(slug: str) -> None:
    if not slug or slug in (".", "..") or slug.startswith("."):
        raise RegistryError("Bucket slug must be a visible directory name", slug)
    if "/" in slug or "\\" in slug or "%" in slug or "\0" in slug:
        raise RegistryError("Bucket slug must be a single path segment", slug)


def _overlaps(a: str, b: str) -> bool:
    return a == b or a.startswith(b + "/") or b.startswith(a + "/")


class SectionRegistry:
    """Read-only table of sections, built once at startup.

    Safe for unsynchronized concurrent reads since it is never mutated after
    construction.
    """

    def __init__(self, sections: Iterable[Section]) -> None:
        """Initialize registry, enforcing disjoint keys.

        Args:
            sections: Fully constructed sections.

        Raises:
            RegistryError: If two keys overlap on a segment boundary.
        """
        accepted: list[Section] = []
        for section in sections:
            _validate_key(section.key)
            for other in accepted:
                if _overlaps(section.key, other.key):
                    raise RegistryError(
                        f"Section key overlaps with {other.key}", section.key
                    )
            accepted.append(section)
        self._sections: tuple[Section, ...] = tuple(accepted)

    @classmethod
    def build(cls, root: Path, table: Iterable[SectionConfig]) -> "SectionRegistry":
        """Build the registry from the configured section table.

        Physical roots are canonicalized here so later containment checks
        compare like with like.

        Args:
            root: Base directory for relative section paths.
            table: Section declarations.

        Returns:
            Immutable registry.

        Raises:
            RegistryError: If the table is inconsistent.
        """
        sections: list[Section] = []
        for entry in table:
            _validate_key(entry.key)
            physical_root = (Path(root) / entry.path).resolve()

            seen: set[str] = set()
            buckets: list[Bucket] = []
            for bucket in entry.buckets:
                _validate_slug(bucket.slug)
                if bucket.slug in seen:
                    raise RegistryError(
                        f"Duplicate bucket in section {entry.key}", bucket.slug
                    )
                seen.add(bucket.slug)
                buckets.append(
                    Bucket(
                        slug=bucket.slug,
                        physical_dir=physical_root / bucket.slug,
                        tag=bucket.tag,
                    )
                )

            sections.append(
                Section(
                    key=entry.key,
                    physical_root=physical_root,
                    buckets=tuple(buckets),
                )
            )
            logger.debug(
                "section_registered",
                key=entry.key,
                root=str(physical_root),
                buckets=sorted(seen),
            )

        return cls(sections)

    @property
    def sections(self) -> tuple[Section, ...]:
        """Registered sections in declaration order."""
        return self._sections

    def match(self, url_path: str) -> SectionMatch | None:
        """Find the section serving a request path.

        The raw percent-encoded form is tried first, then the decoded form,
        since the path may arrive partially decoded.

        Args:
            url_path: Request path without query string.

        Returns:
            The matched section and remaining path, or None.
        """
        found = self._match_form(url_path)
        if found is not None:
            return found

        decoded = decode_path(url_path)
        if decoded is None or decoded == url_path:
            return None
        found = self._match_form(decoded)
        if found is None:
            return None
        # Re-encode so the resolver decodes exactly once.
        return SectionMatch(
            section=found.section,
            relative_path=quote(found.relative_path, safe="/"),
        )

    def _match_form(self, path: str) -> SectionMatch | None:
        for section in self._sections:
            if path == section.key:
                return SectionMatch(section=section, relative_path="")
            if path.startswith(section.key + "/"):
                return SectionMatch(
                    section=section,
                    relative_path=path[len(section.key):],
                )
        return None
