"""Server configuration loaded from environment variables."""
from pathlib import Path

from pydantic import BaseModel, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BucketConfig(BaseModel):
    """Allow-listed sub-directory of a restricted section.

    Attributes:
        slug: Directory name directly under the section root.
        tag: Display category shown in the union listing.
    """

    slug: str
    tag: str


class SectionConfig(BaseModel):
    """Declaration of one section of the served tree.

    Attributes:
        key: URL prefix with a leading slash and no trailing slash.
        path: Physical directory, relative to the settings root or absolute.
        buckets: Allow-list of sub-directories. Empty means unrestricted.
    """

    key: str
    path: str
    buckets: list[BucketConfig] = Field(default_factory=list)


def _default_sections() -> list[SectionConfig]:
    return [
        SectionConfig(
            key="/games",
            path="games",
            buckets=[
                BucketConfig(slug="solo", tag="Solo"),
                BucketConfig(slug="multi", tag="Multi"),
            ],
        ),
        SectionConfig(key="/docs", path="docs"),
    ]


class Settings(BaseSettings):
    """Server configuration loaded from environment variables.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port number for the HTTP server.
        debug: Enable debug logging and API documentation.
        root: Physical directory that relative section paths are based on.
        sections: Section table, given as JSON in FILES_SECTIONS.
        shutdown_timeout: Seconds to wait for in-flight requests on shutdown.
        trust_proxy: Honour X-Forwarded-For from the reverse proxy.
        auth_users_raw: Comma-separated user:password pairs. Empty disables auth.
        auth_realm: Realm sent with the basic authentication challenge.
        rate_limit_max: Requests allowed per client per window. 0 disables.
        rate_limit_window: Rate limit window length in seconds.
        gzip_minimum_size: Smallest response body that gets compressed.
    """

    model_config = SettingsConfigDict(
        env_prefix="FILES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    root: Path = Path("files")
    sections: list[SectionConfig] = Field(default_factory=_default_sections)
    shutdown_timeout: float = 30.0
    trust_proxy: bool = False

    auth_users_raw: str = ""
    auth_realm: str = "RAR-Share"

    rate_limit_max: int = 300
    rate_limit_window: float = 15 * 60.0
    gzip_minimum_size: int = 1000

    @computed_field
    @property
    def auth_users(self) -> dict[str, str]:
        """Parse basic auth credentials from the comma-separated string.

        Returns:
            Mapping of user name to password. Malformed pairs are ignored.
        """
        users: dict[str, str] = {}
        for pair in self.auth_users_raw.split(","):
            user, sep, password = pair.strip().partition(":")
            if sep and user:
                users[user] = password
        return users
