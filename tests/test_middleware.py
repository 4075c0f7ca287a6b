"""Authentication, rate limiting and security header tests."""

import base64

from fastapi.testclient import TestClient

from fileshare.app import create_app
from fileshare.config import Settings
from fileshare.middleware.auth import parse_basic_credentials
from fileshare.middleware.ratelimit import RateLimitMiddleware


def _basic(user: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def test_auth_challenge_without_credentials(settings: Settings) -> None:
    """Protected paths answer 401 with a basic challenge."""
    settings.auth_users_raw = "root:secret"
    client = TestClient(create_app(settings))
    response = client.get("/docs/")
    assert response.status_code == 401
    assert response.headers["www-authenticate"].startswith('Basic realm="RAR-Share"')


def test_auth_rejects_wrong_password(settings: Settings) -> None:
    """Wrong passwords and unknown users are refused."""
    settings.auth_users_raw = "root:secret"
    client = TestClient(create_app(settings))
    assert client.get("/docs/", headers=_basic("root", "nope")).status_code == 401
    assert client.get("/docs/", headers=_basic("bob", "secret")).status_code == 401


def test_auth_accepts_valid_credentials(settings: Settings) -> None:
    """Valid credentials pass through to the listing."""
    settings.auth_users_raw = "root:secret, guest:guest"
    client = TestClient(create_app(settings))
    assert client.get("/docs/", headers=_basic("root", "secret")).status_code == 200
    assert client.get("/docs/", headers=_basic("guest", "guest")).status_code == 200


def test_health_is_public(settings: Settings) -> None:
    """Probes work without credentials."""
    settings.auth_users_raw = "root:secret"
    client = TestClient(create_app(settings))
    assert client.get("/api/v1/health/live").status_code == 200


def test_parse_basic_credentials() -> None:
    """Only well-formed basic headers are parsed."""
    assert parse_basic_credentials(_basic("a", "b:c")["Authorization"]) == ("a", "b:c")
    assert parse_basic_credentials("Bearer xyz") is None
    assert parse_basic_credentials("Basic !!!") is None
    assert parse_basic_credentials("Basic " + base64.b64encode(b"nocolon").decode()) is None


def test_settings_parse_auth_users() -> None:
    """Malformed pairs are dropped from the credential table."""
    settings = Settings(auth_users_raw="a:1, b:2,broken,:x")
    assert settings.auth_users == {"a": "1", "b": "2"}


def test_rate_limit_rejects_over_limit(settings: Settings) -> None:
    """Requests beyond the window budget get 429."""
    settings.rate_limit_max = 2
    client = TestClient(create_app(settings))
    first = client.get("/docs/")
    assert first.status_code == 200
    assert first.headers["ratelimit-limit"] == "2"
    assert first.headers["ratelimit-remaining"] == "1"
    assert client.get("/docs/").status_code == 200
    third = client.get("/docs/")
    assert third.status_code == 429
    assert "retry-after" in third.headers


def test_rate_limit_window_resets() -> None:
    """A new window starts once the old one has elapsed."""
    now = [0.0]
    limiter = RateLimitMiddleware(app=None, limit=1, window=10.0, clock=lambda: now[0])  # type: ignore[arg-type]
    assert limiter.hit("1.2.3.4")[0]
    assert not limiter.hit("1.2.3.4")[0]
    assert limiter.hit("5.6.7.8")[0]
    now[0] = 10.0
    allowed, remaining, reset = limiter.hit("1.2.3.4")
    assert allowed
    assert remaining == 0
    assert reset == 10


def test_security_headers_present(client: TestClient) -> None:
    """Hardening headers are added to listings and errors alike."""
    for path in ("/docs/", "/nope"):
        response = client.get(path)
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["cross-origin-resource-policy"] == "same-site"
        assert "default-src 'self'" in response.headers["content-security-policy"]


def test_request_id_is_returned(client: TestClient) -> None:
    """Every response carries a request id, health checks included."""
    listing = client.get("/docs/")
    health = client.get("/api/v1/health/live")
    assert len(listing.headers["x-request-id"]) == 32
    assert health.headers["x-request-id"]
    assert listing.headers["x-request-id"] != health.headers["x-request-id"]


def test_request_id_from_client_is_reused(client: TestClient) -> None:
    """A well-formed incoming id is echoed, an oversized one is replaced."""
    echoed = client.get("/docs/", headers={"X-Request-ID": "abc-123"})
    assert echoed.headers["x-request-id"] == "abc-123"
    replaced = client.get("/docs/", headers={"X-Request-ID": "x" * 65})
    assert replaced.headers["x-request-id"] != "x" * 65


def test_request_id_on_error_responses(client: TestClient) -> None:
    """Refused requests can be correlated with the server log too."""
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.headers["x-request-id"]
