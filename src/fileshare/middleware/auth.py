"""HTTP basic authentication middleware."""

import base64
import binascii
import secrets
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

PUBLIC_PATHS = frozenset(
    {
        "/api/v1/health/live",
        "/api/v1/health/ready",
    }
)


def parse_basic_credentials(header: str) -> tuple[str, str] | None:
    """Extract user and password from an Authorization header.

    Args:
        header: Raw header value.

    Returns:
        (user, password), or None if the header is not valid basic auth.
    """
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """Middleware that challenges clients for basic auth credentials.

    Health check endpoints are excluded to allow monitoring without auth.
    """

    def __init__(
        self,
        app: Callable[..., Awaitable[Response]],
        users: dict[str, str],
        realm: str,
    ) -> None:
        """Initialize middleware with the accepted credentials.

        Args:
            app: ASGI application.
            users: Mapping of user name to password.
            realm: Realm announced in the challenge.
        """
        super().__init__(app)  # type: ignore[arg-type]
        self._users = users
        self._challenge = f'Basic realm="{realm}", charset="UTF-8"'

    def _authorized(self, user: str, password: str) -> bool:
        expected = self._users.get(user)
        # Compare against a dummy for unknown users to keep timing uniform.
        candidate = expected if expected is not None else secrets.token_hex(16)
        matched = secrets.compare_digest(
            password.encode("utf-8"), candidate.encode("utf-8")
        )
        return matched and expected is not None

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Validate credentials for non-public endpoints.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response, or 401 with a challenge if authentication fails.
        """
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        credentials = parse_basic_credentials(request.headers.get("Authorization", ""))
        if credentials is None or not self._authorized(*credentials):
            return PlainTextResponse(
                "Unauthorized",
                status_code=401,
                headers={"WWW-Authenticate": self._challenge},
            )

        return await call_next(request)
