"""Per-client fixed-window rate limiting middleware."""
import math
import time
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

logger = structlog.get_logger()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware that caps requests per client address per time window.

    Counters live in process memory and reset when a client's window ends.
    All reads and writes happen between awaits, so no lock is needed on the
    single event loop.

    Attributes:
        limit: Requests allowed per window.
        window: Window length in seconds.
    """

    def __init__(
        self,
        app: Callable[..., Awaitable[Response]],
        limit: int,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize rate limiter.

        Args:
            app: ASGI application.
            limit: Requests allowed per window.
            window: Window length in seconds.
            clock: Monotonic time source.
        """
        super().__init__(app)  # type: ignore[arg-type]
        self.limit = limit
        self.window = window
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._next_prune = 0.0

    def _prune(self, now: float) -> None:
        if now < self._next_prune:
            return
        self._windows = {
            client: (start, count)
            for client, (start, count) in self._windows.items()
            if now - start < self.window
        }
        self._next_prune = now + self.window

    def hit(self, client: str) -> tuple[bool, int, int]:
        """Count one request for a client.

        Args:
            client: Client address.

        Returns:
            (allowed, remaining requests, seconds until the window resets).
        """
        now = self._clock()
        self._prune(now)

        start, count = self._windows.get(client, (now, 0))
        if now - start >= self.window:
            start, count = now, 0
        count += 1
        self._windows[client] = (start, count)

        reset = max(0, math.ceil(start + self.window - now))
        return count <= self.limit, max(0, self.limit - count), reset

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Reject requests over the limit with 429.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response carrying RateLimit-* headers.
        """
        client = request.client.host if request.client else "unknown"
        allowed, remaining, reset = self.hit(client)
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset),
        }

        if not allowed:
            logger.warning("rate_limited", client=client, path=request.url.path)
            return PlainTextResponse(
                "Too many requests",
                status_code=429,
                headers={**headers, "Retry-After": str(reset)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
