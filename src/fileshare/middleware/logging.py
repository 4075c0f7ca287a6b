"""Access logging with a per-request id bound into every log event."""
import time
import uuid
from collections.abc import Callable
from typing import Awaitable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

QUIET_PREFIX = "/api/v1/health/"


def request_id_for(request: Request) -> str:
    """Reuse a sane client-supplied request id, otherwise mint one."""
    supplied = request.headers.get(REQUEST_ID_HEADER, "")
    if 0 < len(supplied) <= 64 and supplied.isascii() and supplied.isprintable():
        return supplied
    return uuid.uuid4().hex


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds a request id for the pipeline's log events and writes one
    access line per request.

    Health probes get the id header but no access line.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and log details.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response from handler, carrying the request id header.
        """
        request_id = request_id_for(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
        response.headers[REQUEST_ID_HEADER] = request_id

        if request.url.path.startswith(QUIET_PREFIX):
            return response

        # 5xx means a filesystem fault worth an operator's attention.
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "http_request",
            request_id=request_id,
            method=request.method,
            path=request.scope.get("raw_path", b"").decode("latin-1") or request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            length=response.headers.get("content-length"),
            client=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
        return response
