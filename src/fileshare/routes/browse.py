"""Directory listing and file download endpoints."""
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, Response

from fileshare.files.browse import Download, Failure, browse
from fileshare.files.registry import SectionRegistry
from fileshare.files.schemas import ErrorResponse
from fileshare.render import render_listing

router = APIRouter(tags=["files"])


# Reserved characters keep their meaning; anything else outside the
# unreserved set, raw non-ASCII bytes included, is percent-encoded.
_PATH_SAFE = "/%!$&'()*+,;=:@"


def raw_request_path(request: Request) -> str:
    """Percent-encoded request path as sent by the client.

    Starlette decodes ``scope["path"]``; the resolver needs the raw form so
    it can reject malformed escapes itself. Bytes the client sent unescaped
    are escaped here so they are decoded exactly once downstream.

    Args:
        request: Incoming HTTP request.

    Returns:
        Raw path without the query string.
    """
    raw = request.scope.get("raw_path")
    if raw:
        return quote(raw.split(b"?", 1)[0], safe=_PATH_SAFE)
    return quote(request.scope["path"], safe="/")


@router.api_route(
    "/{path:path}",
    methods=["GET", "HEAD"],
    response_class=HTMLResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Browse or download",
    description="Lists a directory as HTML or downloads a file.",
)
async def serve_path(request: Request, path: str) -> Response:
    """Serve a directory listing or a file download.

    Args:
        request: Incoming HTTP request.
        path: Path captured by the route, unused in favour of the raw path.

    Returns:
        HTML listing or streamed file.

    Raises:
        HTTPException: 400 for invalid or traversing paths, 404 for missing
            or disallowed paths, 500 for unexpected filesystem errors.
    """
    registry: SectionRegistry = request.app.state.registry
    outcome = await browse(registry, raw_request_path(request))

    if isinstance(outcome, Failure):
        raise HTTPException(status_code=outcome.status_code, detail=outcome.message)

    if isinstance(outcome, Download):
        target = outcome.target
        return FileResponse(
            target.absolute_path,
            filename=target.suggested_filename,
            content_disposition_type=target.disposition,
            headers={"Cache-Control": target.cache_control},
        )

    return HTMLResponse(render_listing(outcome.listing))
