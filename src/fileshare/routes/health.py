"""Health check endpoints for liveness and readiness probes."""
import os
from pathlib import Path
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fileshare.files.registry import SectionRegistry

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual section root check result.

    Attributes:
        name: Section key and the directory behind it.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness probe.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        checks: List of individual section checks.
    """

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]


def _check_directory(key: str, path: Path) -> ReadinessCheck:
    """Verify a section root exists and can be listed.

    Args:
        key: Section key, used in the check name.
        path: Physical root of the section.

    Returns:
        Check result with status and optional error message.
    """
    name = f"section:{key}"
    try:
        if not path.is_dir():
            return ReadinessCheck(name=name, status="failed", message="Directory not found")
        with os.scandir(path):
            pass
        return ReadinessCheck(name=name, status="ok")
    except PermissionError:
        return ReadinessCheck(name=name, status="failed", message="Permission denied")
    except OSError as e:
        return ReadinessCheck(name=name, status="failed", message=e.strerror or "I/O error")


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Returns 200 if every section root is a readable directory, 503 otherwise.
    Physical paths are not included in the response.

    Returns:
        Readiness status with individual check results.
    """
    registry: SectionRegistry = request.app.state.registry
    checks = [
        _check_directory(section.key, section.physical_root)
        for section in registry.sections
    ]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
