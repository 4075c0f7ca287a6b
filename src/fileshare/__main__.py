"""Entry point for the file server."""

import asyncio
import contextlib
import sys

import structlog
import uvicorn

from fileshare.app import create_app
from fileshare.config import Settings
from fileshare.files.registry import RegistryError
from fileshare.logging import configure_logging

logger = structlog.get_logger()


async def serve(settings: Settings) -> None:
    """Run uvicorn until SIGTERM or SIGINT, draining in-flight requests.

    Args:
        settings: Server configuration.
    """
    app = create_app(settings)

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
        proxy_headers=settings.trust_proxy,
        forwarded_allow_ips="*" if settings.trust_proxy else None,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Entry point for python -m fileshare."""
    settings = Settings()
    configure_logging(debug=settings.debug)

    try:
        with contextlib.suppress(KeyboardInterrupt):
            asyncio.run(serve(settings))
    except RegistryError as e:
        logger.error("invalid_section_table", key=e.key, error=str(e))
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
