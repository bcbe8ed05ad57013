"""Litestar application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from litestar import Litestar
from litestar.openapi import OpenAPIConfig

from pain_pattern_server import __version__
from pain_pattern_server.api import api_routers
from pain_pattern_server.core.config import settings
from pain_pattern_server.core.logging import configure_logging

# Configure structured logging
configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: Litestar) -> AsyncIterator[None]:
    """Application lifespan manager.

    The engine keeps no state, so this only logs startup and shutdown.
    """
    logger.info(
        "Starting pain-pattern-server",
        version=__version__,
        analysis_timezone=settings.analysis_timezone or "UTC",
        max_entries_per_request=settings.max_entries_per_request,
    )

    yield

    logger.info("Shutdown complete")


def create_app() -> Litestar:
    """Create Litestar application.

    Returns:
        Configured Litestar app instance
    """
    return Litestar(
        route_handlers=[*api_routers],
        lifespan=[lifespan],
        openapi_config=OpenAPIConfig(
            title="pain-pattern-server API",
            version=__version__,
            description="Offline pattern recognition and clinical insights for pain-tracking data",
        ),
        debug=settings.log_level == "DEBUG",
    )


# Application instance
app = create_app()
