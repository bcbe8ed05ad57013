"""Health check endpoint."""

from typing import Any

from litestar import Router, get
from litestar.status_codes import HTTP_200_OK

from pain_pattern_server import __version__
from pain_pattern_server.core.config import settings


@get("/health", status_code=HTTP_200_OK, sync_to_thread=False)
def health_check() -> dict[str, Any]:
    """Liveness check.

    The engine is stateless, so being able to answer is the whole check.
    Reports the analysis limits callers need to size their requests.
    """
    return {
        "status": "ok",
        "version": __version__,
        "analysisTimezone": settings.analysis_timezone or "UTC",
        "maxEntriesPerRequest": settings.max_entries_per_request,
    }


health_router = Router(path="/", route_handlers=[health_check])
