"""API routes."""

from litestar import Router

from pain_pattern_server.api.health import health_router
from pain_pattern_server.api.insights import insights_router
from pain_pattern_server.api.patterns import patterns_router
from pain_pattern_server.core.config import settings

# Versioned API routers, mounted under the configured prefix (/api/v1)
_v1_routers = [
    patterns_router,  # Full pattern analysis
    insights_router,  # Clinical brief, interventions, indicators, observations
]

api_v1_router = Router(path=settings.api_prefix, route_handlers=_v1_routers)

# Export: health (root), v1 (prefixed)
api_routers = [health_router, api_v1_router]

__all__ = ["api_routers"]
