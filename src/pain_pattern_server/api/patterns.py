"""Pattern analysis API endpoints."""

from typing import Any

import structlog
from litestar import Router, post
from litestar.exceptions import ValidationException
from litestar.status_codes import HTTP_200_OK

from pain_pattern_server.core.config import settings
from pain_pattern_server.schemas.requests import AnalysisRequest
from pain_pattern_server.services.pattern import PatternAnalyzer

logger = structlog.get_logger()


def validate_entry_count(data: AnalysisRequest) -> AnalysisRequest:
    """Reject requests carrying more entries than the server accepts.

    Args:
        data: Parsed request body

    Returns:
        The same request

    Raises:
        ValidationException: If the entry limit is exceeded
    """
    limit = settings.max_entries_per_request
    if len(data.entries) > limit:
        raise ValidationException(
            f"Too many entries: {len(data.entries)} (maximum {limit} per request)"
        )
    return data


@post("/patterns/analyze", status_code=HTTP_200_OK, sync_to_thread=True)
def analyze_patterns_endpoint(data: AnalysisRequest) -> dict[str, Any]:
    """Run the full pattern analysis over the posted entries.

    Returns (camelCase):
    - Cleaned entries, baseline, daily and weekly trend, trend summary
    - Episodes (flares) with severity and recovery time
    - Trigger, symptom, medication and location correlations
    - Trigger bundles
    - Quality-of-life patterns (including lagged sleep effects) and dissonances
    - Metadata (data window, data quality, cautions) and the effective config

    Invalid entries are dropped, not rejected. Unknown or invalid config
    options fall back to their defaults.
    """
    validate_entry_count(data)
    result = PatternAnalyzer(data.config).analyze(data.entries, now=data.now)
    logger.info("Analysis served", entries=len(data.entries), cleaned=result.meta.entry_count)
    return result.to_wire()


# Router for pattern endpoints
patterns_router = Router(
    path="/",
    route_handlers=[analyze_patterns_endpoint],
    tags=["Patterns"],
)
