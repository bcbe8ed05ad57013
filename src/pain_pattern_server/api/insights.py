"""Clinical insights API endpoints."""

from typing import Any

from litestar import Router, post
from litestar.status_codes import HTTP_200_OK

from pain_pattern_server.api.patterns import validate_entry_count
from pain_pattern_server.core.config import settings
from pain_pattern_server.schemas.requests import AnalysisRequest
from pain_pattern_server.services.cleaning import clean_entries
from pain_pattern_server.services.clinical import ClinicalInsightsService
from pain_pattern_server.services.observations import ObservationGenerator
from pain_pattern_server.services.pattern import PatternAnalyzer


@post("/insights/brief", status_code=HTTP_200_OK, sync_to_thread=True)
def weekly_brief(data: AnalysisRequest) -> dict[str, Any]:
    """Weekly clinical brief: the last 7 days against the 7 before.

    Includes trend, average pain, key insights, top triggers, effective
    interventions, concerns, recommendations and next steps.
    """
    validate_entry_count(data)
    entries = clean_entries(data.entries, settings.get_timezone())
    brief = ClinicalInsightsService().generate_weekly_clinical_brief(entries, now=data.now)
    return brief.to_wire()


@post("/insights/interventions", status_code=HTTP_200_OK, sync_to_thread=True)
def intervention_scores(data: AnalysisRequest) -> list[dict[str, Any]]:
    """Effectiveness score (0-100) for each relief method used at least 3 times."""
    validate_entry_count(data)
    entries = clean_entries(data.entries, settings.get_timezone())
    return [score.to_wire() for score in ClinicalInsightsService().score_interventions(entries)]


@post("/insights/indicators", status_code=HTTP_200_OK, sync_to_thread=True)
def predictive_indicators(data: AnalysisRequest) -> list[dict[str, Any]]:
    """Early-warning indicators (needs at least 20 entries).

    Detects rapid escalation, morning exacerbation, activity-induced pain
    and triggers recurring in the most recent entries.
    """
    validate_entry_count(data)
    entries = clean_entries(data.entries, settings.get_timezone())
    service = ClinicalInsightsService()
    return [indicator.to_wire() for indicator in service.identify_predictive_indicators(entries)]


@post("/insights/observations", status_code=HTTP_200_OK, sync_to_thread=True)
def observations(data: AnalysisRequest) -> dict[str, Any]:
    """Natural language observations and suggestions for the posted entries.

    Example response structure:
    ```json
    {
      "observations": [
        {
          "category": "trigger",
          "priority": "high",
          "fact": "Stress is linked to pain 4.0 points higher",
          "context": "Seen in 10 entries, 100% of them above baseline"
        }
      ],
      "suggestions": [
        {
          "action": "manage_trigger",
          "confidence": 0.95,
          "reason": "Pain averages 4.0 points higher with stress"
        }
      ]
    }
    ```
    """
    validate_entry_count(data)
    result = PatternAnalyzer(data.config).analyze(data.entries, now=data.now)
    return ObservationGenerator().build_report(result).to_wire()


# Router for insights endpoints
insights_router = Router(
    path="/",
    route_handlers=[
        weekly_brief,
        intervention_scores,
        predictive_indicators,
        observations,
    ],
    tags=["Insights"],
)
