"""Analysis services."""

from pain_pattern_server.services.clinical import ClinicalInsightsService
from pain_pattern_server.services.observations import ObservationGenerator
from pain_pattern_server.services.pattern import PatternAnalyzer, analyze_patterns

__all__ = [
    "ClinicalInsightsService",
    "ObservationGenerator",
    "PatternAnalyzer",
    "analyze_patterns",
]
