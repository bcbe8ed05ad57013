"""Pydantic schemas for entries, analysis results and API payloads."""

from pain_pattern_server.schemas.entries import PainEntry, QualityOfLife
from pain_pattern_server.schemas.insights import (
    CorrelationResult,
    InterventionScore,
    Observation,
    ObservationReport,
    PainAnomaly,
    PredictiveIndicator,
    Suggestion,
    TriggerPattern,
    WeeklyClinicalBrief,
)
from pain_pattern_server.schemas.patterns import (
    AnalysisConfig,
    BaselineResult,
    FactorCorrelation,
    PainEpisode,
    PatternAnalysisResult,
    QoLDissonance,
    QoLPattern,
    TrendPoint,
    TriggerBundle,
)
from pain_pattern_server.schemas.requests import AnalysisRequest

__all__ = [
    "AnalysisConfig",
    "AnalysisRequest",
    "BaselineResult",
    "CorrelationResult",
    "FactorCorrelation",
    "InterventionScore",
    "Observation",
    "ObservationReport",
    "PainAnomaly",
    "PainEntry",
    "PainEpisode",
    "PatternAnalysisResult",
    "PredictiveIndicator",
    "QoLDissonance",
    "QoLPattern",
    "QualityOfLife",
    "Suggestion",
    "TrendPoint",
    "TriggerBundle",
    "TriggerPattern",
    "WeeklyClinicalBrief",
]
