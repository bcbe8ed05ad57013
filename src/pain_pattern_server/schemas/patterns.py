"""Pydantic schemas for the pattern analysis result."""

from collections.abc import Mapping
from datetime import date as date_type
from datetime import datetime
from enum import Enum
from typing import Any

import structlog
from pydantic import Field, ValidationError, field_validator

from pain_pattern_server.schemas.base import CamelModel
from pain_pattern_server.schemas.entries import PainEntry

logger = structlog.get_logger()

# Upper bounds for day-count options, kept well inside date arithmetic range
MAX_BASELINE_WINDOW_DAYS = 36500
MAX_LAG_DAYS = 30


class ConfidenceLevel(str, Enum):
    """Coarse confidence tier."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CorrelationStrength(str, Enum):
    """Correlation strength bucket."""

    NONE = "none"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class CorrelationDirection(str, Enum):
    """Direction of a factor's effect on pain."""

    INCREASES = "increases"
    DECREASES = "decreases"
    NEUTRAL = "neutral"


class FactorKind(str, Enum):
    """Which factor set a correlation was computed over."""

    TRIGGER = "trigger"
    SYMPTOM = "symptom"
    MEDICATION = "medication"
    LOCATION = "location"


class EpisodeSeverity(str, Enum):
    """Severity tier of a pain episode."""

    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class QoLMetric(str, Enum):
    """Quality-of-life dimensions."""

    SLEEP = "sleep"
    MOOD = "mood"
    ACTIVITY = "activity"
    FATIGUE = "fatigue"  # Declared, not yet recorded on entries


class PainTrend(str, Enum):
    """Direction of the pain trend (lower pain is better)."""

    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class QoLTrend(str, Enum):
    """Direction of a quality-of-life metric."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class DissonanceType(str, Enum):
    """Kinds of pain/QoL mismatch."""

    PAIN_STABLE_QOL_DECLINING = "pain_stable_qol_declining"
    PAIN_HIGH_ACTIVITY_HIGH = "pain_high_activity_high"
    PAIN_IMPROVING_QOL_STAGNANT = "pain_improving_qol_stagnant"


class DissonanceSeverity(str, Enum):
    """Severity of a dissonance."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AnalysisConfig(CamelModel):
    """Tunable thresholds for the pattern engine.

    Callers may override any subset; see ``from_overrides``.
    """

    min_entries_for_trend: int = Field(
        default=7, description="Below this, trends are low-confidence and a caution is emitted"
    )
    min_support_for_correlation: int = Field(
        default=8, description="Minimum 'with' samples to report a correlation or QoL pattern"
    )
    min_confidence_for_display: float = Field(
        default=0.6, description="Minimum evidential-consistency fraction to surface a correlation"
    )
    episode_pain_threshold: float = Field(
        default=6, description="Absolute floor for the episode threshold"
    )
    episode_min_length_days: int = Field(
        default=2, description="Minimum consecutive high-pain days for an episode"
    )
    baseline_window_days: int = Field(default=30, description="Recency window for the baseline")
    enable_lagged_correlations: bool = Field(
        default=True, description="Detect delayed effects (sleep -> next-day pain)"
    )
    max_lag_days: int = Field(default=3, description="Maximum lag tested for delayed effects")
    enable_qol_dissonance: bool = Field(default=True, description="Run dissonance detection")

    @field_validator("min_entries_for_trend", "min_support_for_correlation")
    @classmethod
    def _clamp_non_negative(cls, value: int) -> int:
        return max(0, value)

    @field_validator("baseline_window_days")
    @classmethod
    def _clamp_window(cls, value: int) -> int:
        return min(MAX_BASELINE_WINDOW_DAYS, max(0, value))

    @field_validator("max_lag_days")
    @classmethod
    def _clamp_lag(cls, value: int) -> int:
        return min(MAX_LAG_DAYS, max(0, value))

    @field_validator("episode_min_length_days")
    @classmethod
    def _clamp_min_length(cls, value: int) -> int:
        return max(1, value)

    @field_validator("min_confidence_for_display")
    @classmethod
    def _clamp_fraction(cls, value: float) -> float:
        return min(1.0, max(0.0, value))

    @field_validator("episode_pain_threshold")
    @classmethod
    def _clamp_pain(cls, value: float) -> float:
        return min(10.0, max(0.0, value))

    @classmethod
    def from_overrides(
        cls, overrides: "Mapping[str, Any] | AnalysisConfig | None" = None
    ) -> "AnalysisConfig":
        """Merge caller overrides over the defaults.

        Unknown options and values that fail validation are ignored (the
        default is kept) so a bad option never fails a whole analysis.

        Args:
            overrides: Partial configuration, snake_case or camelCase keys

        Returns:
            Effective configuration
        """
        if overrides is None:
            return cls()
        if isinstance(overrides, cls):
            return overrides

        names: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            names[name] = name
            if field.alias:
                names[field.alias] = name

        accepted: dict[str, Any] = {}
        for key, value in overrides.items():
            name = names.get(key)
            if name is None:
                logger.warning("Ignoring unknown analysis option", option=key)
                continue
            try:
                cls.model_validate({name: value})
            except ValidationError:
                logger.warning("Ignoring invalid analysis option", option=key, value=repr(value))
                continue
            accepted[name] = value

        return cls.model_validate(accepted)


class StatisticalSummary(CamelModel):
    """Basic descriptive statistics."""

    mean: float
    median: float
    mode: float
    std_dev: float
    min: float
    max: float
    count: int


class BaselineResult(CamelModel):
    """Reference pain level all comparisons are relative to."""

    value: float = Field(description="Baseline pain value")
    method: str = Field(default="median", description="Aggregation used")
    confidence: ConfidenceLevel = Field(description="Confidence tier from sample count")
    window_days: int = Field(description="Days covered by the entries used")
    entry_count: int = Field(description="Entries used")


class TrendPoint(CamelModel):
    """One calendar day (or trailing week) of aggregated pain."""

    date: date_type = Field(description="Calendar day (last day of the window for weekly points)")
    value: float = Field(description="Mean pain")
    count: int = Field(description="Entries contributing to this point")
    range: tuple[float, float] = Field(description="Min/max pain (or daily means for weekly)")
    std_dev: float | None = Field(default=None, description="Population standard deviation")


class TrendSummary(CamelModel):
    """Overall direction of the daily trend."""

    slope: float = Field(description="Pain change per day (positive = worsening)")
    direction: PainTrend = Field(description="Trend direction")
    baseline: float = Field(description="Baseline value for comparison")
    confidence: ConfidenceLevel = Field(description="Coverage-based confidence")
    points: int = Field(description="Daily points used")


class PainEpisode(CamelModel):
    """A sustained run of high-pain days (flare)."""

    id: str
    start: date_type
    end: date_type
    peak_pain: int = Field(ge=0, le=10, description="Rounded peak of daily means")
    avg_pain: float = Field(description="Mean of daily means, 1 decimal")
    entry_count: int = Field(description="Entries recorded during the episode")
    recovery_days: int | None = Field(
        default=None, description="Days until pain fell below baseline, None if not yet"
    )
    duration_days: int = Field(description="Number of daily points in the run")
    severity: EpisodeSeverity
    associated_triggers: list[str] = Field(default_factory=list)
    associated_locations: list[str] = Field(default_factory=list)


class FactorCorrelation(CamelModel):
    """Association between a factor (trigger, symptom, ...) and pain."""

    key: str = Field(description="Factor label as recorded")
    label: str = Field(description="Human-readable label")
    kind: FactorKind
    delta_pain: float = Field(description="Mean pain with factor minus without")
    support: int = Field(description="Entries carrying the factor")
    confidence: float = Field(description="Fraction of 'with' samples above baseline")
    strength: CorrelationStrength
    direction: CorrelationDirection
    stability_score: float = Field(description="1 - variance/10, floored at 0")
    lag_days: int | None = None


class TriggerBundle(CamelModel):
    """A pair of triggers that co-occur."""

    id: str
    triggers: list[str]
    combined_delta: float = Field(description="Mean pain while both triggers are present")
    co_occurrence: int
    strength: CorrelationStrength


class QoLPattern(CamelModel):
    """Pain difference between good and poor days of a QoL dimension."""

    id: str
    description: str
    metric: QoLMetric
    correlation: CorrelationStrength
    evidence_count: int
    delta: float
    confidence: ConfidenceLevel
    condition: str | None = None
    lag_days: int | None = None


class QoLDissonance(CamelModel):
    """Mismatch between the pain trend and a QoL trend."""

    type: DissonanceType
    description: str
    pain_trend: PainTrend
    qol_trend: QoLTrend
    affected_metrics: list[QoLMetric]
    severity: DissonanceSeverity
    recommendation: str


class DataWindow(CamelModel):
    """First and last timestamps analysed."""

    start: datetime
    end: datetime


class InsightMeta(CamelModel):
    """Metadata about an analysis run."""

    data_window: DataWindow
    entry_count: int
    data_quality: ConfidenceLevel
    cautions: list[str] = Field(default_factory=list)
    generated_at: datetime


class PatternAnalysisResult(CamelModel):
    """Everything the engine derives from one set of entries."""

    cleaned_entries: list[PainEntry]
    baseline: BaselineResult
    daily_trend: list[TrendPoint]
    weekly_trend: list[TrendPoint]
    trend_summary: TrendSummary
    episodes: list[PainEpisode]
    trigger_correlations: list[FactorCorrelation]
    symptom_correlations: list[FactorCorrelation]
    medication_correlations: list[FactorCorrelation]
    location_correlations: list[FactorCorrelation]
    trigger_bundles: list[TriggerBundle]
    qol_patterns: list[QoLPattern]
    lagged_qol_patterns: list[QoLPattern]
    qol_dissonances: list[QoLDissonance]
    meta: InsightMeta
    config: AnalysisConfig
