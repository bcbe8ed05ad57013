"""Pydantic schemas for clinical insights and observations."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from pain_pattern_server.schemas.base import CamelModel
from pain_pattern_server.schemas.patterns import ConfidenceLevel, PainTrend


class CoefficientStrength(str, Enum):
    """Strength bucket of a Pearson coefficient."""

    VERY_WEAK = "very weak"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"
    VERY_STRONG = "very strong"


class CoefficientDirection(str, Enum):
    """Sign of a Pearson coefficient."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NONE = "none"


class InterventionType(str, Enum):
    """Kind of relief method."""

    MEDICATION = "medication"
    TREATMENT = "treatment"
    COPING_STRATEGY = "coping_strategy"
    LIFESTYLE = "lifestyle"


class IndicatorType(str, Enum):
    """What a predictive indicator warns about."""

    WARNING = "warning"
    ONSET = "onset"
    ESCALATION = "escalation"


class AnomalySeverity(str, Enum):
    """Severity of a pain anomaly."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ObservationPriority(str, Enum):
    """Priority level for observations."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"
    POSITIVE = "positive"


class ObservationCategory(str, Enum):
    """Category of observation."""

    ONBOARDING = "onboarding"
    EPISODE = "episode"
    TRIGGER = "trigger"
    MEDICATION = "medication"
    QUALITY_OF_LIFE = "quality_of_life"
    TREND = "trend"


class CorrelationResult(CamelModel):
    """Pearson correlation between pain and another variable."""

    variable1: str = Field(description="First variable")
    variable2: str = Field(description="Second variable")
    coefficient: float = Field(ge=-1, le=1, description="Pearson coefficient, 3 decimals")
    strength: CoefficientStrength
    direction: CoefficientDirection
    p_value: float | None = Field(default=None, description="Two-sided p-value, if computable")
    sample_size: int = Field(description="Number of paired samples")


class InterventionScore(CamelModel):
    """Effectiveness of a relief method."""

    intervention: str
    type: InterventionType
    effectiveness_score: int = Field(ge=0, le=100, description="Composite score (0-100)")
    usage_count: int
    average_pain_reduction: float = Field(description="Pain at use minus pain 2-6 h later")
    success_rate: int = Field(ge=0, le=100, description="Percent of follow-ups with less pain")
    confidence: ConfidenceLevel
    recommendation: str


class HourCount(CamelModel):
    """Occurrences at one hour of the day."""

    hour: int = Field(ge=0, le=23)
    count: int


class WeekdayCount(CamelModel):
    """Occurrences on one day of the week."""

    day: str
    count: int


class TriggerPattern(CamelModel):
    """When and how strongly a trigger shows up."""

    trigger: str
    frequency: int = Field(description="Entries carrying the trigger")
    average_pain_increase: float = Field(description="Mean pain with trigger minus overall mean")
    time_of_day_pattern: list[HourCount] = Field(
        default_factory=list, description="Top three hours of the day"
    )
    day_of_week_pattern: list[WeekdayCount] = Field(default_factory=list)
    associated_symptoms: list[str] = Field(default_factory=list)
    risk_score: int = Field(ge=0, le=100)


class PredictiveIndicator(CamelModel):
    """Early-warning signal found in the history."""

    indicator: str
    type: IndicatorType
    confidence: float = Field(ge=0, le=1)
    lead_time: str = Field(description="How far ahead the signal tends to appear")
    description: str


class PainAnomaly(CamelModel):
    """An entry whose pain is far outside the usual range."""

    timestamp: datetime
    metric: str = "pain_intensity"
    value: float
    z_score: float
    expected_range: tuple[float, float] = Field(description="Mean +/- 2 standard deviations")
    severity: AnomalySeverity
    context: str


class WeeklyClinicalBrief(CamelModel):
    """Summary of the past week for a clinician.

    Compares the last 7 days with the 7 days before them.
    """

    week_start_date: datetime
    week_end_date: datetime
    overall_trend: PainTrend
    avg_pain_level: float
    pain_level_change: float
    key_insights: list[str] = Field(default_factory=list)
    top_triggers: list[str] = Field(default_factory=list)
    effective_interventions: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)


class Observation(CamelModel):
    """Natural language observation about the pain history."""

    category: ObservationCategory = Field(description="Observation category")
    priority: ObservationPriority = Field(description="Priority level")
    fact: str = Field(description="The factual observation")
    context: str | None = Field(default=None, description="Additional context")
    trend: PainTrend | None = Field(default=None, description="Associated trend")


class Suggestion(CamelModel):
    """Actionable suggestion based on insights."""

    action: str = Field(description="Suggested action identifier")
    description: str = Field(description="Human-readable description")
    confidence: float = Field(ge=0, le=1, description="Confidence in suggestion (0-1)")
    reason: str = Field(description="Why this is suggested")


class ObservationReport(CamelModel):
    """Observations and suggestions for one analysis."""

    observations: list[Observation] = Field(default_factory=list)
    suggestions: list[Suggestion] = Field(default_factory=list)
