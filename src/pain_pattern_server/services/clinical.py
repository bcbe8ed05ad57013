"""Clinical insights: intervention scoring, trigger patterns and the weekly brief."""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, tzinfo

import structlog

from pain_pattern_server.core.config import settings
from pain_pattern_server.schemas.entries import PainEntry, ensure_aware
from pain_pattern_server.schemas.insights import (
    AnomalySeverity,
    CoefficientDirection,
    CoefficientStrength,
    CorrelationResult,
    HourCount,
    IndicatorType,
    InterventionScore,
    InterventionType,
    PainAnomaly,
    PredictiveIndicator,
    TriggerPattern,
    WeekdayCount,
    WeeklyClinicalBrief,
)
from pain_pattern_server.schemas.patterns import ConfidenceLevel, PainTrend
from pain_pattern_server.services.statistics import (
    detect_outliers,
    mean,
    pearson,
    round_half_up,
    std_dev,
)

logger = structlog.get_logger()

# Minimum entries for each analysis
MIN_ENTRIES_CORRELATION = 10
MIN_ENTRIES_PREDICTIVE = 20
MIN_ENTRIES_ANOMALY = 7
MIN_INTERVENTION_USES = 3
MIN_TRIGGER_OCCURRENCES = 3

# Follow-up window used to measure an intervention's effect
FOLLOW_UP_MIN = timedelta(hours=2)
FOLLOW_UP_MAX = timedelta(hours=6)

ANOMALY_Z_THRESHOLD = 2.0
BRIEF_TREND_THRESHOLD = 0.5
EFFECTIVE_INTERVENTION_SCORE = 60

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

INTERVENTION_KEYWORDS: dict[InterventionType, tuple[str, ...]] = {
    InterventionType.MEDICATION: (
        "medication",
        "pill",
        "drug",
        "ibuprofen",
        "tylenol",
        "acetaminophen",
    ),
    InterventionType.TREATMENT: ("therapy", "massage", "acupuncture", "chiropractic", "physical"),
    InterventionType.COPING_STRATEGY: (
        "meditation",
        "breathing",
        "mindfulness",
        "relaxation",
        "distraction",
    ),
}


@dataclass
class _InterventionStats:
    uses: int = 0
    pain_before: list[int] = field(default_factory=list)
    pain_after: list[int] = field(default_factory=list)
    successes: int = 0


def categorize_intervention(intervention: str) -> InterventionType:
    """Guess the intervention type from keywords in its label."""
    lower = intervention.lower()
    for intervention_type, keywords in INTERVENTION_KEYWORDS.items():
        if any(keyword in lower for keyword in keywords):
            return intervention_type
    return InterventionType.LIFESTYLE


def intervention_recommendation(score: float) -> str:
    """Recommendation text for an effectiveness score."""
    if score >= 70:
        return "Highly effective - continue regular use"
    elif score >= 50:
        return "Moderately effective - may combine with other interventions"
    elif score >= 30:
        return "Limited effectiveness - consider alternatives"
    return "Low effectiveness - discuss alternatives with healthcare provider"


def coefficient_strength(coefficient: float) -> CoefficientStrength:
    """Bucket |r| at 0.2/0.4/0.6/0.8."""
    magnitude = abs(coefficient)
    if magnitude < 0.2:
        return CoefficientStrength.VERY_WEAK
    elif magnitude < 0.4:
        return CoefficientStrength.WEAK
    elif magnitude < 0.6:
        return CoefficientStrength.MODERATE
    elif magnitude < 0.8:
        return CoefficientStrength.STRONG
    return CoefficientStrength.VERY_STRONG


def coefficient_direction(coefficient: float) -> CoefficientDirection:
    """Sign of r, with |r| <= 0.1 treated as no direction."""
    if coefficient > 0.1:
        return CoefficientDirection.POSITIVE
    elif coefficient < -0.1:
        return CoefficientDirection.NEGATIVE
    return CoefficientDirection.NONE


class ClinicalInsightsService:
    """Clinician-facing analytics over cleaned pain entries.

    Provides:
    - Pearson correlation matrix (time of day, weekday, previous pain, activity)
    - Intervention effectiveness scoring
    - Trigger pattern recognition
    - Predictive indicators
    - Pain anomaly detection
    - Weekly clinical brief

    All methods expect entries already cleaned and sorted (see
    ``clean_entries``).
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        """Initialize clinical insights service.

        Args:
            tz: Timezone for hour-of-day and weekday, defaults to the
                configured analysis timezone
        """
        self.tz = tz if tz is not None else settings.get_timezone()
        self.logger = logger.bind(service="clinical")

    def _local(self, entry: PainEntry) -> datetime:
        if self.tz is not None:
            return entry.timestamp.astimezone(self.tz)
        return entry.timestamp

    def calculate_correlation_matrix(self, entries: Sequence[PainEntry]) -> list[CorrelationResult]:
        """Correlate pain with time of day, weekday, previous pain and activity.

        Args:
            entries: Cleaned entries

        Returns:
            Correlations with at least 10 samples; empty below 10 entries
        """
        if len(entries) < MIN_ENTRIES_CORRELATION:
            self.logger.debug(
                "Insufficient data for correlation matrix",
                entries=len(entries),
                required=MIN_ENTRIES_CORRELATION,
            )
            return []

        pain = [e.pain_level for e in entries]
        local_times = [self._local(e) for e in entries]

        results = [
            self._correlate("Pain Level", "Hour of Day", pain, [t.hour for t in local_times]),
            self._correlate("Pain Level", "Day of Week", pain, [t.weekday() for t in local_times]),
            self._correlate("Current Pain", "Previous Pain", pain[1:], pain[:-1]),
        ]

        with_activity = [e for e in entries if e.activity_level is not None]
        if len(with_activity) > MIN_ENTRIES_CORRELATION:
            results.append(
                self._correlate(
                    "Pain Level",
                    "Activity Level",
                    [e.pain_level for e in with_activity],
                    [e.activity_level or 0.0 for e in with_activity],
                )
            )

        return [r for r in results if r.sample_size >= MIN_ENTRIES_CORRELATION]

    def _correlate(
        self,
        variable1: str,
        variable2: str,
        data1: Sequence[float],
        data2: Sequence[float],
    ) -> CorrelationResult:
        coefficient, p_value = pearson(data1, data2)
        return CorrelationResult(
            variable1=variable1,
            variable2=variable2,
            coefficient=round_half_up(coefficient, 3),
            strength=coefficient_strength(coefficient),
            direction=coefficient_direction(coefficient),
            p_value=round_half_up(p_value, 4) if p_value is not None else None,
            sample_size=min(len(data1), len(data2)),
        )

    def score_interventions(self, entries: Sequence[PainEntry]) -> list[InterventionScore]:
        """Score each relief method by the pain change that follows it.

        The effect of a use is measured against the first later entry 2 to 6
        hours after it. Methods used fewer than 3 times are skipped.

        Args:
            entries: Cleaned entries

        Returns:
            Scores sorted by effectiveness descending
        """
        interventions: dict[str, _InterventionStats] = {}

        for idx, entry in enumerate(entries):
            if not entry.relief_methods:
                continue
            follow_up = self._find_follow_up(entry, entries[idx + 1 :])
            for method in entry.relief_methods:
                data = interventions.setdefault(method, _InterventionStats())
                data.uses += 1
                data.pain_before.append(entry.pain_level)
                if follow_up is not None:
                    data.pain_after.append(follow_up.pain_level)
                    if follow_up.pain_level < entry.pain_level:
                        data.successes += 1

        scores: list[InterventionScore] = []
        for intervention, data in interventions.items():
            if data.uses < MIN_INTERVENTION_USES:
                continue

            avg_before = mean(data.pain_before)
            avg_after = mean(data.pain_after, default=avg_before)
            reduction = avg_before - avg_after
            success_rate = (
                data.successes / len(data.pain_after) * 100 if data.pain_after else 0.0
            )

            # Reduction (max 40) + success rate (max 50) + usage (max 10)
            score = reduction / 10 * 40 + success_rate * 0.5 + min(10, data.uses)
            score = min(100.0, max(0.0, score))

            if data.uses >= 10:
                confidence = ConfidenceLevel.HIGH
            elif data.uses >= 5:
                confidence = ConfidenceLevel.MEDIUM
            else:
                confidence = ConfidenceLevel.LOW

            scores.append(
                InterventionScore(
                    intervention=intervention,
                    type=categorize_intervention(intervention),
                    effectiveness_score=int(round_half_up(score)),
                    usage_count=data.uses,
                    average_pain_reduction=round_half_up(reduction, 1),
                    success_rate=int(round_half_up(success_rate)),
                    confidence=confidence,
                    recommendation=intervention_recommendation(score),
                )
            )

        return sorted(scores, key=lambda s: -s.effectiveness_score)

    def _find_follow_up(
        self, entry: PainEntry, later: Sequence[PainEntry]
    ) -> PainEntry | None:
        """First later entry inside the follow-up window."""
        earliest = entry.timestamp + FOLLOW_UP_MIN
        latest = entry.timestamp + FOLLOW_UP_MAX
        for candidate in later:
            if candidate.timestamp > latest:
                break
            if candidate.timestamp >= earliest:
                return candidate
        return None

    def detect_trigger_patterns(self, entries: Sequence[PainEntry]) -> list[TriggerPattern]:
        """Describe when each recurring trigger appears and how much it hurts.

        Args:
            entries: Cleaned entries

        Returns:
            Patterns for triggers seen at least 3 times, by risk score descending
        """
        if not entries:
            return []

        overall_avg = mean([e.pain_level for e in entries])
        by_trigger: dict[str, list[PainEntry]] = {}
        for entry in entries:
            for trigger in entry.triggers:
                by_trigger.setdefault(trigger, []).append(entry)

        patterns: list[TriggerPattern] = []
        for trigger, trigger_entries in by_trigger.items():
            count = len(trigger_entries)
            if count < MIN_TRIGGER_OCCURRENCES:
                continue

            increase = mean([e.pain_level for e in trigger_entries]) - overall_avg
            local_times = [self._local(e) for e in trigger_entries]
            hours = Counter(t.hour for t in local_times)
            weekdays = Counter(WEEKDAYS[t.weekday()] for t in local_times)

            symptoms: list[str] = []
            for entry in trigger_entries:
                symptoms.extend(s for s in entry.symptoms if s not in symptoms)

            risk = min(100.0, count / len(entries) * 50 + max(0.0, increase) * 5)

            patterns.append(
                TriggerPattern(
                    trigger=trigger,
                    frequency=count,
                    average_pain_increase=round_half_up(increase, 1),
                    time_of_day_pattern=[
                        HourCount(hour=hour, count=n) for hour, n in hours.most_common(3)
                    ],
                    day_of_week_pattern=[
                        WeekdayCount(day=day, count=n) for day, n in weekdays.most_common()
                    ],
                    associated_symptoms=symptoms,
                    risk_score=int(round_half_up(risk)),
                )
            )

        return sorted(patterns, key=lambda p: -p.risk_score)

    def identify_predictive_indicators(
        self, entries: Sequence[PainEntry]
    ) -> list[PredictiveIndicator]:
        """Find signals that tend to precede worse pain.

        Args:
            entries: Cleaned entries

        Returns:
            Indicators; empty below 20 entries
        """
        if len(entries) < MIN_ENTRIES_PREDICTIVE:
            self.logger.debug(
                "Insufficient data for predictive indicators",
                entries=len(entries),
                required=MIN_ENTRIES_PREDICTIVE,
            )
            return []

        indicators: list[PredictiveIndicator] = []
        overall_avg = mean([e.pain_level for e in entries])

        # Rapid escalation: +3 points within 4 hours
        for previous, current in zip(entries, entries[1:]):
            hours = (current.timestamp - previous.timestamp).total_seconds() / 3600
            increase = current.pain_level - previous.pain_level
            if hours <= 4 and increase >= 3:
                rounded = int(round_half_up(hours))
                indicators.append(
                    PredictiveIndicator(
                        indicator="Rapid Pain Escalation",
                        type=IndicatorType.ESCALATION,
                        confidence=0.75,
                        lead_time=f"{rounded} hours",
                        description=f"Pain increased by {increase} points in {rounded} hours",
                    )
                )

        morning = [e.pain_level for e in entries if 5 <= self._local(e).hour <= 9]
        morning_avg = mean(morning)
        if len(morning) >= 5 and morning_avg > overall_avg + 1:
            indicators.append(
                PredictiveIndicator(
                    indicator="Morning Pain Exacerbation",
                    type=IndicatorType.WARNING,
                    confidence=0.8,
                    lead_time="Upon waking",
                    description=(
                        f"Morning pain levels average {morning_avg:.1f}/10, "
                        "significantly higher than daily average"
                    ),
                )
            )

        active = [e.pain_level for e in entries if (e.activity_level or 0) > 6]
        if len(active) >= 10 and mean(active) > overall_avg + 1.5:
            indicators.append(
                PredictiveIndicator(
                    indicator="Activity-Induced Pain",
                    type=IndicatorType.ONSET,
                    confidence=0.85,
                    lead_time="During or within 2 hours of activity",
                    description="High activity levels consistently precede increased pain",
                )
            )

        recent_triggers = Counter(t for e in entries[-10:] for t in e.triggers)
        for trigger, count in recent_triggers.items():
            if count >= 3:
                indicators.append(
                    PredictiveIndicator(
                        indicator=f"Frequent Trigger: {trigger}",
                        type=IndicatorType.WARNING,
                        confidence=0.7,
                        lead_time="Immediate to 1 hour",
                        description=f"This trigger has appeared {count} times in recent entries",
                    )
                )

        return indicators

    def detect_anomalies(self, entries: Sequence[PainEntry]) -> list[PainAnomaly]:
        """Flag entries more than 2 standard deviations from the mean pain.

        Args:
            entries: Cleaned entries

        Returns:
            Anomalies in entry order; empty below 7 entries or with no spread
        """
        if len(entries) < MIN_ENTRIES_ANOMALY:
            return []

        levels = [e.pain_level for e in entries]
        center = mean(levels)
        spread = std_dev(levels)
        expected = (
            round_half_up(center - 2 * spread, 2),
            round_half_up(center + 2 * spread, 2),
        )

        anomalies = []
        for idx, z_score in detect_outliers(levels, ANOMALY_Z_THRESHOLD):
            magnitude = abs(z_score)
            if magnitude > 3:
                severity = AnomalySeverity.HIGH
            elif magnitude > 2.5:
                severity = AnomalySeverity.MEDIUM
            else:
                severity = AnomalySeverity.LOW

            entry = entries[idx]
            anomalies.append(
                PainAnomaly(
                    timestamp=entry.timestamp,
                    value=entry.pain_level,
                    z_score=round_half_up(z_score, 2),
                    expected_range=expected,
                    severity=severity,
                    context=(
                        "Pain level significantly higher than usual"
                        if entry.pain_level > center
                        else "Pain level significantly lower than usual"
                    ),
                )
            )

        return anomalies

    def generate_weekly_clinical_brief(
        self,
        entries: Sequence[PainEntry],
        now: datetime | None = None,
    ) -> WeeklyClinicalBrief:
        """Summarize the past 7 days against the 7 days before.

        Args:
            entries: Cleaned entries (full history; predictive indicators
                use all of it)
            now: End of the reporting week, defaults to the wall clock; a naive
                value is read in the service timezone

        Returns:
            WeeklyClinicalBrief
        """
        now = ensure_aware(now or datetime.now(UTC), self.tz)
        week_start = now - timedelta(days=7)
        previous_start = week_start - timedelta(days=7)

        week = [e for e in entries if week_start <= e.timestamp <= now]
        previous = [e for e in entries if previous_start <= e.timestamp < week_start]

        avg_pain = mean([e.pain_level for e in week])
        previous_avg = mean([e.pain_level for e in previous], default=avg_pain)
        change = avg_pain - previous_avg

        if change <= -BRIEF_TREND_THRESHOLD:
            trend = PainTrend.IMPROVING
        elif change >= BRIEF_TREND_THRESHOLD:
            trend = PainTrend.WORSENING
        else:
            trend = PainTrend.STABLE

        insights = self._brief_insights(week, avg_pain, change, trend)

        trigger_counts = Counter(t for e in week for t in e.triggers)
        top_triggers = [trigger for trigger, _ in trigger_counts.most_common(5)]

        effective = [
            s.intervention
            for s in self.score_interventions(week)
            if s.effectiveness_score >= EFFECTIVE_INTERVENTION_SCORE
        ][:3]

        concerns: list[str] = []
        if trend == PainTrend.WORSENING:
            concerns.append(
                f"Pain levels increasing - average up {abs(change):.1f} points from last week"
            )
        if avg_pain >= 7:
            concerns.append("High average pain level requires clinical attention")
        severe_days = {e.local_date(self.tz) for e in week if e.pain_level >= 8}
        if len(severe_days) >= 3:
            concerns.append(f"{len(severe_days)} days with severe pain (8+/10) this week")
        if any(
            i.type == IndicatorType.ESCALATION
            for i in self.identify_predictive_indicators(entries)
        ):
            concerns.append("Rapid pain escalation patterns detected")

        recommendations: list[str] = []
        if trend == PainTrend.WORSENING or avg_pain >= 7:
            recommendations.append(
                "Consider scheduling follow-up appointment with healthcare provider"
            )
        if top_triggers:
            recommendations.append(
                f"Focus on managing top triggers: {', '.join(top_triggers[:3])}"
            )
        if effective:
            recommendations.append(f"Continue effective interventions: {', '.join(effective)}")
        if trend == PainTrend.IMPROVING:
            recommendations.append("Maintain current pain management strategies")
        if len(week) < 7:
            recommendations.append("Increase tracking frequency for better pattern recognition")

        next_steps: list[str] = []
        if concerns:
            next_steps.append("Review and address identified concerns with healthcare team")
        next_steps.append("Continue consistent pain tracking and intervention documentation")
        if top_triggers:
            next_steps.append("Develop trigger avoidance or mitigation strategies")
        if trend == PainTrend.WORSENING:
            next_steps.append("Consider adjusting current pain management plan")

        self.logger.info(
            "Weekly brief generated",
            week_entries=len(week),
            trend=trend.value,
            concerns=len(concerns),
        )

        return WeeklyClinicalBrief(
            week_start_date=week_start,
            week_end_date=now,
            overall_trend=trend,
            avg_pain_level=round_half_up(avg_pain, 1),
            pain_level_change=round_half_up(change, 1),
            key_insights=insights,
            top_triggers=top_triggers,
            effective_interventions=effective,
            concerns=concerns or ["No immediate concerns identified"],
            recommendations=recommendations,
            next_steps=next_steps,
        )

    def _brief_insights(
        self,
        week: Sequence[PainEntry],
        avg_pain: float,
        change: float,
        trend: PainTrend,
    ) -> list[str]:
        """Headline facts for the brief."""
        if not week:
            return ["No pain entries recorded this week"]

        arrow = {PainTrend.IMPROVING: "↓", PainTrend.WORSENING: "↑"}.get(trend, "→")
        levels = [e.pain_level for e in week]
        peak = max(levels)
        low = min(levels)
        peak_entry = next(e for e in week if e.pain_level == peak)

        return [
            f"{len(week)} pain entries recorded (avg {len(week) / 7:.1f} per day)",
            f"Average pain level: {avg_pain:.1f}/10 ({arrow} {abs(change):.1f} from previous week)",
            f"Peak pain: {peak}/10 on {peak_entry.local_date(self.tz).isoformat()}",
            f"Pain ranged from {low} to {peak}/10",
        ]
