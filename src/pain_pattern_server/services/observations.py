"""Observation generator for natural language insights."""

import structlog

from pain_pattern_server.schemas.insights import (
    Observation,
    ObservationCategory,
    ObservationPriority,
    ObservationReport,
    Suggestion,
)
from pain_pattern_server.schemas.patterns import (
    ConfidenceLevel,
    CorrelationDirection,
    CorrelationStrength,
    DissonanceSeverity,
    EpisodeSeverity,
    FactorCorrelation,
    PainEpisode,
    PainTrend,
    PatternAnalysisResult,
    QoLDissonance,
    QoLPattern,
    TrendSummary,
)

logger = structlog.get_logger()

# Episodes that ended within this many days count as recent
RECENT_EPISODE_DAYS = 7

PRIORITY_ORDER = {
    ObservationPriority.CRITICAL: 0,
    ObservationPriority.HIGH: 1,
    ObservationPriority.MEDIUM: 2,
    ObservationPriority.LOW: 3,
    ObservationPriority.INFO: 4,
    ObservationPriority.POSITIVE: 5,
}

REPORTABLE_STRENGTHS = (CorrelationStrength.MODERATE, CorrelationStrength.STRONG)


def _days(count: int) -> str:
    return f"{count} day" if count == 1 else f"{count} days"


class ObservationGenerator:
    """Generate natural language observations from a pattern analysis.

    Converts episodes, correlations, QoL patterns and trends into
    human-readable observations and suggestions that a care team or a
    patient-facing layer can present directly.
    """

    def __init__(self) -> None:
        """Initialize observation generator."""
        self.logger = logger.bind(service="observations")

    def build_report(self, result: PatternAnalysisResult) -> ObservationReport:
        """Observations and suggestions for one analysis."""
        return ObservationReport(
            observations=self.generate_observations(result),
            suggestions=self.generate_suggestions(result),
        )

    def generate_observations(self, result: PatternAnalysisResult) -> list[Observation]:
        """Generate all observations from an analysis result.

        Args:
            result: Output of PatternAnalyzer.analyze

        Returns:
            List of observations sorted by priority
        """
        observations: list[Observation] = []
        entry_count = result.meta.entry_count
        min_entries = result.config.min_entries_for_trend

        # Check for onboarding state
        if entry_count < min_entries:
            observations.append(self._onboarding_observation(entry_count, min_entries))
        elif entry_count < min_entries * 3:
            observations.append(self._building_baseline_observation(entry_count))

        if result.episodes:
            obs = self._episode_observation(result)
            if obs:
                observations.append(obs)

        for correlation in result.trigger_correlations:
            obs = self._trigger_observation(correlation)
            if obs:
                observations.append(obs)

        for correlation in result.medication_correlations:
            obs = self._medication_observation(correlation)
            if obs:
                observations.append(obs)

        for pattern in [*result.qol_patterns, *result.lagged_qol_patterns]:
            observations.append(self._qol_observation(pattern))

        for dissonance in result.qol_dissonances:
            observations.append(self._dissonance_observation(dissonance))

        obs = self._trend_observation(result.trend_summary)
        if obs:
            observations.append(obs)

        self.logger.debug("Observations generated", count=len(observations))
        return sorted(observations, key=lambda o: PRIORITY_ORDER.get(o.priority, 99))

    def generate_suggestions(self, result: PatternAnalysisResult) -> list[Suggestion]:
        """Generate actionable suggestions based on an analysis result.

        Args:
            result: Output of PatternAnalyzer.analyze

        Returns:
            List of suggestions
        """
        suggestions: list[Suggestion] = []

        if result.meta.entry_count < result.config.min_entries_for_trend:
            suggestions.append(
                Suggestion(
                    action="log_more_entries",
                    description="Log pain at least once a day for the next week",
                    confidence=0.9,
                    reason=f"Only {result.meta.entry_count} entries recorded so far",
                )
            )

        ongoing = self._ongoing_episode(result)
        if ongoing and ongoing.severity == EpisodeSeverity.SEVERE:
            suggestions.append(
                Suggestion(
                    action="contact_care_team",
                    description="Contact your care team about the current flare",
                    confidence=0.9,
                    reason=f"Severe flare ongoing for {_days(ongoing.duration_days)}",
                )
            )
        elif ongoing:
            suggestions.append(
                Suggestion(
                    action="follow_flare_plan",
                    description="Follow your flare plan and pace activities",
                    confidence=0.8,
                    reason=f"Pain has stayed high for {_days(ongoing.duration_days)}",
                )
            )

        strongest = next(
            (
                c
                for c in result.trigger_correlations
                if c.direction == CorrelationDirection.INCREASES
                and c.strength == CorrelationStrength.STRONG
            ),
            None,
        )
        if strongest:
            suggestions.append(
                Suggestion(
                    action="manage_trigger",
                    description=f"Plan around {strongest.label.lower()} where possible",
                    confidence=min(strongest.confidence, 0.95),
                    reason=(
                        f"Pain averages {strongest.delta_pain:.1f} points higher "
                        f"with {strongest.label.lower()}"
                    ),
                )
            )

        for dissonance in result.qol_dissonances:
            suggestions.append(
                Suggestion(
                    action="discuss_sleep",
                    description=dissonance.recommendation,
                    confidence=0.85 if dissonance.severity == DissonanceSeverity.HIGH else 0.7,
                    reason=dissonance.description,
                )
            )

        summary = result.trend_summary
        if summary.confidence != ConfidenceLevel.LOW:
            if summary.direction == PainTrend.WORSENING:
                suggestions.append(
                    Suggestion(
                        action="schedule_review",
                        description="Consider reviewing your pain management plan",
                        confidence=0.75,
                        reason="Pain has been trending upward",
                    )
                )
            elif summary.direction == PainTrend.IMPROVING and not suggestions:
                suggestions.append(
                    Suggestion(
                        action="maintain_plan",
                        description="Keep up your current pain management strategies",
                        confidence=0.8,
                        reason="Pain has been trending downward",
                    )
                )

        return suggestions

    def _onboarding_observation(self, entry_count: int, min_entries: int) -> Observation:
        """Create onboarding observation for sparse histories."""
        return Observation(
            category=ObservationCategory.ONBOARDING,
            priority=ObservationPriority.INFO,
            fact=f"Building your pain baseline ({entry_count}/{min_entries} entries)",
            context=f"Keep logging. Trends unlock after {min_entries} entries.",
            trend=None,
        )

    def _building_baseline_observation(self, entry_count: int) -> Observation:
        """Create observation while the baseline is still settling."""
        return Observation(
            category=ObservationCategory.ONBOARDING,
            priority=ObservationPriority.INFO,
            fact=f"Your baseline is being established ({entry_count} entries)",
            context="Correlations become more reliable as you log triggers and symptoms.",
            trend=None,
        )

    def _ongoing_episode(self, result: PatternAnalysisResult) -> PainEpisode | None:
        """Last episode if it runs to the end of the data."""
        if not result.episodes or not result.daily_trend:
            return None
        last = result.episodes[-1]
        if last.recovery_days is None and last.end == result.daily_trend[-1].date:
            return last
        return None

    def _episode_observation(self, result: PatternAnalysisResult) -> Observation | None:
        """Create observation for an ongoing or recent flare."""
        last = result.episodes[-1]
        triggers = ", ".join(last.associated_triggers) or None

        if self._ongoing_episode(result):
            return Observation(
                category=ObservationCategory.EPISODE,
                priority=(
                    ObservationPriority.CRITICAL
                    if last.severity == EpisodeSeverity.SEVERE
                    else ObservationPriority.HIGH
                ),
                fact=(
                    f"Ongoing {last.severity.value} pain flare since "
                    f"{last.start.isoformat()} (peak {last.peak_pain}/10)"
                ),
                context=f"Triggers logged: {triggers}" if triggers else None,
                trend=PainTrend.WORSENING,
            )

        days_since = (result.meta.generated_at.date() - last.end).days
        if days_since > RECENT_EPISODE_DAYS:
            return None

        recovery = (
            f"Pain returned below baseline after {_days(last.recovery_days)}"
            if last.recovery_days is not None
            else None
        )
        return Observation(
            category=ObservationCategory.EPISODE,
            priority=ObservationPriority.MEDIUM,
            fact=(
                f"A {last.severity.value} flare lasted {_days(last.duration_days)} "
                f"(average {last.avg_pain:.1f}/10)"
            ),
            context=recovery,
            trend=None,
        )

    def _trigger_observation(self, correlation: FactorCorrelation) -> Observation | None:
        """Create observation from a trigger that raises pain."""
        if correlation.direction != CorrelationDirection.INCREASES:
            return None
        if correlation.strength not in REPORTABLE_STRENGTHS:
            return None

        return Observation(
            category=ObservationCategory.TRIGGER,
            priority=(
                ObservationPriority.HIGH
                if correlation.strength == CorrelationStrength.STRONG
                else ObservationPriority.MEDIUM
            ),
            fact=(
                f"{correlation.label} is linked to pain "
                f"{correlation.delta_pain:.1f} points higher"
            ),
            context=(
                f"Seen in {correlation.support} entries, "
                f"{correlation.confidence:.0%} of them above baseline"
            ),
            trend=None,
        )

    def _medication_observation(self, correlation: FactorCorrelation) -> Observation | None:
        """Create observation from a medication associated with lower pain."""
        if correlation.direction != CorrelationDirection.DECREASES:
            return None

        return Observation(
            category=ObservationCategory.MEDICATION,
            priority=ObservationPriority.POSITIVE,
            fact=(
                f"Pain is {abs(correlation.delta_pain):.1f} points lower "
                f"on entries with {correlation.label}"
            ),
            context=f"Based on {correlation.support} entries",
            trend=PainTrend.IMPROVING,
        )

    def _qol_observation(self, pattern: QoLPattern) -> Observation:
        """Create observation from a quality-of-life pattern."""
        return Observation(
            category=ObservationCategory.QUALITY_OF_LIFE,
            priority=ObservationPriority.INFO,
            fact=pattern.description,
            context=f"{pattern.evidence_count} entries, {pattern.confidence.value} confidence",
            trend=None,
        )

    def _dissonance_observation(self, dissonance: QoLDissonance) -> Observation:
        """Create observation from a pain/QoL mismatch."""
        return Observation(
            category=ObservationCategory.QUALITY_OF_LIFE,
            priority=(
                ObservationPriority.HIGH
                if dissonance.severity == DissonanceSeverity.HIGH
                else ObservationPriority.MEDIUM
            ),
            fact=dissonance.description,
            context=dissonance.recommendation,
            trend=dissonance.pain_trend,
        )

    def _trend_observation(self, summary: TrendSummary) -> Observation | None:
        """Create observation from the overall trend."""
        if summary.confidence == ConfidenceLevel.LOW:
            return None

        if summary.direction == PainTrend.WORSENING:
            return Observation(
                category=ObservationCategory.TREND,
                priority=ObservationPriority.MEDIUM,
                fact=f"Pain has been trending upward ({summary.slope:+.2f} points per day)",
                context=f"Baseline: {summary.baseline:.1f}/10 over {summary.points} days",
                trend=PainTrend.WORSENING,
            )
        elif summary.direction == PainTrend.IMPROVING:
            return Observation(
                category=ObservationCategory.TREND,
                priority=ObservationPriority.POSITIVE,
                fact=f"Pain has been trending downward ({summary.slope:+.2f} points per day)",
                context=f"Baseline: {summary.baseline:.1f}/10 over {summary.points} days",
                trend=PainTrend.IMPROVING,
            )

        return None
