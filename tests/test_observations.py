"""Tests for the observation generator."""

import pytest

from pain_pattern_server.schemas.insights import ObservationCategory, ObservationPriority
from pain_pattern_server.schemas.patterns import (
    CorrelationDirection,
    CorrelationStrength,
    FactorCorrelation,
    FactorKind,
    PainTrend,
)
from pain_pattern_server.services.observations import ObservationGenerator
from pain_pattern_server.services.pattern import analyze_patterns


@pytest.fixture
def generator() -> ObservationGenerator:
    """Observation generator."""
    return ObservationGenerator()


class TestOnboarding:
    """Tests for sparse histories."""

    def test_onboarding(self, generator, make_entry, now) -> None:
        """Test a new user gets an onboarding observation and a logging nudge."""
        entries = [make_entry(days_ago=i, pain=4) for i in range(3)]
        report = generator.build_report(analyze_patterns(entries, now=now))

        (observation,) = report.observations
        assert observation.category == ObservationCategory.ONBOARDING
        assert observation.priority == ObservationPriority.INFO
        assert observation.fact == "Building your pain baseline (3/7 entries)"

        (suggestion,) = report.suggestions
        assert suggestion.action == "log_more_entries"
        assert suggestion.reason == "Only 3 entries recorded so far"

    def test_building_baseline(self, generator, make_entry, now) -> None:
        """Test a short history gets a baseline-building observation."""
        entries = [make_entry(days_ago=i, pain=4) for i in range(10)]

        observations = generator.generate_observations(analyze_patterns(entries, now=now))

        assert observations[-1].fact == "Your baseline is being established (10 entries)"
        assert generator.generate_suggestions(analyze_patterns(entries, now=now)) == []


class TestEpisodes:
    """Tests for flare observations."""

    def test_severe_ongoing_flare(self, generator, make_entry, now) -> None:
        """Test an unfinished severe flare is critical and escalated."""
        entries = [make_entry(days_ago=12 - i, pain=3) for i in range(10)]
        entries += [make_entry(days_ago=2 - i, pain=9) for i in range(3)]

        report = generator.build_report(analyze_patterns(entries, now=now))

        first = report.observations[0]
        assert first.category == ObservationCategory.EPISODE
        assert first.priority == ObservationPriority.CRITICAL
        assert first.fact == "Ongoing severe pain flare since 2025-03-29 (peak 9/10)"
        assert first.trend == PainTrend.WORSENING

        actions = [s.action for s in report.suggestions]
        assert actions == ["contact_care_team", "schedule_review"]
        assert report.suggestions[0].reason == "Severe flare ongoing for 3 days"

    def test_recent_flare(self, generator, make_entry, now) -> None:
        """Test a flare that ended this week is reported with its recovery."""
        entries = [make_entry(days_ago=15 - i, pain=3) for i in range(10)]
        entries += [make_entry(days_ago=5 - i, pain=9) for i in range(3)]
        entries += [make_entry(days_ago=2 - i, pain=2) for i in range(3)]

        observations = generator.generate_observations(analyze_patterns(entries, now=now))

        (episode,) = [o for o in observations if o.category == ObservationCategory.EPISODE]
        assert episode.priority == ObservationPriority.MEDIUM
        assert episode.fact == "A severe flare lasted 3 days (average 9.0/10)"
        assert episode.context == "Pain returned below baseline after 1 day"


class TestCorrelations:
    """Tests for trigger and medication observations."""

    def test_stress_trigger(self, generator, stress_entries, now) -> None:
        """Test a strong trigger produces a high-priority observation."""
        report = generator.build_report(analyze_patterns(stress_entries, now=now))

        (trigger,) = [o for o in report.observations if o.category == ObservationCategory.TRIGGER]
        assert trigger.priority == ObservationPriority.HIGH
        assert trigger.fact == "Stress is linked to pain 4.0 points higher"
        assert trigger.context == "Seen in 10 entries, 100% of them above baseline"

        manage = next(s for s in report.suggestions if s.action == "manage_trigger")
        assert manage.description == "Plan around stress where possible"
        assert manage.confidence == 0.95

    def test_sorted_by_priority(self, generator, stress_entries, now) -> None:
        """Test observations come out highest priority first."""
        observations = generator.generate_observations(analyze_patterns(stress_entries, now=now))

        assert [o.priority for o in observations] == [
            ObservationPriority.HIGH,
            ObservationPriority.HIGH,
            ObservationPriority.MEDIUM,
            ObservationPriority.INFO,
        ]
        assert [o.category for o in observations[:2]] == [
            ObservationCategory.EPISODE,
            ObservationCategory.TRIGGER,
        ]

    def test_medication_lowering_pain(self, generator, stress_entries, now) -> None:
        """Test a medication associated with lower pain is a positive observation."""
        result = analyze_patterns(stress_entries, now=now)
        naproxen = FactorCorrelation(
            key="naproxen",
            label="Naproxen",
            kind=FactorKind.MEDICATION,
            delta_pain=-2.5,
            support=9,
            confidence=0.7,
            strength=CorrelationStrength.STRONG,
            direction=CorrelationDirection.DECREASES,
            stability_score=0.8,
        )
        result = result.model_copy(update={"medication_correlations": [naproxen]})

        observations = generator.generate_observations(result)

        assert observations[-1].category == ObservationCategory.MEDICATION
        assert observations[-1].priority == ObservationPriority.POSITIVE
        assert observations[-1].fact == "Pain is 2.5 points lower on entries with Naproxen"


class TestQualityOfLife:
    """Tests for QoL observations."""

    def test_dissonance(self, generator, make_entry, now) -> None:
        """Test declining sleep with stable pain asks for a sleep discussion."""
        entries = [
            make_entry(days_ago=13 - i, pain=5, quality_of_life={"sleep_quality": 8})
            for i in range(7)
        ]
        entries += [
            make_entry(days_ago=6 - i, pain=5, quality_of_life={"sleep_quality": 3})
            for i in range(7)
        ]

        report = generator.build_report(analyze_patterns(entries, now=now))

        first = report.observations[0]
        assert first.category == ObservationCategory.QUALITY_OF_LIFE
        assert first.priority == ObservationPriority.HIGH
        assert first.trend == PainTrend.STABLE
        (suggestion,) = report.suggestions
        assert suggestion.action == "discuss_sleep"
        assert suggestion.confidence == 0.85

    def test_qol_pattern_is_info(self, generator, make_entry, now) -> None:
        """Test QoL patterns are reported as information."""
        entries = [
            make_entry(days_ago=i, pain=3, quality_of_life={"sleep_quality": 8}) for i in range(10)
        ]
        entries += [
            make_entry(days_ago=10 + i, pain=7, quality_of_life={"sleep_quality": 2})
            for i in range(10)
        ]

        observations = generator.generate_observations(analyze_patterns(entries, now=now))

        qol = [o for o in observations if o.fact.startswith("When sleep is good")]
        assert len(qol) == 1
        assert qol[0].priority == ObservationPriority.INFO
        assert qol[0].context == "20 entries, high confidence"


class TestTrend:
    """Tests for trend observations."""

    def test_improving_trend(self, generator, make_entry, now) -> None:
        """Test a falling trend is positive and suggests keeping the plan."""
        entries = [make_entry(days_ago=i, pain=i // 2) for i in range(20)]

        report = generator.build_report(analyze_patterns(entries, now=now))

        trend = [o for o in report.observations if o.category == ObservationCategory.TREND]
        assert trend[0].priority == ObservationPriority.POSITIVE
        assert trend[0].trend == PainTrend.IMPROVING
        assert [s.action for s in report.suggestions] == ["maintain_plan"]

    def test_low_confidence_trend_skipped(self, generator, make_entry, now) -> None:
        """Test fewer daily points than min_entries_for_trend gives no trend observation."""
        entries = [make_entry(days_ago=i, pain=9 - i) for i in range(5)]

        observations = generator.generate_observations(analyze_patterns(entries, now=now))

        assert all(o.category != ObservationCategory.TREND for o in observations)
