"""Tests for quality-of-life patterns and dissonance detection."""

from pain_pattern_server.schemas.patterns import (
    AnalysisConfig,
    ConfidenceLevel,
    CorrelationStrength,
    DissonanceSeverity,
    DissonanceType,
    PainTrend,
    QoLMetric,
    QoLTrend,
)
from pain_pattern_server.services.baseline import calculate_baseline
from pain_pattern_server.services.quality_of_life import (
    compute_lagged_qol_patterns,
    compute_qol_patterns,
    detect_qol_dissonances,
)
from pain_pattern_server.services.trends import compute_daily_trend


def _sleep(value: float) -> dict:
    return {"sleep_quality": value}


class TestQoLPatterns:
    """Tests for compute_qol_patterns."""

    def test_good_sleep_lowers_pain(self, make_entry, now) -> None:
        """Test good-sleep days have lower pain than poor-sleep days."""
        entries = [make_entry(days_ago=i, pain=3, quality_of_life=_sleep(8)) for i in range(10)]
        entries += [
            make_entry(days_ago=10 + i, pain=7, quality_of_life=_sleep(2)) for i in range(10)
        ]
        baseline = calculate_baseline(entries, now=now)

        (pattern,) = compute_qol_patterns(entries, baseline, AnalysisConfig())

        assert pattern.id == "qol-sleep"
        assert pattern.metric == QoLMetric.SLEEP
        assert pattern.delta == -4.0
        assert pattern.evidence_count == 20
        assert pattern.confidence == ConfidenceLevel.HIGH
        assert pattern.correlation == CorrelationStrength.STRONG
        assert pattern.description == "When sleep is good (≥7), pain averages 4.0 points lower."
        assert pattern.condition == "When sleep ≥ 7"
        assert pattern.lag_days is None

    def test_mood_thresholds(self, make_entry, now) -> None:
        """Test mood uses its signed thresholds (good >= 3, poor <= -2)."""
        entries = [
            make_entry(days_ago=i, pain=2, quality_of_life={"mood_impact": 4}) for i in range(6)
        ]
        entries += [
            make_entry(days_ago=6 + i, pain=6, quality_of_life={"mood_impact": -3})
            for i in range(6)
        ]
        baseline = calculate_baseline(entries, now=now)

        (pattern,) = compute_qol_patterns(entries, baseline, AnalysisConfig())

        assert pattern.metric == QoLMetric.MOOD
        assert pattern.delta == -4.0
        assert pattern.confidence == ConfidenceLevel.MEDIUM

    def test_activity_higher_pain(self, make_entry, now) -> None:
        """Test a positive delta is described as higher pain."""
        entries = [make_entry(days_ago=i, pain=7, activity_level=8) for i in range(5)]
        entries += [make_entry(days_ago=5 + i, pain=3, activity_level=2) for i in range(5)]
        baseline = calculate_baseline(entries, now=now)

        (pattern,) = compute_qol_patterns(entries, baseline, AnalysisConfig())

        assert pattern.metric == QoLMetric.ACTIVITY
        assert pattern.delta == 4.0
        assert "higher" in pattern.description
        assert pattern.confidence == ConfidenceLevel.MEDIUM

    def test_neutral_zone(self, make_entry, now) -> None:
        """Test values between the thresholds belong to neither bucket."""
        entries = [
            make_entry(days_ago=i, pain=i % 10, quality_of_life=_sleep(5)) for i in range(20)
        ]
        baseline = calculate_baseline(entries, now=now)

        assert compute_qol_patterns(entries, baseline, AnalysisConfig()) == []

    def test_insufficient_data(self, make_entry, now) -> None:
        """Test fewer than min_support samples gives no pattern."""
        entries = [make_entry(days_ago=i, pain=3, quality_of_life=_sleep(8)) for i in range(4)]
        entries += [make_entry(days_ago=4 + i, pain=7, quality_of_life=_sleep(2)) for i in range(3)]
        baseline = calculate_baseline(entries, now=now)

        assert compute_qol_patterns(entries, baseline, AnalysisConfig()) == []

    def test_no_qol_data(self, make_entry, now) -> None:
        """Test entries without QoL fields give no patterns."""
        entries = [make_entry(days_ago=i, pain=5) for i in range(20)]
        baseline = calculate_baseline(entries, now=now)

        assert compute_qol_patterns(entries, baseline, AnalysisConfig()) == []


class TestLaggedPatterns:
    """Tests for compute_lagged_qol_patterns."""

    def _alternating(self, make_entry) -> list:
        # Good sleep on even days is followed by low pain the next (odd) day
        entries = []
        for day in range(20):
            good_night = day % 2 == 0
            entries.append(
                make_entry(
                    days_ago=19 - day,
                    pain=7 if good_night else 3,
                    quality_of_life=_sleep(8 if good_night else 2),
                )
            )
        return entries

    def test_next_day_effect(self, make_entry, now) -> None:
        """Test sleep is paired with pain on the following day."""
        entries = self._alternating(make_entry)
        baseline = calculate_baseline(entries, now=now)

        (pattern,) = compute_lagged_qol_patterns(entries, baseline, AnalysisConfig())

        assert pattern.lag_days == 1
        assert pattern.id == "qol-sleep-lag-1"
        assert pattern.delta == -4.0
        assert pattern.metric == QoLMetric.SLEEP
        assert pattern.description.startswith("1 day after good sleep")

    def test_disabled(self, make_entry, now) -> None:
        """Test the feature flag turns lagged analysis off."""
        entries = self._alternating(make_entry)
        baseline = calculate_baseline(entries, now=now)
        config = AnalysisConfig(enable_lagged_correlations=False)

        assert compute_lagged_qol_patterns(entries, baseline, config) == []

    def test_zero_lag(self, make_entry, now) -> None:
        """Test max_lag_days=0 disables lagged analysis."""
        entries = self._alternating(make_entry)
        baseline = calculate_baseline(entries, now=now)

        assert compute_lagged_qol_patterns(entries, baseline, AnalysisConfig(max_lag_days=0)) == []

    def test_lag_beyond_history(self, make_entry, now) -> None:
        """Test a maximum lag longer than the recorded days is bounded by the data."""
        entries = self._alternating(make_entry)
        baseline = calculate_baseline(entries, now=now)
        config = AnalysisConfig(max_lag_days=10**10)

        (pattern,) = compute_lagged_qol_patterns(entries, baseline, config)

        assert config.max_lag_days == 30
        assert pattern.lag_days == 1

    def test_single_day(self, make_entry, now) -> None:
        """Test one day of data has no lag to test."""
        entries = [make_entry(pain=4, quality_of_life=_sleep(8))]
        baseline = calculate_baseline(entries, now=now)

        assert compute_lagged_qol_patterns(entries, baseline, AnalysisConfig()) == []


class TestDissonance:
    """Tests for detect_qol_dissonances."""

    def _fortnight(self, make_entry, previous_sleep, recent_sleep, previous_pain=5, recent_pain=5):
        entries = [
            make_entry(days_ago=13 - i, pain=previous_pain, quality_of_life=_sleep(previous_sleep))
            for i in range(7)
        ]
        entries += [
            make_entry(days_ago=6 - i, pain=recent_pain, quality_of_life=_sleep(recent_sleep))
            for i in range(7)
        ]
        return entries

    def test_sleep_declining_while_pain_stable(self, make_entry) -> None:
        """Test a large sleep drop with flat pain is flagged as high severity."""
        entries = self._fortnight(make_entry, previous_sleep=8, recent_sleep=4)

        (dissonance,) = detect_qol_dissonances(entries, compute_daily_trend(entries), [])

        assert dissonance.type == DissonanceType.PAIN_STABLE_QOL_DECLINING
        assert dissonance.pain_trend == PainTrend.STABLE
        assert dissonance.qol_trend == QoLTrend.DECLINING
        assert dissonance.affected_metrics == [QoLMetric.SLEEP]
        assert dissonance.severity == DissonanceSeverity.HIGH
        assert "4.0 points" in dissonance.description
        assert "sleep interventions" in dissonance.recommendation

    def test_moderate_drop_is_medium(self, make_entry) -> None:
        """Test a drop between 1.5 and 2.5 is medium severity."""
        entries = self._fortnight(make_entry, previous_sleep=7, recent_sleep=5)

        (dissonance,) = detect_qol_dissonances(entries, compute_daily_trend(entries), [])

        assert dissonance.severity == DissonanceSeverity.MEDIUM

    def test_small_drop_ignored(self, make_entry) -> None:
        """Test a drop of 1.5 or less is not flagged."""
        entries = self._fortnight(make_entry, previous_sleep=7, recent_sleep=6)

        assert detect_qol_dissonances(entries, compute_daily_trend(entries), []) == []

    def test_worsening_pain_is_not_dissonance(self, make_entry) -> None:
        """Test sleep decline alongside rising pain is consistent, not dissonant."""
        entries = self._fortnight(
            make_entry, previous_sleep=8, recent_sleep=3, previous_pain=3, recent_pain=7
        )

        assert detect_qol_dissonances(entries, compute_daily_trend(entries), []) == []

    def test_requires_two_weeks(self, make_entry) -> None:
        """Test fewer than 14 entries gives nothing."""
        entries = self._fortnight(make_entry, previous_sleep=8, recent_sleep=3)[1:]

        assert detect_qol_dissonances(entries, compute_daily_trend(entries), []) == []

    def test_requires_previous_window(self, make_entry) -> None:
        """Test a single week of daily points gives nothing."""
        entries = [
            make_entry(days_ago=6 - i, hour=8 + h, pain=5, quality_of_life=_sleep(8 - i))
            for i in range(7)
            for h in range(2)
        ]

        assert detect_qol_dissonances(entries, compute_daily_trend(entries), []) == []
