"""Quality-of-life patterns and pain/QoL dissonance detection."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta, tzinfo

import structlog

from pain_pattern_server.schemas.entries import PainEntry
from pain_pattern_server.schemas.patterns import (
    AnalysisConfig,
    BaselineResult,
    ConfidenceLevel,
    CorrelationStrength,
    DissonanceSeverity,
    DissonanceType,
    PainTrend,
    QoLDissonance,
    QoLMetric,
    QoLPattern,
    QoLTrend,
    TrendPoint,
)
from pain_pattern_server.services.correlation import bucket_correlation
from pain_pattern_server.services.statistics import mean, round_half_up
from pain_pattern_server.services.trends import group_by_day

logger = structlog.get_logger()

# A bucket needs this many samples before a pattern is considered
MIN_BUCKET_SAMPLES = 3

# Dissonance detection requirements
MIN_DISSONANCE_ENTRIES = 14
DISSONANCE_WINDOW = 7
PAIN_TREND_THRESHOLD = 0.5
SLEEP_DECLINE_THRESHOLD = 1.5
SLEEP_DECLINE_HIGH = 2.5


@dataclass(frozen=True)
class QoLDimension:
    """How to read and bucket one QoL dimension."""

    metric: QoLMetric
    extract: Callable[[PainEntry], float | None]
    good_threshold: float
    poor_threshold: float


SLEEP = QoLDimension(QoLMetric.SLEEP, lambda e: e.sleep_quality, 7, 3)
MOOD = QoLDimension(QoLMetric.MOOD, lambda e: e.mood_impact, 3, -2)
ACTIVITY = QoLDimension(QoLMetric.ACTIVITY, lambda e: e.activity_level, 7, 3)

DIMENSIONS = (SLEEP, MOOD, ACTIVITY)


def evidence_confidence(evidence_count: int) -> ConfidenceLevel:
    """Confidence tier from the combined good+poor evidence."""
    if evidence_count >= 20:
        return ConfidenceLevel.HIGH
    elif evidence_count >= 10:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def _fmt(value: float) -> str:
    return f"{value:g}"


def _describe(metric: QoLMetric, delta: float, good_threshold: float, lag_days: int = 0) -> str:
    direction = "lower" if delta < 0 else "higher"
    magnitude = f"{abs(delta):.1f}"
    if lag_days:
        day_word = "day" if lag_days == 1 else "days"
        return (
            f"{lag_days} {day_word} after good {metric.value} (≥{_fmt(good_threshold)}), "
            f"pain averages {magnitude} points {direction}."
        )
    return (
        f"When {metric.value} is good (≥{_fmt(good_threshold)}), "
        f"pain averages {magnitude} points {direction}."
    )


def _bucket_pattern(
    dimension: QoLDimension,
    samples: Sequence[tuple[float, float]],
    baseline: BaselineResult,
    config: AnalysisConfig,
    lag_days: int = 0,
) -> QoLPattern | None:
    """Good/poor bucket comparison over (qol_value, pain) samples."""
    total = len(samples)
    good = [pain for value, pain in samples if value >= dimension.good_threshold]
    poor = [pain for value, pain in samples if value <= dimension.poor_threshold]

    if total < config.min_support_for_correlation:
        return None
    if len(good) < MIN_BUCKET_SAMPLES and len(poor) < MIN_BUCKET_SAMPLES:
        return None

    delta = mean(good, default=baseline.value) - mean(poor, default=baseline.value)
    evidence = len(good) + len(poor)
    strength = bucket_correlation(delta, evidence / total)
    if strength == CorrelationStrength.NONE:
        return None

    metric = dimension.metric.value
    return QoLPattern(
        id=f"qol-{metric}-lag-{lag_days}" if lag_days else f"qol-{metric}",
        description=_describe(dimension.metric, delta, dimension.good_threshold, lag_days),
        metric=dimension.metric,
        correlation=strength,
        evidence_count=evidence,
        delta=round_half_up(delta, 2),
        confidence=evidence_confidence(evidence),
        condition=f"When {metric} ≥ {_fmt(dimension.good_threshold)}",
        lag_days=lag_days or None,
    )


def analyze_qol_dimension(
    entries: Sequence[PainEntry],
    baseline: BaselineResult,
    config: AnalysisConfig,
    dimension: QoLDimension,
) -> QoLPattern | None:
    """Compare pain on good vs poor days of one QoL dimension.

    Values strictly between the thresholds fall in a neutral zone and
    belong to neither bucket. An empty bucket falls back to the baseline.

    Returns:
        The pattern, or None when evidence is insufficient or the effect NONE
    """
    samples = []
    for entry in entries:
        value = dimension.extract(entry)
        if value is not None:
            samples.append((value, entry.pain_level))
    return _bucket_pattern(dimension, samples, baseline, config)


def compute_qol_patterns(
    entries: Sequence[PainEntry],
    baseline: BaselineResult,
    config: AnalysisConfig,
) -> list[QoLPattern]:
    """Quality-of-life patterns for sleep, mood and activity."""
    patterns = []
    for dimension in DIMENSIONS:
        pattern = analyze_qol_dimension(entries, baseline, config, dimension)
        if pattern is not None:
            patterns.append(pattern)
    return patterns


def compute_lagged_qol_patterns(
    entries: Sequence[PainEntry],
    baseline: BaselineResult,
    config: AnalysisConfig,
    tz: tzinfo | None = None,
) -> list[QoLPattern]:
    """Delayed effect of sleep on pain (e.g. poor sleep -> next-day pain).

    Each day's mean sleep is paired with the mean pain ``lag`` days later
    for every lag up to ``max_lag_days``; the lag with the largest effect is
    reported.

    Returns:
        At most one sleep pattern with ``lag_days`` set
    """
    if not config.enable_lagged_correlations or config.max_lag_days < 1:
        return []

    daily_sleep: dict[date, float] = {}
    daily_pain: dict[date, float] = {}
    for day, day_entries in group_by_day(entries, tz).items():
        daily_pain[day] = mean([e.pain_level for e in day_entries])
        sleep_values = [e.sleep_quality for e in day_entries if e.sleep_quality is not None]
        if sleep_values:
            daily_sleep[day] = mean(sleep_values)
    if not daily_sleep:
        return []

    # No pairs exist for lags longer than the recorded span
    span = (max(daily_pain) - min(daily_pain)).days
    best: QoLPattern | None = None
    for lag in range(1, min(config.max_lag_days, span) + 1):
        samples = [
            (sleep, daily_pain[day + timedelta(days=lag)])
            for day, sleep in sorted(daily_sleep.items())
            if day + timedelta(days=lag) in daily_pain
        ]
        pattern = _bucket_pattern(SLEEP, samples, baseline, config, lag_days=lag)
        if pattern is not None and (best is None or abs(pattern.delta) > abs(best.delta)):
            best = pattern

    return [best] if best else []


def classify_pain_trend(change: float) -> PainTrend:
    """Classify a change in mean pain between two windows."""
    if change < -PAIN_TREND_THRESHOLD:
        return PainTrend.IMPROVING
    elif change > PAIN_TREND_THRESHOLD:
        return PainTrend.WORSENING
    return PainTrend.STABLE


def detect_qol_dissonances(
    entries: Sequence[PainEntry],
    daily_trend: Sequence[TrendPoint],
    qol_patterns: Sequence[QoLPattern],
    tz: tzinfo | None = None,
) -> list[QoLDissonance]:
    """Detect quality-of-life decline that the pain scores do not show.

    Compares the last 7 daily points with the 7 before them. Sleep values
    are taken from entries on the same calendar days. Only the
    sleep-declining-while-pain-stable case is currently produced.

    Args:
        entries: Cleaned entries
        daily_trend: Daily points, sorted ascending
        qol_patterns: QoL patterns from this run (reserved for cross-checks)
        tz: Timezone used for the daily grouping

    Returns:
        Detected dissonances
    """
    if len(entries) < MIN_DISSONANCE_ENTRIES or len(daily_trend) < DISSONANCE_WINDOW:
        return []

    recent = daily_trend[-DISSONANCE_WINDOW:]
    previous = daily_trend[-2 * DISSONANCE_WINDOW : -DISSONANCE_WINDOW]
    if not previous:
        return []

    pain_change = mean([p.value for p in recent]) - mean([p.value for p in previous])
    pain_trend = classify_pain_trend(pain_change)

    recent_days = {p.date for p in recent}
    previous_days = {p.date for p in previous}
    recent_sleep = []
    previous_sleep = []
    for entry in entries:
        if entry.sleep_quality is None:
            continue
        day = entry.local_date(tz)
        if day in recent_days:
            recent_sleep.append(entry.sleep_quality)
        elif day in previous_days:
            previous_sleep.append(entry.sleep_quality)

    dissonances: list[QoLDissonance] = []

    if len(recent_sleep) >= MIN_BUCKET_SAMPLES and len(previous_sleep) >= MIN_BUCKET_SAMPLES:
        sleep_change = mean(recent_sleep) - mean(previous_sleep)

        if pain_trend == PainTrend.STABLE and sleep_change < -SLEEP_DECLINE_THRESHOLD:
            drop = abs(sleep_change)
            dissonances.append(
                QoLDissonance(
                    type=DissonanceType.PAIN_STABLE_QOL_DECLINING,
                    description=(
                        "Pain levels holding steady, but sleep quality declined by "
                        f"{drop:.1f} points in the past week."
                    ),
                    pain_trend=PainTrend.STABLE,
                    qol_trend=QoLTrend.DECLINING,
                    affected_metrics=[QoLMetric.SLEEP],
                    severity=(
                        DissonanceSeverity.HIGH
                        if drop > SLEEP_DECLINE_HIGH
                        else DissonanceSeverity.MEDIUM
                    ),
                    recommendation=(
                        "Consider discussing sleep interventions with care team, as poor "
                        "sleep may predict future pain increases."
                    ),
                )
            )

    logger.debug(
        "Dissonance check complete",
        pain_trend=pain_trend.value,
        found=len(dissonances),
        patterns=len(qol_patterns),
    )
    return dissonances
