"""Daily and weekly pain trends."""

from collections import defaultdict
from collections.abc import Sequence
from datetime import date, tzinfo

from pain_pattern_server.schemas.entries import PainEntry
from pain_pattern_server.schemas.patterns import (
    AnalysisConfig,
    BaselineResult,
    ConfidenceLevel,
    PainTrend,
    TrendPoint,
    TrendSummary,
)
from pain_pattern_server.services.statistics import linear_regression, mean, std_dev

WEEK_WINDOW = 7

# Slope (pain points per day) below which the trend counts as stable
STABLE_SLOPE = 0.05


def group_by_day(
    entries: Sequence[PainEntry], tz: tzinfo | None = None
) -> dict[date, list[PainEntry]]:
    """Bucket entries by local calendar date, preserving order."""
    days: dict[date, list[PainEntry]] = defaultdict(list)
    for entry in entries:
        days[entry.local_date(tz)].append(entry)
    return days


def compute_daily_trend(
    entries: Sequence[PainEntry], tz: tzinfo | None = None
) -> list[TrendPoint]:
    """Aggregate entries into one point per calendar day.

    Days without entries produce no point.

    Args:
        entries: Cleaned entries
        tz: Timezone used to derive the calendar date

    Returns:
        Points sorted ascending by date
    """
    points = []
    for day, day_entries in sorted(group_by_day(entries, tz).items()):
        values = [e.pain_level for e in day_entries]
        points.append(
            TrendPoint(
                date=day,
                value=mean(values),
                count=len(values),
                range=(min(values), max(values)),
                std_dev=std_dev(values),
            )
        )
    return points


def compute_weekly_trend(daily_trend: Sequence[TrendPoint]) -> list[TrendPoint]:
    """Trailing 7-point moving average of the daily trend.

    Each point is dated by the last day in its window. Ranges are built from
    the daily means, not the raw entries.

    Args:
        daily_trend: Output of ``compute_daily_trend``

    Returns:
        Weekly points, empty if there are fewer than 7 daily points
    """
    if len(daily_trend) < WEEK_WINDOW:
        return []

    weekly = []
    for idx in range(WEEK_WINDOW - 1, len(daily_trend)):
        window = daily_trend[idx - WEEK_WINDOW + 1 : idx + 1]
        values = [p.value for p in window]
        weekly.append(
            TrendPoint(
                date=daily_trend[idx].date,
                value=mean(values),
                count=sum(p.count for p in window),
                range=(min(values), max(values)),
            )
        )
    return weekly


def summarize_trend(
    daily_trend: Sequence[TrendPoint],
    baseline: BaselineResult,
    config: AnalysisConfig,
) -> TrendSummary:
    """Overall direction of the daily trend via linear regression.

    Args:
        daily_trend: Daily points
        baseline: Current baseline
        config: Engine configuration

    Returns:
        TrendSummary; a positive slope means pain is rising
    """
    slope, _ = linear_regression([p.value for p in daily_trend])

    if abs(slope) < STABLE_SLOPE:
        direction = PainTrend.STABLE
    elif slope > 0:
        direction = PainTrend.WORSENING
    else:
        direction = PainTrend.IMPROVING

    points = len(daily_trend)
    if points >= config.min_entries_for_trend * 4:
        confidence = ConfidenceLevel.HIGH
    elif points >= config.min_entries_for_trend:
        confidence = ConfidenceLevel.MEDIUM
    else:
        confidence = ConfidenceLevel.LOW

    return TrendSummary(
        slope=round(slope, 4),
        direction=direction,
        baseline=baseline.value,
        confidence=confidence,
        points=points,
    )
