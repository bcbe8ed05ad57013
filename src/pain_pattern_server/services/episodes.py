"""Pain episode (flare) detection."""

from collections import Counter
from collections.abc import Sequence
from datetime import date, tzinfo

import structlog

from pain_pattern_server.schemas.entries import PainEntry
from pain_pattern_server.schemas.patterns import (
    AnalysisConfig,
    BaselineResult,
    EpisodeSeverity,
    PainEpisode,
    TrendPoint,
)
from pain_pattern_server.services.statistics import mean, round_half_up
from pain_pattern_server.services.trends import group_by_day

logger = structlog.get_logger()

# Episodes are always relative to the patient's own baseline
BASELINE_MARGIN = 2

# Number of associated triggers/locations attached to an episode
MAX_ASSOCIATED = 3


def episode_threshold(baseline: BaselineResult, config: AnalysisConfig) -> float:
    """Pain level a day must reach to count toward an episode."""
    return max(config.episode_pain_threshold, baseline.value + BASELINE_MARGIN)


def classify_severity(peak: float) -> EpisodeSeverity:
    """Severity tier from the peak daily mean."""
    if peak >= 8:
        return EpisodeSeverity.SEVERE
    elif peak >= 6:
        return EpisodeSeverity.MODERATE
    return EpisodeSeverity.MILD


def detect_episodes(
    daily_trend: Sequence[TrendPoint],
    baseline: BaselineResult,
    config: AnalysisConfig,
    entries: Sequence[PainEntry] | None = None,
    tz: tzinfo | None = None,
) -> list[PainEpisode]:
    """Find sustained runs of high-pain days.

    A run is a maximal sequence of consecutive daily points at or above the
    threshold. Runs shorter than ``episode_min_length_days`` are single-day
    noise and are not reported. A run still open when the data ends is
    reported with ``recovery_days=None``.

    Args:
        daily_trend: Daily points, sorted ascending
        baseline: Current baseline
        config: Engine configuration
        entries: Cleaned entries; when given, triggers and locations seen
            during each episode are attached
        tz: Timezone used for the daily grouping

    Returns:
        Episodes in chronological order
    """
    if not daily_trend:
        return []

    threshold = episode_threshold(baseline, config)
    entries_by_day = group_by_day(entries, tz) if entries else {}

    episodes: list[PainEpisode] = []
    run: list[TrendPoint] = []

    for idx, point in enumerate(daily_trend):
        if point.value >= threshold:
            run.append(point)
            continue

        if len(run) >= config.episode_min_length_days:
            recovery = _recovery_days(run[-1], daily_trend[idx:], baseline)
            episodes.append(_build_episode(run, recovery, entries_by_day))
        run = []

    # Run still open at the end of the data
    if len(run) >= config.episode_min_length_days:
        episodes.append(_build_episode(run, None, entries_by_day))

    logger.debug("Episodes detected", threshold=threshold, count=len(episodes))
    return episodes


def _recovery_days(
    last_point: TrendPoint,
    following: Sequence[TrendPoint],
    baseline: BaselineResult,
) -> int | None:
    """Days from the end of a run until pain falls below the baseline."""
    for point in following:
        if point.value < baseline.value:
            return (point.date - last_point.date).days
    return None


def _build_episode(
    run: Sequence[TrendPoint],
    recovery_days: int | None,
    entries_by_day: dict[date, list[PainEntry]],
) -> PainEpisode:
    values = [p.value for p in run]
    peak = max(values)

    triggers: Counter[str] = Counter()
    locations: Counter[str] = Counter()
    for point in run:
        for entry in entries_by_day.get(point.date, []):
            triggers.update(entry.triggers)
            locations.update(entry.locations)

    return PainEpisode(
        id=f"episode-{run[0].date.isoformat()}",
        start=run[0].date,
        end=run[-1].date,
        peak_pain=min(10, int(round_half_up(peak))),
        avg_pain=round_half_up(mean(values), 1),
        entry_count=sum(p.count for p in run),
        recovery_days=recovery_days,
        duration_days=len(run),
        severity=classify_severity(peak),
        associated_triggers=[label for label, _ in triggers.most_common(MAX_ASSOCIATED)],
        associated_locations=[label for label, _ in locations.most_common(MAX_ASSOCIATED)],
    )
