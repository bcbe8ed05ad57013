"""Baseline calculation for pain levels."""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

import structlog

from pain_pattern_server.schemas.entries import PainEntry, ensure_aware
from pain_pattern_server.schemas.patterns import (
    MAX_BASELINE_WINDOW_DAYS,
    BaselineResult,
    ConfidenceLevel,
)
from pain_pattern_server.services.statistics import median

logger = structlog.get_logger()

# Minimum entries in the recent window before it is used over all history
MIN_RECENT_ENTRIES = 7

# Entry counts for each confidence tier
MIN_ENTRIES_HIGH = 30
MIN_ENTRIES_MEDIUM = 14


def confidence_for_count(count: int) -> ConfidenceLevel:
    """Map a sample count to a confidence tier."""
    if count >= MIN_ENTRIES_HIGH:
        return ConfidenceLevel.HIGH
    elif count >= MIN_ENTRIES_MEDIUM:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def calculate_baseline(
    entries: Sequence[PainEntry],
    window_days: int = 30,
    now: datetime | None = None,
) -> BaselineResult:
    """Calculate the patient's reference pain level.

    Uses the median, which a single-day flare cannot drag upward the way
    it would a mean. The recent window is preferred; when it holds fewer
    than 7 entries, all entries are used instead.

    Args:
        entries: Cleaned entries, sorted ascending
        window_days: Recency window in days, clamped to 0..36500
        now: Analysis time (defaults to the wall clock, naive means UTC)

    Returns:
        BaselineResult with value, confidence and coverage
    """
    if not entries:
        return BaselineResult(
            value=0,
            method="median",
            confidence=ConfidenceLevel.LOW,
            window_days=0,
            entry_count=0,
        )

    now = ensure_aware(now or datetime.now(UTC))
    window_days = min(MAX_BASELINE_WINDOW_DAYS, max(0, window_days))
    window = timedelta(days=window_days)
    recent = [e for e in entries if now - e.timestamp <= window]

    if len(recent) >= MIN_RECENT_ENTRIES:
        used = recent
        coverage_days = window_days
    else:
        used = list(entries)
        coverage_days = (entries[-1].timestamp - entries[0].timestamp).days + 1

    value = median([e.pain_level for e in used])

    logger.debug(
        "Baseline calculated",
        value=value,
        entry_count=len(used),
        used_recent_window=used is recent,
    )

    return BaselineResult(
        value=value,
        method="median",
        confidence=confidence_for_count(len(used)),
        window_days=coverage_days,
        entry_count=len(used),
    )
