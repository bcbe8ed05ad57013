"""Pattern analysis orchestrator.

Sequences cleaning, baseline, trends, episodes, correlations and
quality-of-life analysis into a single PatternAnalysisResult.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime, tzinfo
from typing import Any

import structlog

from pain_pattern_server.core.config import settings
from pain_pattern_server.schemas.entries import PainEntry, ensure_aware
from pain_pattern_server.schemas.patterns import (
    AnalysisConfig,
    ConfidenceLevel,
    DataWindow,
    InsightMeta,
    PatternAnalysisResult,
)
from pain_pattern_server.services.baseline import calculate_baseline
from pain_pattern_server.services.cleaning import clean_entries
from pain_pattern_server.services.correlation import (
    compute_location_correlations,
    compute_medication_correlations,
    compute_symptom_correlations,
    compute_trigger_correlations,
    detect_trigger_bundles,
)
from pain_pattern_server.services.episodes import detect_episodes
from pain_pattern_server.services.quality_of_life import (
    compute_lagged_qol_patterns,
    compute_qol_patterns,
    detect_qol_dissonances,
)
from pain_pattern_server.services.trends import (
    compute_daily_trend,
    compute_weekly_trend,
    summarize_trend,
)

logger = structlog.get_logger()

# Entry count for "high" data quality
HIGH_QUALITY_ENTRIES = 60


class PatternAnalyzer:
    """Run the full pattern analysis over a set of pain entries.

    Holds nothing but the effective configuration, so one instance can be
    shared freely or a new one built per call.
    """

    def __init__(self, config: Mapping[str, Any] | AnalysisConfig | None = None) -> None:
        """Initialize pattern analyzer.

        Args:
            config: Overrides merged over the default AnalysisConfig
        """
        self.config = AnalysisConfig.from_overrides(config)
        self.logger = logger.bind(service="pattern")

    def analyze(
        self,
        entries: Iterable[Any],
        now: datetime | None = None,
        tz: tzinfo | None = None,
    ) -> PatternAnalysisResult:
        """Analyze pain entries.

        Args:
            entries: Raw entries (mappings or PainEntry instances)
            now: Analysis time, defaults to the wall clock; a naive value is
                read in ``tz``
            tz: Timezone for calendar days and naive timestamps, defaults to
                the configured analysis timezone

        Returns:
            Complete analysis result; sparse, never an error, for small inputs
        """
        tz = tz if tz is not None else settings.get_timezone()
        now = ensure_aware(now or datetime.now(UTC), tz)
        config = self.config

        cleaned = clean_entries(entries, tz)
        baseline = calculate_baseline(cleaned, config.baseline_window_days, now)
        daily = compute_daily_trend(cleaned, tz)
        weekly = compute_weekly_trend(daily)

        qol_patterns = compute_qol_patterns(cleaned, baseline, config)
        dissonances = (
            detect_qol_dissonances(cleaned, daily, qol_patterns, tz)
            if config.enable_qol_dissonance
            else []
        )

        result = PatternAnalysisResult(
            cleaned_entries=cleaned,
            baseline=baseline,
            daily_trend=daily,
            weekly_trend=weekly,
            trend_summary=summarize_trend(daily, baseline, config),
            episodes=detect_episodes(daily, baseline, config, cleaned, tz),
            trigger_correlations=compute_trigger_correlations(cleaned, baseline, config),
            symptom_correlations=compute_symptom_correlations(cleaned, baseline, config),
            medication_correlations=compute_medication_correlations(cleaned, baseline, config),
            location_correlations=compute_location_correlations(cleaned, baseline, config),
            trigger_bundles=detect_trigger_bundles(cleaned, config),
            qol_patterns=qol_patterns,
            lagged_qol_patterns=compute_lagged_qol_patterns(cleaned, baseline, config, tz),
            qol_dissonances=dissonances,
            meta=self._build_meta(cleaned, now),
            config=config,
        )

        self.logger.info(
            "Pattern analysis complete",
            entries=len(cleaned),
            baseline=baseline.value,
            episodes=len(result.episodes),
            data_quality=result.meta.data_quality.value,
        )
        return result

    def _build_meta(self, entries: Sequence[PainEntry], now: datetime) -> InsightMeta:
        """Build run metadata."""
        if entries:
            window = DataWindow(start=entries[0].timestamp, end=entries[-1].timestamp)
        else:
            window = DataWindow(start=now, end=now)

        return InsightMeta(
            data_window=window,
            entry_count=len(entries),
            data_quality=self._data_quality(len(entries)),
            cautions=self._cautions(entries),
            generated_at=now,
        )

    def _data_quality(self, count: int) -> ConfidenceLevel:
        """Quality tier from the number of cleaned entries."""
        if count >= HIGH_QUALITY_ENTRIES:
            return ConfidenceLevel.HIGH
        elif count >= 3 * self.config.min_entries_for_trend:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def _cautions(self, entries: Sequence[PainEntry]) -> list[str]:
        """Human-readable warnings about the reliability of the result."""
        cautions = []
        count = len(entries)

        if count < self.config.min_entries_for_trend:
            cautions.append(
                f"Low sample size ({count} entries). Add more entries for reliable trends."
            )

        if count < self.config.min_support_for_correlation:
            cautions.append(
                "Not enough data for correlation analysis. Keep logging triggers and symptoms."
            )

        if not any(entry.has_qol_data() for entry in entries):
            cautions.append(
                "Quality of Life data missing. Log sleep, mood, and activity for richer insights."
            )

        return cautions


def analyze_patterns(
    entries: Iterable[Any],
    config: Mapping[str, Any] | AnalysisConfig | None = None,
    now: datetime | None = None,
) -> PatternAnalysisResult:
    """Analyze pain entries with a one-off PatternAnalyzer.

    Args:
        entries: Raw entries
        config: Optional configuration overrides
        now: Analysis time

    Returns:
        Complete analysis result
    """
    return PatternAnalyzer(config).analyze(entries, now=now)
