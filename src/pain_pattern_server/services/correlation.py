"""Factor correlation analysis (triggers, symptoms, medications, locations).

Every factor family runs the same with/without comparison: the mean pain of
entries carrying the factor against the mean pain of every other cleaned
entry. This is an explainable heuristic, not a significance test.
"""

import re
from collections.abc import Callable, Sequence
from itertools import combinations

import structlog

from pain_pattern_server.schemas.entries import PainEntry
from pain_pattern_server.schemas.patterns import (
    AnalysisConfig,
    BaselineResult,
    CorrelationDirection,
    CorrelationStrength,
    FactorCorrelation,
    FactorKind,
    TriggerBundle,
)
from pain_pattern_server.services.statistics import mean, round_half_up, variance

logger = structlog.get_logger()

# |delta| boundaries for the strength buckets
MIN_DELTA = 0.3
WEAK_DELTA = 0.7
MODERATE_DELTA = 1.5

# Minimum fraction of consistent evidence for any non-"none" bucket
MIN_BUCKET_CONFIDENCE = 0.5

# Bundles need at least this many co-occurrences regardless of config
MIN_BUNDLE_OCCURRENCES = 3

_FACTOR_EXTRACTORS: dict[FactorKind, Callable[[PainEntry], list[str]]] = {
    FactorKind.TRIGGER: lambda e: e.triggers,
    FactorKind.SYMPTOM: lambda e: e.symptoms,
    FactorKind.MEDICATION: lambda e: e.medications,
    FactorKind.LOCATION: lambda e: e.locations,
}


def extract_factors(entry: PainEntry, kind: FactorKind) -> list[str]:
    """Labels of the given kind recorded on an entry."""
    return _FACTOR_EXTRACTORS[kind](entry)


def bucket_correlation(delta: float, confidence: float) -> CorrelationStrength:
    """Bucket an effect size into a strength tier.

    Args:
        delta: Pain difference attributed to the factor
        confidence: Evidential consistency (0-1)

    Returns:
        Strength bucket; NONE when evidence is inconsistent or the effect tiny
    """
    magnitude = abs(delta)
    if confidence < MIN_BUCKET_CONFIDENCE or magnitude < MIN_DELTA:
        return CorrelationStrength.NONE
    if magnitude < WEAK_DELTA:
        return CorrelationStrength.WEAK
    if magnitude < MODERATE_DELTA:
        return CorrelationStrength.MODERATE
    return CorrelationStrength.STRONG


def classify_direction(delta: float) -> CorrelationDirection:
    """Direction of a factor's effect on pain."""
    if delta > MIN_DELTA:
        return CorrelationDirection.INCREASES
    if delta < -MIN_DELTA:
        return CorrelationDirection.DECREASES
    return CorrelationDirection.NEUTRAL


def format_label(key: str) -> str:
    """Turn ``lower-back`` / ``poor_sleep`` into ``Lower Back`` / ``Poor Sleep``."""
    words = [w for w in re.split(r"[-_\s]+", key) if w]
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)


def compute_correlations(
    entries: Sequence[PainEntry],
    baseline: BaselineResult,
    config: AnalysisConfig,
    kind: FactorKind,
) -> list[FactorCorrelation]:
    """Correlate each factor of ``kind`` with pain.

    A factor is reported only when it has enough support, its strength
    bucket is not NONE and its confidence clears
    ``min_confidence_for_display``.

    Args:
        entries: Cleaned entries
        baseline: Current baseline
        config: Engine configuration
        kind: Factor family to analyse

    Returns:
        Correlations sorted by |delta_pain| descending
    """
    with_factor: dict[str, list[int]] = {}
    for entry in entries:
        for factor in extract_factors(entry, kind):
            with_factor.setdefault(factor, []).append(entry.pain_level)

    correlations: list[FactorCorrelation] = []

    for factor, with_values in with_factor.items():
        support = len(with_values)
        if support < config.min_support_for_correlation:
            continue

        without_values = [
            e.pain_level for e in entries if factor not in extract_factors(e, kind)
        ]

        mean_with = mean(with_values)
        mean_without = mean(without_values, default=baseline.value)
        delta = mean_with - mean_without

        above_baseline = sum(1 for v in with_values if v > baseline.value)
        confidence = above_baseline / support

        stability = max(0.0, 1 - variance(with_values) / 10)

        strength = bucket_correlation(delta, confidence)
        if strength == CorrelationStrength.NONE:
            continue
        if confidence < config.min_confidence_for_display:
            continue

        correlations.append(
            FactorCorrelation(
                key=factor,
                label=format_label(factor),
                kind=kind,
                delta_pain=round_half_up(delta, 2),
                support=support,
                confidence=round_half_up(confidence, 2),
                strength=strength,
                direction=classify_direction(delta),
                stability_score=round_half_up(stability, 2),
            )
        )

    logger.debug(
        "Correlations computed",
        kind=kind.value,
        factors=len(with_factor),
        reported=len(correlations),
    )

    return sorted(correlations, key=lambda c: (-abs(c.delta_pain), c.key))


def compute_trigger_correlations(
    entries: Sequence[PainEntry], baseline: BaselineResult, config: AnalysisConfig
) -> list[FactorCorrelation]:
    """Correlate triggers with pain."""
    return compute_correlations(entries, baseline, config, FactorKind.TRIGGER)


def compute_symptom_correlations(
    entries: Sequence[PainEntry], baseline: BaselineResult, config: AnalysisConfig
) -> list[FactorCorrelation]:
    """Correlate symptoms with pain."""
    return compute_correlations(entries, baseline, config, FactorKind.SYMPTOM)


def compute_medication_correlations(
    entries: Sequence[PainEntry], baseline: BaselineResult, config: AnalysisConfig
) -> list[FactorCorrelation]:
    """Correlate medications with pain."""
    return compute_correlations(entries, baseline, config, FactorKind.MEDICATION)


def compute_location_correlations(
    entries: Sequence[PainEntry], baseline: BaselineResult, config: AnalysisConfig
) -> list[FactorCorrelation]:
    """Correlate body locations with pain."""
    return compute_correlations(entries, baseline, config, FactorKind.LOCATION)


def detect_trigger_bundles(
    entries: Sequence[PainEntry], config: AnalysisConfig
) -> list[TriggerBundle]:
    """Find pairs of triggers that are logged together.

    The co-occurrence frequency (count / total entries) stands in for the
    confidence when bucketing the bundle's mean pain.

    Args:
        entries: Cleaned entries
        config: Engine configuration

    Returns:
        Bundles sorted by |combined_delta| descending
    """
    pairs: dict[tuple[str, str], list[int]] = {}
    for entry in entries:
        if len(entry.triggers) < 2:
            continue
        for first, second in combinations(sorted(entry.triggers), 2):
            pairs.setdefault((first, second), []).append(entry.pain_level)

    min_count = max(MIN_BUNDLE_OCCURRENCES, config.min_support_for_correlation / 2)
    bundles: list[TriggerBundle] = []

    for pair, pains in pairs.items():
        count = len(pains)
        if count < min_count:
            continue

        avg_pain = mean(pains)
        strength = bucket_correlation(avg_pain, count / len(entries))
        if strength == CorrelationStrength.NONE:
            continue

        pair_key = "|".join(pair)
        bundles.append(
            TriggerBundle(
                id=f"bundle-{pair_key}",
                triggers=list(pair),
                combined_delta=round_half_up(avg_pain, 2),
                co_occurrence=count,
                strength=strength,
            )
        )

    return sorted(bundles, key=lambda b: (-abs(b.combined_delta), b.id))
