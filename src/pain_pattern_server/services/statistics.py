"""Statistical helpers shared by the analysis services."""

import math
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from statistics import mean as _mean
from statistics import median as _median
from statistics import mode as _mode
from statistics import pstdev

import numpy as np
from scipy import stats

from pain_pattern_server.schemas.patterns import StatisticalSummary


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves away from zero (3.25 -> 3.3)."""
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def mean(values: Sequence[float], default: float = 0.0) -> float:
    """Arithmetic mean, ``default`` for an empty sequence."""
    return float(_mean(values)) if values else default


def median(values: Sequence[float], default: float = 0.0) -> float:
    """Median (average of the middle pair for even counts)."""
    return float(_median(values)) if values else default


def mode(values: Sequence[float], default: float = 0.0) -> float:
    """Most frequent value; the first one seen wins ties."""
    return float(_mode(values)) if values else default


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation."""
    return float(pstdev(values)) if values else 0.0


def variance(values: Sequence[float]) -> float:
    """Population variance."""
    return std_dev(values) ** 2


def summarize(values: Sequence[float]) -> StatisticalSummary:
    """Calculate a statistical summary.

    Args:
        values: Sample values

    Returns:
        Summary with mean, median and stddev rounded to 2 decimals
    """
    if not values:
        return StatisticalSummary(mean=0, median=0, mode=0, std_dev=0, min=0, max=0, count=0)

    return StatisticalSummary(
        mean=round_half_up(mean(values), 2),
        median=round_half_up(median(values), 2),
        mode=mode(values),
        std_dev=round_half_up(std_dev(values), 2),
        min=min(values),
        max=max(values),
        count=len(values),
    )


def pearson(x: Sequence[float], y: Sequence[float]) -> tuple[float, float | None]:
    """Pearson correlation coefficient between two aligned series.

    Series are truncated to the shorter length. Fewer than 3 pairs or a
    constant series yields a coefficient of 0 and no p-value.

    Returns:
        Tuple of (coefficient, p_value)
    """
    n = min(len(x), len(y))
    if n < 3:
        return 0.0, None

    xs = np.asarray(x[:n], dtype=float)
    ys = np.asarray(y[:n], dtype=float)
    if np.ptp(xs) == 0 or np.ptp(ys) == 0:
        return 0.0, None

    result = stats.pearsonr(xs, ys)
    coefficient = float(result.statistic)
    p_value = float(result.pvalue)
    if math.isnan(coefficient):
        return 0.0, None
    return coefficient, None if math.isnan(p_value) else p_value


def linear_regression(values: Sequence[float]) -> tuple[float, float]:
    """Least-squares line through ``values`` indexed 0..n-1.

    Returns:
        Tuple of (slope, intercept)
    """
    if not values:
        return 0.0, 0.0
    if len(values) < 2:
        return 0.0, float(values[0])

    x = np.arange(len(values), dtype=float)
    result = stats.linregress(x, np.asarray(values, dtype=float))
    return float(result.slope), float(result.intercept)


def moving_average(values: Sequence[float], window: int) -> list[float]:
    """Trailing moving average; one value per full window."""
    if window <= 0 or len(values) < window:
        return []
    kernel = np.ones(window) / window
    return [float(v) for v in np.convolve(np.asarray(values, dtype=float), kernel, mode="valid")]


def detect_outliers(values: Sequence[float], threshold: float = 2.0) -> list[tuple[int, float]]:
    """Find values more than ``threshold`` standard deviations from the mean.

    Returns:
        List of (index, z_score) pairs
    """
    if len(values) < 2:
        return []

    center = mean(values)
    spread = std_dev(values)
    if spread == 0:
        return []

    outliers = []
    for idx, value in enumerate(values):
        z_score = (value - center) / spread
        if abs(z_score) > threshold:
            outliers.append((idx, z_score))
    return outliers
