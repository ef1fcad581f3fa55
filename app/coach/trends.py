"""
Trend helpers — slopes, confidence and per-metric trend analysis.

Canonical ordering
------------------
Every series passed to :func:`linear_trend` is ordered **oldest → newest**
(index 0 is the oldest sample), so a positive slope always means the
metric is rising over time.  Metric tables are stored newest-first; use
:meth:`MetricTable.trend_series` or reverse explicitly before fitting.

Confidence
----------
:func:`calculate_confidence` is a coarse heuristic, not a statistical
interval: it grows with sample count (saturating at 14 days) and is
discounted for erratic series.  Plenty of data can push it past the
display threshold even when the prediction itself is implausible.
"""

from __future__ import annotations

import math
from typing import Sequence

from app.schemas.goal import ImprovementDirection
from app.schemas.metrics import MetricKind, MetricTable
from app.schemas.prediction import TrendAnalysis, TrendDirection

# ======================================================================
# Configuration
# ======================================================================

# Confidence saturates at this many samples.
_FULL_CONFIDENCE_SAMPLES = 14.0
_MAX_BASE_CONFIDENCE = 0.9
_CONFIDENCE_FLOOR = 0.5
_CONFIDENCE_CEILING = 0.95

# Coefficient of variation above which a series is "erratic".
_CV_THRESHOLD = 0.3
_CV_PENALTY = 0.8
_CV_WINDOW = 7

# Metrics covered by trend analysis and which way is better.
TREND_METRICS: dict[MetricKind, ImprovementDirection] = {
    MetricKind.RECOVERY: ImprovementDirection.HIGHER_IS_BETTER,
    MetricKind.SLEEP_PERFORMANCE: ImprovementDirection.HIGHER_IS_BETTER,
    MetricKind.HRV: ImprovementDirection.HIGHER_IS_BETTER,
    MetricKind.DAY_STRAIN: ImprovementDirection.LOWER_IS_BETTER,
    MetricKind.RESTING_HEART_RATE: ImprovementDirection.LOWER_IS_BETTER,
}

_TREND_MIN_SAMPLES = 7
_TREND_FIT_WINDOW = 14
_TREND_LABEL_THRESHOLD = 5.0  # weekly % change
_TREND_REPORT_THRESHOLD = 2.0


# ======================================================================
# Basic statistics
# ======================================================================


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; an empty window resolves to 0."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_stdev(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    m = mean(values)
    return math.sqrt(sum((v - m) ** 2 for v in values) / len(values))


def linear_trend(values: Sequence[float]) -> float:
    """Least-squares slope of *values* against their index.

    *values* must be ordered oldest → newest.  Fewer than three points
    give a slope of 0.
    """
    n = len(values)
    if n < 3:
        return 0.0
    sum_x = n * (n - 1) / 2
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))
    sum_xx = sum(i * i for i in range(n))
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def coefficient_of_variation(values: Sequence[float]) -> float:
    """stdev / mean; 0 when the mean is not positive."""
    m = mean(values)
    if m <= 0:
        return 0.0
    return population_stdev(values) / m


def calculate_confidence(*series: Sequence[float]) -> float:
    """Heuristic confidence for a prediction built from *series*.

    Each series is newest-first; only its 7 most recent points are used
    for the variability check.
    """
    if not series:
        return _CONFIDENCE_FLOOR

    avg_samples = sum(len(s) for s in series) / len(series)
    confidence = min(_MAX_BASE_CONFIDENCE, avg_samples / _FULL_CONFIDENCE_SAMPLES)

    for s in series:
        if len(s) > 3 and coefficient_of_variation(s[:_CV_WINDOW]) > _CV_THRESHOLD:
            confidence *= _CV_PENALTY

    return max(_CONFIDENCE_FLOOR, min(_CONFIDENCE_CEILING, confidence))


# ======================================================================
# Trend analysis
# ======================================================================


def _direction_label(change_rate: float, direction: ImprovementDirection) -> TrendDirection:
    if abs(change_rate) <= _TREND_LABEL_THRESHOLD:
        return TrendDirection.STABLE
    rising = change_rate > 0
    if direction is ImprovementDirection.LOWER_IS_BETTER:
        rising = not rising
    return TrendDirection.IMPROVING if rising else TrendDirection.DECLINING


def analyze_metric_trend(
    table: MetricTable,
    kind: MetricKind,
    direction: ImprovementDirection,
) -> TrendAnalysis:
    """Weekly trend of one metric over the last two weeks."""
    column = kind.column
    recent = table.series(column, limit=_TREND_MIN_SAMPLES)
    if len(recent) < _TREND_MIN_SAMPLES:
        return TrendAnalysis(metric=column, trend=TrendDirection.STABLE, change_rate=0.0, significance=0.0)

    slope = linear_trend(table.trend_series(column, _TREND_FIT_WINDOW))
    recent_mean = mean(recent)
    change_rate = (slope * 7) / recent_mean * 100 if recent_mean else 0.0

    return TrendAnalysis(
        metric=column,
        trend=_direction_label(change_rate, direction),
        change_rate=round(change_rate, 1),
        significance=round(abs(change_rate), 1),
    )


def analyze_trends(table: MetricTable) -> list[TrendAnalysis]:
    """Trend analysis for the key metrics, keeping only significant ones."""
    analyses = [
        analyze_metric_trend(table, kind, direction)
        for kind, direction in TREND_METRICS.items()
    ]
    return [a for a in analyses if a.significance > _TREND_REPORT_THRESHOLD]
