"""
Trend/forecast engine — short-horizon projections from recent days.

Four predictions are computed on every call:

=====================  ==============  ======================================
Kind                   Min samples     Value
=====================  ==============  ======================================
recovery               7 recovery      tomorrow's recovery score (10-100)
sleep_debt             5 need + 5      debt projected one week out (minutes)
                       asleep
performance            5 recovery      readiness for the next 3 days (0-100)
injury_risk            7 recovery +    risk score for the next 2 weeks
                       7 strain        (0-100)
=====================  ==============  ======================================

Each rule is a baseline plus bounded, piecewise adjustments; there is
no fitted model.  When a precondition fails the prediction is still
returned, with zero confidence and "insufficient data" reasoning.
:func:`predict` then drops everything at or below the acceptance
threshold, so callers only see confident predictions.

Input series are keyed by export column and ordered **newest first**
(as stored in the metric table).  Slopes are always fitted on the
reversed, oldest → newest slice.
"""

from __future__ import annotations

import math
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from app.coach.trends import calculate_confidence, linear_trend, mean
from app.core.logging import get_logger
from app.schemas.metrics import MetricKind, MetricTable
from app.schemas.prediction import Prediction, PredictionKind

log = get_logger(__name__)

SeriesByMetric = Mapping[str, Sequence[float]]

# ======================================================================
# Configuration
# ======================================================================

# Neutral values used when an adjustment series is missing entirely.
_NEUTRAL_STRAIN = 10.0
_NEUTRAL_SLEEP_PERFORMANCE = 80.0

_HRV_SLOPE_THRESHOLD = 0.1
_INJURY_HRV_SLOPE_THRESHOLD = -0.15


class ForecastConfig(BaseModel):
    """Configuration for the forecast run."""

    window_days: int = Field(30, ge=1, description="Most recent rows used as input")
    acceptance_threshold: float = Field(
        0.6, ge=0.0, le=1.0,
        description="Predictions with confidence at or below this are dropped",
    )


DEFAULT_FORECAST_CONFIG = ForecastConfig()


# ======================================================================
# Helpers
# ======================================================================


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _series(series_by_metric: SeriesByMetric, kind: MetricKind) -> list[float]:
    return list(series_by_metric.get(kind.column, ()))


def _slope_of_recent(values: Sequence[float], n: int) -> float:
    """Slope over the *n* most recent points of a newest-first series."""
    return linear_trend(list(reversed(values[:n])))


def _insufficient(kind: PredictionKind, timeframe: str, reasoning: str) -> Prediction:
    return Prediction(
        kind=kind,
        predicted_value=0.0,
        confidence=0.0,
        timeframe=timeframe,
        reasoning=reasoning,
        recommendations=[],
    )


def series_from_table(table: MetricTable, window_days: int = 30) -> dict[str, list[float]]:
    """Newest-first numeric series for every column of the *window_days* most recent rows."""
    window = table.window(window_days)
    return {column: window.series(column) for column in window.columns}


# ======================================================================
# Recovery
# ======================================================================


def predict_recovery(series_by_metric: SeriesByMetric) -> Prediction:
    """Tomorrow's recovery score."""
    recovery = _series(series_by_metric, MetricKind.RECOVERY)
    strain = _series(series_by_metric, MetricKind.DAY_STRAIN)
    sleep = _series(series_by_metric, MetricKind.SLEEP_PERFORMANCE)

    if len(recovery) < 7:
        return _insufficient(PredictionKind.RECOVERY, "tomorrow", "Insufficient data")

    baseline = mean(recovery[:7])
    recent = mean(recovery[:3])
    recent_strain = mean(strain[:2]) if strain else _NEUTRAL_STRAIN
    recent_sleep = mean(sleep[:2]) if sleep else _NEUTRAL_SLEEP_PERFORMANCE

    predicted = baseline

    # High strain typically lowers next-day recovery.
    if recent_strain > 15:
        predicted -= 10
    elif recent_strain > 12:
        predicted -= 5
    elif recent_strain < 8:
        predicted += 3

    if recent_sleep < 70:
        predicted -= 8
    elif recent_sleep > 85:
        predicted += 5

    predicted += (recent - baseline) * 0.3
    predicted = _clamp(predicted, 10.0, 100.0)

    if predicted < 50:
        recommendations = [
            "Consider a rest day or light activity",
            "Prioritize quality sleep tonight",
            "Focus on hydration and nutrition",
        ]
    elif predicted > 80:
        recommendations = [
            "Good day for higher intensity training",
            "Your body is ready for challenge",
            "Maintain current recovery practices",
        ]
    else:
        recommendations = [
            "Moderate training intensity recommended",
            "Monitor how you feel during activity",
            "Focus on recovery practices",
        ]

    return Prediction(
        kind=PredictionKind.RECOVERY,
        predicted_value=_round_half_up(predicted),
        confidence=calculate_confidence(recovery, strain, sleep),
        timeframe="tomorrow",
        reasoning=(
            f"Based on your recent recovery trend ({recent:.1f}%), "
            f"strain patterns ({recent_strain:.1f}), "
            f"and sleep quality ({recent_sleep:.1f}%)"
        ),
        recommendations=recommendations,
    )


# ======================================================================
# Sleep debt
# ======================================================================


def _sleep_debt_recommendations(current_debt: float) -> list[str]:
    if abs(current_debt) < 30:
        return [
            "Excellent sleep balance",
            "You're meeting your sleep needs consistently",
            "Maintain your current sleep schedule",
            "Continue prioritizing sleep quality",
        ]
    if current_debt > 120:
        return [
            "Significant sleep debt accumulated",
            "Prioritize earlier bedtime this week",
            "Consider catching up with longer weekend sleep",
            "Focus on sleep quality optimization",
        ]
    if current_debt > 60:
        return [
            "Moderate sleep debt building up",
            "Aim for 30-60 minutes earlier bedtime",
            "Maintain consistent sleep schedule",
            "Monitor sleep efficiency",
        ]
    if current_debt < -60:
        return [
            "Great sleep surplus",
            "You're banking extra recovery time",
            "Maintain current excellent habits",
            "Consider how this affects your energy levels",
        ]
    return [
        "Minor sleep debt, manageable",
        "Small adjustments to bedtime can help",
        "Focus on sleep consistency",
        "Monitor for quality over quantity",
    ]


def predict_sleep_debt(series_by_metric: SeriesByMetric) -> Prediction:
    """Current sleep debt projected one week ahead (minutes)."""
    need = _series(series_by_metric, MetricKind.SLEEP_NEED)
    asleep = _series(series_by_metric, MetricKind.ASLEEP_DURATION)
    debt = _series(series_by_metric, MetricKind.SLEEP_DEBT)
    timeframe = "current & 1 week projection"

    if len(need) < 5 or len(asleep) < 5:
        return _insufficient(PredictionKind.SLEEP_DEBT, timeframe, "Insufficient sleep data")

    days = min(7, len(need), len(asleep))
    deficits = [need[i] - asleep[i] for i in range(days)]

    # An explicit debt column wins; a zero reading is treated as absent.
    current_debt = debt[0] if debt else 0.0
    if current_debt == 0:
        current_debt = sum(deficits)

    recent_deficit = mean(deficits[:3])
    projected = current_debt + recent_deficit * 7

    return Prediction(
        kind=PredictionKind.SLEEP_DEBT,
        predicted_value=_round_half_up(projected),
        confidence=calculate_confidence(need, asleep),
        timeframe=timeframe,
        reasoning=(
            f"Current debt: {current_debt / 60:+.1f}h. "
            f"Recent avg deficit: {recent_deficit / 60:.1f}h/day. "
            f"Projected: {projected / 60:+.1f}h"
        ),
        recommendations=_sleep_debt_recommendations(current_debt),
    )


# ======================================================================
# Performance readiness
# ======================================================================


def predict_performance_readiness(series_by_metric: SeriesByMetric) -> Prediction:
    """Readiness to perform over the next three days."""
    recovery = _series(series_by_metric, MetricKind.RECOVERY)
    hrv = _series(series_by_metric, MetricKind.HRV)
    strain = _series(series_by_metric, MetricKind.DAY_STRAIN)
    timeframe = "next 3 days"

    if len(recovery) < 5:
        return _insufficient(PredictionKind.PERFORMANCE, timeframe, "Insufficient performance data")

    avg_recovery = mean(recovery[:5])
    hrv_slope = _slope_of_recent(hrv, 5) if len(hrv) >= 5 else 0.0
    recent_strain = mean(strain[:3]) if strain else _NEUTRAL_STRAIN

    readiness = avg_recovery
    if hrv_slope > _HRV_SLOPE_THRESHOLD:
        readiness += 5
    elif hrv_slope < -_HRV_SLOPE_THRESHOLD:
        readiness -= 5

    if recent_strain > 16:
        readiness -= 10
    elif recent_strain < 9:
        readiness += 5

    readiness = _clamp(readiness, 0.0, 100.0)

    if readiness > 80:
        recommendations = [
            "Excellent performance window",
            "Consider peak intensity training",
            "Your body is primed for performance",
        ]
    elif readiness > 60:
        recommendations = [
            "Good for moderate-high intensity",
            "Listen to your body during training",
            "Maintain current recovery practices",
        ]
    else:
        recommendations = [
            "Focus on active recovery",
            "Avoid high intensity training",
            "Prioritize sleep and nutrition",
        ]

    if hrv_slope > _HRV_SLOPE_THRESHOLD:
        hrv_label = "improving"
    elif hrv_slope < -_HRV_SLOPE_THRESHOLD:
        hrv_label = "declining"
    else:
        hrv_label = "stable"

    return Prediction(
        kind=PredictionKind.PERFORMANCE,
        predicted_value=_round_half_up(readiness),
        confidence=calculate_confidence(recovery, hrv, strain),
        timeframe=timeframe,
        reasoning=(
            f"Recovery trend: {avg_recovery:.1f}%, HRV trend: {hrv_label}, "
            f"Recent strain: {recent_strain:.1f}"
        ),
        recommendations=recommendations,
    )


# ======================================================================
# Injury risk
# ======================================================================


def _strain_recovery_risk(recovery: Sequence[float], strain: Sequence[float]) -> tuple[float, int]:
    """Score high-strain / low-recovery days over the last week.

    Both series come filtered of blank readings, so days are paired by
    position among numeric readings, not by row.  A blank recovery on one
    day shifts the pairs after it; only the overlapping prefix counts.

    Returns:
        ``(risk, longest_streak)``.  Each risky day adds 15; a run of
        three in a row adds a one-time 25.  A safe day resets the streak
        but never lowers the running score.
    """
    risk = 0.0
    streak = 0
    longest = 0
    streak_bonus_applied = False

    for i in range(min(7, len(recovery), len(strain))):
        if strain[i] > 14 and recovery[i] < 50:
            streak += 1
            risk += 15
            longest = max(longest, streak)
            if streak >= 3 and not streak_bonus_applied:
                risk += 25
                streak_bonus_applied = True
        else:
            streak = 0

    return risk, longest


def assess_injury_risk(series_by_metric: SeriesByMetric) -> Prediction:
    """Injury risk from strain/recovery imbalance over the next two weeks."""
    recovery = _series(series_by_metric, MetricKind.RECOVERY)
    strain = _series(series_by_metric, MetricKind.DAY_STRAIN)
    hrv = _series(series_by_metric, MetricKind.HRV)
    timeframe = "next 2 weeks"

    if len(recovery) < 7 or len(strain) < 7:
        return _insufficient(
            PredictionKind.INJURY_RISK, timeframe,
            "Insufficient data for injury risk assessment",
        )

    risk, longest_streak = _strain_recovery_risk(recovery, strain)

    hrv_slope = _slope_of_recent(hrv, 7) if len(hrv) >= 7 else 0.0
    if hrv_slope < _INJURY_HRV_SLOPE_THRESHOLD:
        risk += 20

    # Sudden spike: last 3 days well above the weekly average.
    if mean(strain[:3]) > mean(strain[:7]) * 1.3:
        risk += 15

    risk = _clamp(risk, 0.0, 100.0)

    if risk > 70:
        recommendations = [
            "High injury risk, consider rest days",
            "Focus heavily on recovery protocols",
            "Avoid high-intensity training",
            "Consider consulting a healthcare provider",
        ]
    elif risk > 40:
        recommendations = [
            "Moderate injury risk detected",
            "Increase recovery focus",
            "Reduce training intensity temporarily",
            "Monitor for pain or unusual fatigue",
        ]
    else:
        recommendations = [
            "Low injury risk",
            "Current training load appears sustainable",
            "Continue monitoring strain-recovery balance",
        ]

    return Prediction(
        kind=PredictionKind.INJURY_RISK,
        predicted_value=_round_half_up(risk),
        confidence=calculate_confidence(recovery, strain, hrv),
        timeframe=timeframe,
        reasoning=(
            f"{longest_streak} consecutive high-risk days, "
            f"HRV trend: {'declining' if hrv_slope < 0 else 'stable'}, "
            "strain pattern analysis"
        ),
        recommendations=recommendations,
    )


# ======================================================================
# Main entry points
# ======================================================================


def predict(
    series_by_metric: SeriesByMetric,
    config: Optional[ForecastConfig] = None,
) -> list[Prediction]:
    """Compute all four predictions and keep only the confident ones.

    Args:
        series_by_metric: Newest-first numeric series keyed by export column.
        config: Optional :class:`ForecastConfig` override.

    Returns:
        Predictions with confidence above the acceptance threshold, in
        the order recovery, sleep debt, performance, injury risk.
    """
    cfg = config or DEFAULT_FORECAST_CONFIG
    predictions = [
        predict_recovery(series_by_metric),
        predict_sleep_debt(series_by_metric),
        predict_performance_readiness(series_by_metric),
        assess_injury_risk(series_by_metric),
    ]

    accepted = [p for p in predictions if p.confidence > cfg.acceptance_threshold]
    dropped = [p.kind.value for p in predictions if p.confidence <= cfg.acceptance_threshold]
    if dropped:
        log.debug("predictions_dropped", kinds=dropped, threshold=cfg.acceptance_threshold)
    return accepted


def predict_from_table(table: MetricTable, config: Optional[ForecastConfig] = None) -> list[Prediction]:
    """:func:`predict` over the configured window of a metric table."""
    cfg = config or DEFAULT_FORECAST_CONFIG
    return predict(series_from_table(table, cfg.window_days), cfg)
