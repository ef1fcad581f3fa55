"""
Goal progress calculator.

Progress is always a bounded 0-100 figure:

- **higher is better** — ``current / target × 100``
- **lower is better**  — share of the baseline → target distance already
  covered: ``(baseline − current) / (baseline − target) × 100``

Degenerate targets (``target == baseline`` for lower-is-better, ``target
== 0`` for higher-is-better) resolve to 100 when the target has been
reached in the improving direction and 0 otherwise.

The trend label compares the new value with the previous one: changes
under one unit are ``stable``; otherwise the label follows the goal's
improvement direction, not the raw sign of the change.
"""

from __future__ import annotations

from typing import Optional, Sequence

from app.coach.trends import mean, population_stdev
from app.schemas.goal import (
    Goal,
    GoalInsights,
    GoalKind,
    GoalSuggestion,
    GoalTimeframe,
    ImprovementDirection,
)
from app.schemas.metrics import MetricKind, MetricTable
from app.schemas.prediction import TrendDirection

# ======================================================================
# Configuration
# ======================================================================

# Metric column backing each goal kind.
GOAL_METRICS: dict[GoalKind, MetricKind] = {
    GoalKind.RECOVERY: MetricKind.RECOVERY,
    GoalKind.SLEEP: MetricKind.SLEEP_PERFORMANCE,
    GoalKind.STRAIN: MetricKind.DAY_STRAIN,
    GoalKind.HRV: MetricKind.HRV,
}

# Starting point assumed when the user gives none.
DEFAULT_BASELINES: dict[GoalKind, float] = {
    GoalKind.RECOVERY: 30.0,
    GoalKind.SLEEP: 60.0,
    GoalKind.STRAIN: 20.0,
    GoalKind.HRV: 20.0,
    GoalKind.CUSTOM: 0.0,
}

DEFAULT_DIRECTIONS: dict[GoalKind, ImprovementDirection] = {
    GoalKind.RECOVERY: ImprovementDirection.HIGHER_IS_BETTER,
    GoalKind.SLEEP: ImprovementDirection.HIGHER_IS_BETTER,
    GoalKind.STRAIN: ImprovementDirection.LOWER_IS_BETTER,
    GoalKind.HRV: ImprovementDirection.HIGHER_IS_BETTER,
    GoalKind.CUSTOM: ImprovementDirection.HIGHER_IS_BETTER,
}

_STABLE_DELTA = 1.0

# Band upper bounds (exclusive); anything at or above the last is "high".
_PROGRESS_BANDS: list[tuple[float, str]] = [(50.0, "low"), (80.0, "mid")]

_RECOMMENDATIONS: dict[GoalKind, dict[str, list[str]]] = {
    GoalKind.RECOVERY: {
        "low": [
            "Focus on sleep quality - aim for 7-9 hours nightly",
            "Reduce training intensity for 2-3 days",
            "Prioritize stress management and relaxation",
            "Stay hydrated and maintain good nutrition",
        ],
        "mid": [
            "You're making good progress! Stay consistent",
            "Monitor strain vs recovery balance",
            "Consider adding recovery protocols (stretching, meditation)",
        ],
        "high": [
            "Excellent progress! Maintain current habits",
            "You're in the green zone consistently",
            "Consider setting a more ambitious target",
        ],
    },
    GoalKind.SLEEP: {
        "low": [
            "Establish a consistent bedtime routine",
            "Optimize sleep environment (cool, dark, quiet)",
            "Avoid screens 1 hour before bed",
            "Limit caffeine after 2 PM",
        ],
        "mid": [
            "Good improvement in sleep patterns",
            "Focus on sleep consistency and timing",
            "Track what affects your sleep quality",
        ],
        "high": [
            "Outstanding sleep performance!",
            "Your sleep hygiene is excellent",
            "Keep your schedule steady through weekends",
        ],
    },
    GoalKind.HRV: {
        "low": [
            "Incorporate stress reduction techniques",
            "Ensure adequate recovery between workouts",
            "Consider breath work or meditation",
            "Focus on sleep quality and consistency",
        ],
        "mid": [
            "HRV is improving - great progress!",
            "Continue current recovery practices",
            "Keep alcohol and late meals to a minimum",
        ],
        "high": [
            "Your autonomic nervous system is adapting well",
            "Maintain the habits that got you here",
            "Consider setting a more ambitious target",
        ],
    },
    GoalKind.STRAIN: {
        "low": [
            "Plan more recovery days in your training",
            "Reduce intensity rather than volume initially",
            "Listen to your body's recovery signals",
            "Consider periodized training approach",
        ],
        "mid": [
            "Good balance of strain and recovery",
            "Your training load is becoming more sustainable",
            "Continue monitoring recovery metrics",
        ],
        "high": [
            "Training load is well managed",
            "Keep matching strain to your daily recovery",
            "Reintroduce hard days only when recovery is green",
        ],
    },
}


# ======================================================================
# Progress and trend
# ======================================================================


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def calculate_progress(
    current: float,
    baseline: float,
    target: float,
    direction: ImprovementDirection,
) -> float:
    """Bounded 0-100 progress toward *target*."""
    if direction is ImprovementDirection.LOWER_IS_BETTER:
        if target == baseline:
            return 100.0 if current <= target else 0.0
        return _clamp_percent((baseline - current) / (baseline - target) * 100)

    if target == 0:
        return 100.0 if current >= target else 0.0
    return _clamp_percent(current / target * 100)


def classify_trend(
    current: float,
    previous: float,
    direction: ImprovementDirection,
) -> TrendDirection:
    if abs(current - previous) < _STABLE_DELTA:
        return TrendDirection.STABLE
    rising = current > previous
    if direction is ImprovementDirection.LOWER_IS_BETTER:
        rising = not rising
    return TrendDirection.IMPROVING if rising else TrendDirection.DECLINING


def progress_band(progress: float) -> str:
    for upper, band in _PROGRESS_BANDS:
        if progress < upper:
            return band
    return "high"


def recommendations_for(kind: GoalKind, progress: float) -> list[str]:
    """Canned guidance for a goal kind at a progress level."""
    table = _RECOMMENDATIONS.get(kind)
    if table is None:
        return []
    return list(table[progress_band(progress)])


def update_progress(goal: Goal, current_value: float) -> Goal:
    """Return *goal* re-evaluated against a new current value.

    The goal's previous ``current_value`` is the reference for the trend.
    """
    progress = calculate_progress(
        current_value, goal.baseline_value, goal.target_value, goal.improvement_direction,
    )
    return goal.model_copy(update={
        "current_value": current_value,
        "progress": progress,
        "trend": classify_trend(current_value, goal.current_value, goal.improvement_direction),
        "recommendations": recommendations_for(goal.kind, progress),
    })


# ======================================================================
# Data-driven helpers
# ======================================================================


def current_value_for(kind: GoalKind, table: MetricTable) -> Optional[float]:
    """Latest value of the metric behind *kind*, ``None`` if unavailable."""
    metric = GOAL_METRICS.get(kind)
    latest = table.latest
    if metric is None or latest is None:
        return None
    return latest.numeric(metric.column)


def suggest_goals(table: MetricTable) -> list[GoalSuggestion]:
    """Propose goals where the user's own data shows room to improve."""
    suggestions: list[GoalSuggestion] = []

    recovery = current_value_for(GoalKind.RECOVERY, table)
    if recovery is not None and recovery < 70:
        suggestions.append(GoalSuggestion(
            kind=GoalKind.RECOVERY,
            title="Improve Recovery Score",
            description="Reach green recovery zone more consistently",
            target_value=min(80.0, recovery + 15),
            unit="%",
            timeframe=GoalTimeframe.WEEKLY,
        ))

    sleep = current_value_for(GoalKind.SLEEP, table)
    if sleep is not None and sleep < 85:
        suggestions.append(GoalSuggestion(
            kind=GoalKind.SLEEP,
            title="Optimize Sleep Performance",
            description="Improve sleep efficiency and quality",
            target_value=min(90.0, sleep + 10),
            unit="%",
            timeframe=GoalTimeframe.WEEKLY,
        ))

    hrv = current_value_for(GoalKind.HRV, table)
    if hrv is not None and hrv > 0:
        suggestions.append(GoalSuggestion(
            kind=GoalKind.HRV,
            title="Increase HRV",
            description="Build cardiovascular resilience",
            target_value=float(round(hrv * 1.1)),
            unit="ms",
            timeframe=GoalTimeframe.MONTHLY,
        ))

    sleep_week = table.series(MetricKind.SLEEP_PERFORMANCE.column, limit=7)
    if len(sleep_week) >= 7 and population_stdev(sleep_week) ** 2 > 100:
        suggestions.append(GoalSuggestion(
            kind=GoalKind.SLEEP,
            title="Sleep Consistency",
            description="Maintain more consistent sleep schedule",
            target_value=85.0,
            unit="% consistency",
            timeframe=GoalTimeframe.WEEKLY,
        ))

    strain_week = table.series(MetricKind.DAY_STRAIN.column, limit=7)
    if len(strain_week) >= 7 and mean(strain_week) > 15:
        suggestions.append(GoalSuggestion(
            kind=GoalKind.STRAIN,
            title="Manage Training Load",
            description="Balance high strain with adequate recovery",
            target_value=13.0,
            unit="avg strain",
            timeframe=GoalTimeframe.WEEKLY,
        ))

    return suggestions


def goal_insights(goals: Sequence[Goal]) -> GoalInsights:
    """Aggregate progress figures across goals."""
    active = [g for g in goals if g.is_active]
    top: Optional[Goal] = None
    for goal in active:
        if top is None or goal.progress > top.progress:
            top = goal

    return GoalInsights(
        total_goals=len(goals),
        active_goals=len(active),
        completed_goals=sum(1 for g in active if g.progress >= 100),
        average_progress=int(mean([g.progress for g in active]) + 0.5),
        top_performing_goal=top,
        needs_attention=[
            g for g in active
            if g.progress < 30 or g.trend is TrendDirection.DECLINING
        ],
    )
