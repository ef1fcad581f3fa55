"""
Goal schemas.

A goal tracks one metric toward a target.  ``progress`` (0-100) and
``trend`` are derived by :mod:`app.coach.goals`; whether a rising value
counts as improvement is decided by ``improvement_direction``, never by
the raw comparison alone.
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.prediction import TrendDirection


class GoalKind(str, Enum):
    RECOVERY = "recovery"
    SLEEP = "sleep"
    STRAIN = "strain"
    HRV = "hrv"
    CUSTOM = "custom"


class ImprovementDirection(str, Enum):
    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


class GoalTimeframe(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Goal(BaseModel):
    """A user-defined target with derived progress."""

    id: str
    kind: GoalKind
    title: str
    description: str = ""
    current_value: float
    baseline_value: float
    target_value: float
    unit: str = ""
    improvement_direction: ImprovementDirection = ImprovementDirection.HIGHER_IS_BETTER
    timeframe: GoalTimeframe = GoalTimeframe.WEEKLY
    target_date: Optional[datetime.date] = None
    is_active: bool = True
    progress: float = Field(0.0, ge=0.0, le=100.0)
    trend: TrendDirection = TrendDirection.STABLE
    recommendations: list[str] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: datetime.datetime


class GoalCreate(BaseModel):
    """Request body for creating a goal."""

    kind: GoalKind
    title: str = Field(..., min_length=1, max_length=120)
    description: str = ""
    target_value: float
    unit: str = ""
    timeframe: GoalTimeframe = GoalTimeframe.WEEKLY
    target_date: Optional[datetime.date] = None
    baseline_value: Optional[float] = Field(
        None,
        description="Defaults to the per-kind baseline",
    )
    improvement_direction: Optional[ImprovementDirection] = Field(
        None,
        description="Defaults to the per-kind direction",
    )
    current_value: Optional[float] = Field(
        None,
        description="Required for custom goals; otherwise read from the latest row",
    )


class GoalUpdate(BaseModel):
    """Partial update; omitted and ``None`` fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    target_value: Optional[float] = None
    unit: Optional[str] = None
    timeframe: Optional[GoalTimeframe] = None
    target_date: Optional[datetime.date] = None
    is_active: Optional[bool] = None


class GoalSuggestion(BaseModel):
    """A goal proposed from the user's own data."""

    kind: GoalKind
    title: str
    description: str
    target_value: float
    unit: str
    timeframe: GoalTimeframe


class GoalInsights(BaseModel):
    total_goals: int
    active_goals: int
    completed_goals: int
    average_progress: int
    top_performing_goal: Optional[Goal] = None
    needs_attention: list[Goal] = Field(default_factory=list)
