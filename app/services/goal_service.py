"""
Goal service.

Goal CRUD on top of a :class:`GoalRepository`, with progress evaluated
against the session's metric table.
"""

import datetime
import uuid
from typing import Optional

from app.coach.goals import (
    DEFAULT_BASELINES,
    DEFAULT_DIRECTIONS,
    current_value_for,
    goal_insights,
    suggest_goals,
    update_progress,
)
from app.core.exceptions import GoalNotFoundError
from app.core.logging import get_logger
from app.repositories.goal import GoalRepository
from app.schemas.goal import Goal, GoalCreate, GoalInsights, GoalSuggestion, GoalUpdate
from app.services.session_context import CoachContext

log = get_logger(__name__)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class GoalService:
    """Service for goal business logic."""

    def __init__(self, repository: GoalRepository, context: CoachContext):
        self.repository = repository
        self.context = context

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, data: GoalCreate) -> Goal:
        """Create a goal and evaluate it against the latest data.

        The starting value is, in order: the value given in *data*, the
        newest row's value for the goal's metric, the baseline.
        """
        baseline = data.baseline_value
        if baseline is None:
            baseline = DEFAULT_BASELINES[data.kind]
        current = data.current_value
        if current is None:
            current = current_value_for(data.kind, self.context.table)
        if current is None:
            current = baseline

        now = _utcnow()
        goal = Goal(
            id=uuid.uuid4().hex,
            kind=data.kind,
            title=data.title,
            description=data.description,
            current_value=current,
            baseline_value=baseline,
            target_value=data.target_value,
            unit=data.unit,
            improvement_direction=data.improvement_direction or DEFAULT_DIRECTIONS[data.kind],
            timeframe=data.timeframe,
            target_date=data.target_date,
            created_at=now,
            updated_at=now,
        )
        goal = update_progress(goal, current)

        goals = self.repository.load()
        goals.append(goal)
        self.repository.save(goals)
        log.info("goal_created", goal_id=goal.id, kind=goal.kind.value, progress=goal.progress)
        return goal

    def list_all(self) -> list[Goal]:
        return self.repository.load()

    def list_active(self) -> list[Goal]:
        return [g for g in self.repository.load() if g.is_active]

    def get(self, goal_id: str) -> Goal:
        for goal in self.repository.load():
            if goal.id == goal_id:
                return goal
        raise GoalNotFoundError(goal_id)

    def update(self, goal_id: str, data: GoalUpdate) -> Goal:
        """Apply a partial update and re-evaluate progress.

        The trend is kept: it only moves when a new value arrives.
        """
        goals = self.repository.load()
        index = self._index_of(goals, goal_id)
        existing = goals[index]

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = _utcnow()
        updated = existing.model_copy(update=changes)
        updated = update_progress(updated, updated.current_value).model_copy(
            update={"trend": existing.trend},
        )

        goals[index] = updated
        self.repository.save(goals)
        return updated

    def delete(self, goal_id: str) -> None:
        goals = self.repository.load()
        index = self._index_of(goals, goal_id)
        del goals[index]
        self.repository.save(goals)
        log.info("goal_deleted", goal_id=goal_id)

    def refresh_all(self) -> list[Goal]:
        """Re-evaluate every active goal against the newest row."""
        goals = self.repository.load()
        now = _utcnow()
        refreshed: list[Goal] = []
        for goal in goals:
            current: Optional[float] = None
            if goal.is_active:
                current = current_value_for(goal.kind, self.context.table)
            if current is None:
                refreshed.append(goal)
                continue
            refreshed.append(update_progress(goal, current).model_copy(update={"updated_at": now}))

        self.repository.save(refreshed)
        return [g for g in refreshed if g.is_active]

    def suggestions(self) -> list[GoalSuggestion]:
        return suggest_goals(self.context.table)

    def insights(self) -> GoalInsights:
        return goal_insights(self.repository.load())

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _index_of(goals: list[Goal], goal_id: str) -> int:
        for index, goal in enumerate(goals):
            if goal.id == goal_id:
                return index
        raise GoalNotFoundError(goal_id)
