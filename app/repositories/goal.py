"""
Goal repository.

Goals are loaded and saved as a whole list.  The coaching core never
touches storage; services go through a :class:`GoalRepository`.
"""

from typing import Optional, Protocol

from app.schemas.goal import Goal


class GoalRepository(Protocol):
    """Storage boundary for goals."""

    def load(self) -> list[Goal]:
        ...

    def save(self, goals: list[Goal]) -> None:
        ...


class InMemoryGoalRepository:
    """Session-scoped goal storage, lost on restart."""

    def __init__(self, goals: Optional[list[Goal]] = None):
        self._goals: list[Goal] = list(goals or [])

    def load(self) -> list[Goal]:
        return list(self._goals)

    def save(self, goals: list[Goal]) -> None:
        self._goals = list(goals)
