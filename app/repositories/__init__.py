"""Persistence boundaries."""

from app.repositories.goal import GoalRepository, InMemoryGoalRepository

__all__ = [
    "GoalRepository",
    "InMemoryGoalRepository",
]
