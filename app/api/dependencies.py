"""
Shared API dependencies.

The session context and goal repository are created once by the
application and kept on ``app.state``.
"""

from fastapi import Depends, Request

from app.repositories.goal import GoalRepository
from app.services.goal_service import GoalService
from app.services.session_context import CoachContext


def get_context(request: Request) -> CoachContext:
    return request.app.state.coach_context


def get_goal_repository(request: Request) -> GoalRepository:
    return request.app.state.goal_repository


def get_goal_service(context: CoachContext = Depends(get_context),
                     repository: GoalRepository = Depends(get_goal_repository), ) -> GoalService:
    return GoalService(repository, context)
