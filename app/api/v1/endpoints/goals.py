"""
Goal endpoints.

Goal CRUD plus data-driven suggestions and insights.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_goal_service
from app.core.exceptions import GoalNotFoundError
from app.schemas.goal import Goal, GoalCreate, GoalInsights, GoalSuggestion, GoalUpdate
from app.services.goal_service import GoalService

router = APIRouter()


def _not_found(exc: GoalNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("", summary="Create a goal.", response_model=Goal, status_code=status.HTTP_201_CREATED, )
def create_goal(data: GoalCreate, service: GoalService = Depends(get_goal_service), ):
    return service.create(data)


@router.get("", summary="List active goals.", response_model=list[Goal], )
def list_goals(service: GoalService = Depends(get_goal_service), ):
    return service.list_active()


@router.get("/suggestions", summary="Goals suggested from the loaded data.",
            response_model=list[GoalSuggestion], )
def get_suggestions(service: GoalService = Depends(get_goal_service), ):
    return service.suggestions()


@router.get("/insights", summary="Progress figures across goals.", response_model=GoalInsights, )
def get_insights(service: GoalService = Depends(get_goal_service), ):
    return service.insights()


@router.post("/refresh", summary="Re-evaluate active goals against the newest data.",
             response_model=list[Goal], )
def refresh_goals(service: GoalService = Depends(get_goal_service), ):
    return service.refresh_all()


@router.get("/{goal_id}", summary="Get a goal.", response_model=Goal, )
def get_goal(goal_id: str, service: GoalService = Depends(get_goal_service), ):
    try:
        return service.get(goal_id)
    except GoalNotFoundError as exc:
        raise _not_found(exc)


@router.patch("/{goal_id}", summary="Update a goal.", response_model=Goal, )
def update_goal(goal_id: str, data: GoalUpdate, service: GoalService = Depends(get_goal_service), ):
    try:
        return service.update(goal_id, data)
    except GoalNotFoundError as exc:
        raise _not_found(exc)


@router.delete("/{goal_id}", summary="Delete a goal.", status_code=status.HTTP_204_NO_CONTENT, )
def delete_goal(goal_id: str, service: GoalService = Depends(get_goal_service), ):
    try:
        service.delete(goal_id)
    except GoalNotFoundError as exc:
        raise _not_found(exc)
