"""
Analytics endpoints: predictions and metric trends.
"""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_context
from app.schemas.prediction import Prediction, TrendAnalysis
from app.services.session_context import CoachContext

router = APIRouter()


@router.get(
    "/predictions",
    summary="Confident next-day predictions from the loaded data.",
    response_model=list[Prediction],
)
def get_predictions(context: CoachContext = Depends(get_context)):
    return context.predictions()


@router.get(
    "/trends",
    summary="Significant weekly trends of the key metrics.",
    response_model=list[TrendAnalysis],
)
def get_trends(context: CoachContext = Depends(get_context)):
    return context.trends()
