"""
Coach endpoints: conversation gate and grounding context.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_context
from app.coach.summarizer import summarize
from app.schemas.coach import CoachQuery, CoachTurn
from app.schemas.facts import GroundingContext
from app.services.session_context import CoachContext

router = APIRouter()


@router.post("/ask", summary="Prepare a coach turn for a user message.", response_model=CoachTurn, )
def ask(data: CoachQuery, context: CoachContext = Depends(get_context), ):
    """
    Returns either a final reply (small talk, or nothing relevant in the
    data) or a grounded system prompt for the text-generation service.
    """
    return context.ask(data.query, data.metric_focus)


@router.get("/context", summary="Grounding context retrieved for a query.", response_model=GroundingContext, )
def get_grounding_context(query: str = Query(..., min_length=1, description="User question"),
                          max_results: Optional[int] = Query(None, ge=1, le=50, description="Max facts"),
                          context: CoachContext = Depends(get_context), ):
    limit = context.summary_max_results if max_results is None else max_results
    return summarize(query, context.facts, limit)
