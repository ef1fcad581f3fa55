"""
Coach turn schemas.

A coach turn is everything the text-generation collaborator needs for
one user message: either a canned reply (small talk, or no grounding
evidence) or a system prompt built around the grounding context.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.facts import GroundingContext


class Utterance(str, Enum):
    GREETING = "greeting"
    GRATITUDE = "gratitude"
    ACKNOWLEDGMENT = "acknowledgment"
    FAREWELL = "farewell"
    HEALTH_QUESTION = "health_question"


class MetricFocus(BaseModel):
    """The metric card the user is looking at while asking."""

    id: str
    title: str
    value: str


class CoachQuery(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)
    metric_focus: Optional[MetricFocus] = None


class CoachTurn(BaseModel):
    utterance: Utterance
    grounded: bool = Field(
        ...,
        description="True when a system prompt with evidence was produced",
    )
    reply: Optional[str] = Field(
        None,
        description="Final reply when no generation is needed",
    )
    system_prompt: Optional[str] = None
    context: Optional[GroundingContext] = None
