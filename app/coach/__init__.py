"""Coaching core: knowledge base, retrieval, forecasting and goal progress."""

from app.coach.forecast import ForecastConfig, predict, predict_from_table
from app.coach.knowledge_base import build_knowledge_base
from app.coach.retriever import retrieve
from app.coach.goals import update_progress

__all__ = [
    "ForecastConfig",
    "build_knowledge_base",
    "predict",
    "predict_from_table",
    "retrieve",
    "update_progress",
]
