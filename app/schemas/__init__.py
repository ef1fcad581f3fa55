"""Pydantic schemas for request/response validation."""

from app.schemas.metrics import MetricKind, MetricKey, MetricRow, MetricTable, NamedValue
from app.schemas.facts import Fact, FactSource, GroundingContext, KnowledgeBaseStats, ScoredFact
from app.schemas.prediction import Prediction, PredictionKind, TrendAnalysis, TrendDirection
from app.schemas.goal import (
    Goal,
    GoalCreate,
    GoalInsights,
    GoalKind,
    GoalSuggestion,
    GoalTimeframe,
    GoalUpdate,
    ImprovementDirection,
)
from app.schemas.coach import CoachQuery, CoachTurn, MetricFocus, Utterance
from app.schemas.data import DataSummary, DataUpload

__all__ = [
    "MetricKind",
    "MetricKey",
    "MetricRow",
    "MetricTable",
    "NamedValue",
    "Fact",
    "FactSource",
    "GroundingContext",
    "KnowledgeBaseStats",
    "ScoredFact",
    "Prediction",
    "PredictionKind",
    "TrendAnalysis",
    "TrendDirection",
    "Goal",
    "GoalCreate",
    "GoalInsights",
    "GoalKind",
    "GoalSuggestion",
    "GoalTimeframe",
    "GoalUpdate",
    "ImprovementDirection",
    "CoachQuery",
    "CoachTurn",
    "MetricFocus",
    "Utterance",
    "DataSummary",
    "DataUpload",
]
