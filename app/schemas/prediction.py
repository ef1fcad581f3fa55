"""
Forecast schemas.

Predictions are recomputed on every request and never cached.  A
prediction whose minimum sample size is not met is still produced, with
``confidence == 0`` and ``reasoning`` explaining the shortfall; callers
check confidence rather than catching exceptions.
"""

from enum import Enum

from pydantic import BaseModel, Field


class PredictionKind(str, Enum):
    RECOVERY = "recovery"
    SLEEP_DEBT = "sleep_debt"
    PERFORMANCE = "performance"
    INJURY_RISK = "injury_risk"


class Prediction(BaseModel):
    """One short-horizon forecast."""

    kind: PredictionKind
    predicted_value: float = Field(
        ...,
        description="Domain-bounded value (minutes for sleep debt, 0-100 otherwise)",
    )
    confidence: float = Field(
        ..., ge=0.0, le=0.95,
        description="0 for insufficient data, otherwise 0.5-0.95",
    )
    timeframe: str
    reasoning: str
    recommendations: list[str] = Field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return self.confidence == 0.0


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class TrendAnalysis(BaseModel):
    """Direction and weekly rate of change of one metric."""

    metric: str
    trend: TrendDirection
    change_rate: float = Field(..., description="Projected weekly change, percent of recent mean")
    significance: float = Field(..., ge=0.0)
