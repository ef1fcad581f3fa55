"""
Knowledge-base schemas.

A :class:`Fact` is one atomic, human-readable evidence statement derived
from a single export field or from a derived summary.  Facts are the unit
of retrieval: a query scores every fact and the best ones become the
grounding context handed to the text-generation collaborator.

Recency rank:
    -1  current-snapshot summary (highest priority)
     0  most recent day
     n  older days (increasing)
  None  non-temporal fact
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FactSource:
    """Origin tags for facts."""

    CSV_DATA = "csv_data"
    CURRENT_METRICS = "current_metrics"
    SLEEP_DEBT_TRACKING = "sleep_debt_tracking"
    SLEEP_DEBT_ANALYSIS = "sleep_debt_analysis"


class Fact(BaseModel):
    """One retrievable evidence statement."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Rendered sentence, free of calendar dates")
    metric: str = Field(..., description="Source field or derived-summary name")
    value: str = Field(..., description="Rendered value (durations as 'Hh Mm')")
    source: str = Field(FactSource.CSV_DATA, description="Origin tag")
    recency: Optional[int] = Field(
        None,
        description="-1 = current, 0 = most recent day, increasing = older",
    )
    label: Optional[str] = Field(
        None,
        description="Row date or ordinal label, metadata only",
    )


class ScoredFact(BaseModel):
    """A fact paired with its relevance score for one query."""

    fact: Fact
    score: float


class GroundingContext(BaseModel):
    """Evidence and rendered grounding text for one query."""

    evidence: list[Fact]
    rendered_summary: str
    sources: dict[str, int] = Field(
        default_factory=dict,
        description="Evidence count per source (observability only)",
    )


class KnowledgeBaseStats(BaseModel):
    total_facts: int
    unique_metrics: int
    sources: list[str]
