"""
Data upload and summary schemas.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from app.schemas.facts import KnowledgeBaseStats
from app.schemas.metrics import NamedValue


class DataUpload(BaseModel):
    """A metric export, either as parsed rows or as raw CSV text.

    Rows are ordered most recent first.
    """

    rows: list[dict[str, Any]] = Field(default_factory=list)
    csv_text: Optional[str] = None

    @model_validator(mode="after")
    def _one_payload(self) -> "DataUpload":
        if bool(self.rows) == bool(self.csv_text):
            raise ValueError("Provide exactly one of 'rows' or 'csv_text'")
        return self


class DataSummary(BaseModel):
    rows: int
    columns: list[str]
    latest_date: Optional[str] = None
    snapshots: list[NamedValue]
    stats: KnowledgeBaseStats
