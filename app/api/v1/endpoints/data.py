"""
Metric data endpoints.

Loading an export replaces the session's table and rebuilds the
knowledge base.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_context
from app.core.exceptions import DataLoadError
from app.schemas.data import DataSummary, DataUpload
from app.schemas.facts import KnowledgeBaseStats
from app.services.data_loader import parse_csv, parse_records
from app.services.session_context import CoachContext

router = APIRouter()


def _summary(context: CoachContext) -> DataSummary:
    latest = context.table.latest
    return DataSummary(
        rows=len(context.table),
        columns=context.table.columns,
        latest_date=latest.date if latest else None,
        snapshots=context.snapshots,
        stats=context.stats(),
    )


@router.post("", summary="Load a metric export, replacing the current one.", response_model=DataSummary,
             status_code=status.HTTP_201_CREATED, )
def load_data(data: DataUpload, context: CoachContext = Depends(get_context), ):
    try:
        table = parse_csv(data.csv_text) if data.csv_text else parse_records(data.rows)
    except DataLoadError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    context.load(table)
    return _summary(context)


@router.get("", summary="Summary of the loaded export.", response_model=DataSummary, )
def get_data_summary(context: CoachContext = Depends(get_context), ):
    return _summary(context)


@router.get("/stats", summary="Knowledge base statistics.", response_model=KnowledgeBaseStats, )
def get_stats(context: CoachContext = Depends(get_context), ):
    return context.stats()


@router.delete("", summary="Discard the loaded export.", status_code=status.HTTP_204_NO_CONTENT, )
def clear_data(context: CoachContext = Depends(get_context), ):
    context.clear()
