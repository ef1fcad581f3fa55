"""Business logic services."""

from app.services.session_context import CoachContext, build_snapshots
from app.services.goal_service import GoalService
from app.services.data_loader import load_csv, parse_csv, parse_records

__all__ = [
    "CoachContext",
    "build_snapshots",
    "GoalService",
    "load_csv",
    "parse_csv",
    "parse_records",
]
