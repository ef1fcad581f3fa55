"""
Session context.

Holds the currently loaded metric table together with everything derived
from it (snapshot cards, fact collection).  Loading a new table replaces
all of it at once; nothing derived from an old table is ever mixed with
a new one.  One instance lives on the FastAPI application and is handed
to routes through a dependency.
"""

from typing import Optional

from app.coach.conversation import prepare_coach_turn
from app.coach.forecast import ForecastConfig, predict_from_table
from app.coach.knowledge_base import build_knowledge_base, knowledge_base_stats
from app.coach.retriever import DEFAULT_MAX_RESULTS, retrieve
from app.coach.summarizer import SUMMARY_MAX_RESULTS
from app.coach.trends import analyze_trends, mean
from app.core.logging import get_logger
from app.schemas.coach import CoachTurn, MetricFocus
from app.schemas.facts import Fact, KnowledgeBaseStats
from app.schemas.metrics import MetricKind, MetricTable, NamedValue, format_minutes, unit_for
from app.schemas.prediction import Prediction, TrendAnalysis

log = get_logger(__name__)

# Dashboard cards, in display order.
SNAPSHOT_METRICS: list[tuple[MetricKind, str]] = [
    (MetricKind.RECOVERY, "Recovery"),
    (MetricKind.SLEEP_PERFORMANCE, "Sleep Performance"),
    (MetricKind.HRV, "HRV"),
    (MetricKind.RESTING_HEART_RATE, "Resting Heart Rate"),
    (MetricKind.DAY_STRAIN, "Day Strain"),
    (MetricKind.ASLEEP_DURATION, "Sleep Duration"),
]


def _render_average(kind: MetricKind, value: float) -> str:
    if kind is MetricKind.ASLEEP_DURATION:
        return format_minutes(value)
    if kind is MetricKind.DAY_STRAIN:
        return f"{value:.1f}"
    unit = unit_for(kind.column)
    if unit == "%":
        return f"{round(value)}%"
    return f"{round(value)} {unit}".strip()


def build_snapshots(table: MetricTable, limit: int = 6) -> list[NamedValue]:
    """Average of each dashboard metric over *table*.

    Metrics with no numeric data are skipped.
    """
    snapshots: list[NamedValue] = []
    for kind, title in SNAPSHOT_METRICS:
        values = table.series(kind.column)
        if not values:
            continue
        snapshots.append(NamedValue(
            title=title,
            value=_render_average(kind, mean(values)),
            subtitle=f"{len(values)}-day average",
        ))
        if len(snapshots) >= limit:
            break
    return snapshots


class CoachContext:
    """The loaded data and its derived views for one session."""

    def __init__(
        self,
        window_days: int = 30,
        retrieval_max_results: int = DEFAULT_MAX_RESULTS,
        summary_max_results: int = SUMMARY_MAX_RESULTS,
        confidence_threshold: float = 0.6,
    ):
        self.window_days = window_days
        self.retrieval_max_results = retrieval_max_results
        self.summary_max_results = summary_max_results
        self.forecast_config = ForecastConfig(
            window_days=window_days,
            acceptance_threshold=confidence_threshold,
        )
        self._table = MetricTable()
        self._snapshots: list[NamedValue] = []
        self._facts: list[Fact] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def table(self) -> MetricTable:
        return self._table

    @property
    def facts(self) -> list[Fact]:
        return list(self._facts)

    @property
    def snapshots(self) -> list[NamedValue]:
        return list(self._snapshots)

    @property
    def is_loaded(self) -> bool:
        return len(self._table) > 0

    def load(self, table: MetricTable) -> KnowledgeBaseStats:
        """Replace the current table and rebuild every derived view."""
        snapshots = build_snapshots(table.window(self.window_days))
        facts = build_knowledge_base(table.rows, snapshots)

        self._table = table
        self._snapshots = snapshots
        self._facts = facts

        stats = knowledge_base_stats(facts)
        log.info("context_loaded", rows=len(table), facts=stats.total_facts)
        return stats

    def clear(self) -> None:
        self.load(MetricTable())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def retrieve(self, query: str, max_results: Optional[int] = None) -> list[Fact]:
        limit = self.retrieval_max_results if max_results is None else max_results
        return retrieve(query, self._facts, limit)

    def ask(self, query: str, metric_focus: Optional[MetricFocus] = None) -> CoachTurn:
        """Prepare a coach turn for *query* against the loaded facts."""
        return prepare_coach_turn(query, self._facts, metric_focus, self.summary_max_results)

    def predictions(self) -> list[Prediction]:
        return predict_from_table(self._table, self.forecast_config)

    def trends(self) -> list[TrendAnalysis]:
        return analyze_trends(self._table.window(self.window_days))

    def stats(self) -> KnowledgeBaseStats:
        return knowledge_base_stats(self._facts)
