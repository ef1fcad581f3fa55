"""
Knowledge base builder — metric table → retrievable facts.

Every non-blank measurement of every row becomes one :class:`Fact`
phrased relative to the present ("most recently", "recently", "in recent
days").  Older rows fall back to an ordinal label.  Calendar dates are
never rendered into fact content: the text-generation collaborator must
talk about *when* in relative terms only, so a row whose date label is a
calendar date is referred to as ``day N`` instead, and timestamp cells
(cycle start, sleep onset, ...) produce no fact at all.

On top of the raw rows the builder appends:

- one fact per current-snapshot summary card (recency -1), and
- a sleep-debt block: one classified fact per recent night plus a
  7-day aggregate, so that "sleep debt" questions have exact numbers to
  quote.

The output is a pure function of the input: building twice from the
same rows yields element-wise equal facts.
"""

from __future__ import annotations

import datetime
import re
from collections import Counter
from typing import Iterable, Optional, Sequence

from app.core.logging import get_logger
from app.schemas.facts import Fact, FactSource, KnowledgeBaseStats
from app.schemas.metrics import (
    CellValue,
    MetricKind,
    MetricRow,
    NamedValue,
    format_minutes,
    is_duration_field,
    to_number,
)

log = get_logger(__name__)

# ======================================================================
# Configuration
# ======================================================================

# (last row index inclusive, phrase). Rows past the table get no phrase.
_TIME_CONTEXTS: list[tuple[int, str]] = [
    (0, "most recently"),
    (1, "recently"),
    (6, "in recent days"),
]

# How many nights the sleep-debt block covers.
SLEEP_DEBT_WINDOW = 7

# (exclusive lower bound in minutes, label); first match wins.
_DEBT_BANDS: list[tuple[float, str]] = [
    (60.0, "significant debt"),
    (30.0, "moderate debt"),
    (-30.0, "balanced"),
    (-60.0, "slight surplus"),
    (float("-inf"), "significant surplus"),
]

# Per-day average debt (minutes) separating the 7-day trend labels.
_DEBT_TREND_THRESHOLD = 30.0

_CALENDAR_FORMATS = ("%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d", "%d.%m.%Y", "%b %d, %Y", "%d %b %Y")

# Leading date of a timestamp cell ("2025-02-26 22:31:00", "2025-02-26T22:31Z").
_DATE_HEAD = re.compile(r"^(\S+?)(?:[T ]\d{1,2}:\d{2}.*)?$")


# ======================================================================
# Rendering helpers
# ======================================================================


def format_value(value: CellValue) -> str:
    """Render a cell the way the export shows it (``72.0`` → ``"72"``)."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value).strip()


def format_field_value(field: str, value: CellValue) -> str:
    """Render a field value, converting minute counts to ``"Hh Mm"``."""
    if is_duration_field(field):
        minutes = to_number(value)
        if minutes is not None:
            return format_minutes(minutes)
    return format_value(value)


def time_context(index: int) -> Optional[str]:
    """Relative phrase for the row at *index* (0 = most recent)."""
    for last_index, phrase in _TIME_CONTEXTS:
        if index <= last_index:
            return phrase
    return None


def is_calendar_date(label: str) -> bool:
    """Return ``True`` if *label* parses as a calendar date.

    A timestamp counts too: only its leading date part has to parse.
    """
    text = label.strip()
    match = _DATE_HEAD.match(text)
    if match and match.group(1) != text:
        return is_calendar_date(match.group(1))
    try:
        datetime.datetime.fromisoformat(text)
        return True
    except ValueError:
        pass
    for fmt in _CALENDAR_FORMATS:
        try:
            datetime.datetime.strptime(text, fmt)
            return True
        except ValueError:
            continue
    return False


def ordinal_label(row: MetricRow, index: int) -> str:
    """Non-calendar label for a row without a relative phrase."""
    if row.date and not is_calendar_date(row.date):
        return row.date
    return f"day {index + 1}"


def classify_debt(minutes: float) -> str:
    for lower, label in _DEBT_BANDS:
        if minutes > lower:
            return label
    return _DEBT_BANDS[-1][1]


def _debt_time_ref(position: int) -> str:
    if position == 0:
        return "most recent night"
    return f"{position} {'day' if position == 1 else 'days'} ago"


# ======================================================================
# Fact builders
# ======================================================================


def _row_facts(rows: Sequence[MetricRow]) -> list[Fact]:
    facts: list[Fact] = []
    for index, row in enumerate(rows):
        phrase = time_context(index)
        label = row.date or f"day {index + 1}"
        for field, value in row.fields():
            if value is None or not str(value).strip():
                continue
            # timestamp columns would leak calendar dates into the prompt
            if isinstance(value, str) and is_calendar_date(value):
                continue
            rendered = format_field_value(field, value)
            if phrase:
                content = f"{phrase}, your {field} was {rendered}"
            else:
                content = f"On {ordinal_label(row, index)}, your {field} was {rendered}"
            facts.append(Fact(
                content=content,
                metric=field,
                value=rendered,
                source=row.source_file or FactSource.CSV_DATA,
                recency=index,
                label=label,
            ))
    return facts


def _snapshot_facts(snapshots: Iterable[NamedValue]) -> list[Fact]:
    return [
        Fact(
            content=f"Your current {s.title} is {s.value} - {s.subtitle}",
            metric=s.title,
            value=s.value,
            source=FactSource.CURRENT_METRICS,
            recency=-1,
        )
        for s in snapshots
    ]


def _sleep_debt_facts(rows: Sequence[MetricRow]) -> list[Fact]:
    column = MetricKind.SLEEP_DEBT.column
    nights = [
        (row, debt) for row in rows
        if (debt := row.numeric(column)) is not None
    ][:SLEEP_DEBT_WINDOW]
    if not nights:
        return []

    facts: list[Fact] = []
    for position, (row, debt) in enumerate(nights):
        facts.append(Fact(
            content=(
                f"Sleep debt {_debt_time_ref(position)}: "
                f"{debt / 60:+.1f} hours ({classify_debt(debt)})"
            ),
            metric="Sleep Debt Analysis",
            value=format_value(debt),
            source=FactSource.SLEEP_DEBT_TRACKING,
            recency=position,
            label=row.date,
        ))

    total = sum(debt for _, debt in nights)
    average = total / len(nights)
    if average > _DEBT_TREND_THRESHOLD:
        trend = "accumulating debt"
    elif average > -_DEBT_TREND_THRESHOLD:
        trend = "maintaining balance"
    else:
        trend = "building surplus"

    facts.append(Fact(
        content=(
            f"Sleep debt 7-day trend: {total / 60:.1f} hours total, "
            f"{average / 60:.1f} hours average daily ({trend})"
        ),
        metric="Sleep Debt Trend",
        value=format_value(total),
        source=FactSource.SLEEP_DEBT_ANALYSIS,
        recency=0,
    ))
    return facts


# ======================================================================
# Main entry points
# ======================================================================


def build_knowledge_base(
    rows: Sequence[MetricRow],
    current_snapshots: Iterable[NamedValue] = (),
) -> list[Fact]:
    """Build the ordered fact collection for a metric table.

    Args:
        rows: Metric rows, most recent first.
        current_snapshots: Optional current-value summary cards.

    Returns:
        Row facts, then snapshot facts, then the sleep-debt block.
    """
    facts = _row_facts(rows)
    facts.extend(_snapshot_facts(current_snapshots))
    facts.extend(_sleep_debt_facts(rows))

    log.debug(
        "knowledge_base_built",
        rows=len(rows),
        facts=len(facts),
        sources=dict(Counter(f.source for f in facts)),
    )
    return facts


def knowledge_base_stats(facts: Sequence[Fact]) -> KnowledgeBaseStats:
    """Summarise a fact collection."""
    sources = list(dict.fromkeys(f.source for f in facts))
    return KnowledgeBaseStats(
        total_facts=len(facts),
        unique_metrics=len({f.metric for f in facts}),
        sources=sources,
    )
