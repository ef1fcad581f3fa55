"""
Metric table schemas.

A health export is a flat table with one row per day.  Rows are kept
most-recent-first (index 0 is the newest day) and are never mutated
after load; trimming to a window produces a new table.

Column names are free-form strings in the export.  The columns that
domain logic depends on are enumerated in :class:`MetricKind`; anything
else is carried as :attr:`MetricKind.CUSTOM` with its raw name.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

CellValue = Union[float, str, None]

# Keys that describe the row itself rather than a measurement.
PROVENANCE_FIELDS = frozenset({"date", "_source_file"})

# Substrings that mark a column as a duration measured in minutes.
DURATION_KEYWORDS: tuple[str, ...] = (
    "sleep",
    "duration",
    "asleep",
    "awake",
    "in bed",
    "light sleep",
    "deep",
    "rem",
    "sleep need",
    "sleep debt",
)


def is_duration_field(name: str) -> bool:
    """Return ``True`` if *name* holds a minute count."""
    lowered = name.lower()
    return any(keyword in lowered for keyword in DURATION_KEYWORDS)


def normalize_key(name: str) -> str:
    return name.strip().lower()


class MetricKind(str, Enum):
    """Metric columns with domain semantics (thresholds, units, forecasts)."""

    RECOVERY = "recovery score %"
    DAY_STRAIN = "day strain"
    SLEEP_PERFORMANCE = "sleep performance %"
    HRV = "heart rate variability (ms)"
    RESTING_HEART_RATE = "resting heart rate (bpm)"
    SLEEP_NEED = "sleep need (min)"
    ASLEEP_DURATION = "asleep duration (min)"
    SLEEP_DEBT = "sleep debt (min)"
    SLEEP_EFFICIENCY = "sleep efficiency %"
    BLOOD_OXYGEN = "blood oxygen %"
    CUSTOM = "custom"

    @property
    def column(self) -> str:
        """Export column for this kind.  Not meaningful for ``CUSTOM``."""
        return self.value


class MetricKey(BaseModel):
    """A classified column name."""

    model_config = ConfigDict(frozen=True)

    kind: MetricKind
    name: str

    @classmethod
    def parse(cls, name: str) -> MetricKey:
        key = normalize_key(name)
        for kind in MetricKind:
            if kind is not MetricKind.CUSTOM and kind.column == key:
                return cls(kind=kind, name=key)
        return cls(kind=MetricKind.CUSTOM, name=key)

    @property
    def is_duration(self) -> bool:
        return is_duration_field(self.name)


# Display unit per known kind; CUSTOM columns fall back to keyword rules.
_KIND_UNITS: dict[MetricKind, str] = {
    MetricKind.RECOVERY: "%",
    MetricKind.DAY_STRAIN: "",
    MetricKind.SLEEP_PERFORMANCE: "%",
    MetricKind.HRV: "ms",
    MetricKind.RESTING_HEART_RATE: "bpm",
    MetricKind.SLEEP_NEED: "min",
    MetricKind.ASLEEP_DURATION: "min",
    MetricKind.SLEEP_DEBT: "min",
    MetricKind.SLEEP_EFFICIENCY: "%",
    MetricKind.BLOOD_OXYGEN: "%",
}

_KEYWORD_UNITS: list[tuple[tuple[str, ...], str]] = [
    (("hrv", "variability"), "ms"),
    (("blood oxygen", "sleep performance", "sleep efficiency"), "%"),
    (DURATION_KEYWORDS, "min"),
    (("energy", "cal"), "cal"),
    (("temp", "thermo"), "°C"),
    (("respiratory", "breathing"), "rpm"),
    (("heart rate", "hr"), "bpm"),
    (("percent", "%"), "%"),
]


def unit_for(name: str) -> str:
    """Best-effort display unit for a column."""
    key = MetricKey.parse(name)
    if key.kind is not MetricKind.CUSTOM:
        return _KIND_UNITS[key.kind]
    for keywords, unit in _KEYWORD_UNITS:
        if any(k in key.name for k in keywords):
            return unit
    return ""


def format_minutes(minutes: float) -> str:
    """Render a minute count as ``"{H}h {M}m"``."""
    hours = math.floor(minutes / 60)
    mins = round(minutes - hours * 60)
    if mins == 60:
        hours += 1
        mins = 0
    return f"{hours}h {mins}m"


def to_number(value: CellValue) -> Optional[float]:
    """Parse a cell as a finite float, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


# ======================================================================
# Rows and tables
# ======================================================================


class MetricRow(BaseModel):
    """One reporting period (typically a day) of the export."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    values: dict[str, CellValue] = Field(default_factory=dict)
    date: Optional[str] = None
    source_file: Optional[str] = Field(None, alias="_source_file")

    @field_validator("values")
    @classmethod
    def _normalize_keys(cls, v: dict[str, CellValue]) -> dict[str, CellValue]:
        normalized: dict[str, CellValue] = {}
        for key, value in v.items():
            if isinstance(value, str) and not value.strip():
                value = None
            normalized[normalize_key(key)] = value
        return normalized

    @classmethod
    def from_mapping(cls, data: dict[str, CellValue]) -> MetricRow:
        """Build a row from a flat export mapping, lifting provenance keys."""
        values: dict[str, CellValue] = {}
        date: Optional[str] = None
        source: Optional[str] = None
        for key, value in data.items():
            k = normalize_key(key)
            if k == "date":
                date = None if value is None else str(value).strip() or None
            elif k == "_source_file":
                source = None if value is None else str(value).strip() or None
            else:
                values[k] = value
        return cls(values=values, date=date, source_file=source)

    def get(self, name: str) -> CellValue:
        return self.values.get(normalize_key(name))

    def numeric(self, name: str) -> Optional[float]:
        """Numeric value of *name*, ``None`` when blank or malformed."""
        return to_number(self.get(name))

    def fields(self) -> Iterator[tuple[str, CellValue]]:
        """Measurement fields in export order, provenance excluded."""
        for key, value in self.values.items():
            if key in PROVENANCE_FIELDS:
                continue
            yield key, value


class MetricTable(BaseModel):
    """Rows ordered most-recent-first."""

    model_config = ConfigDict(frozen=True)

    rows: list[MetricRow] = Field(default_factory=list)

    @classmethod
    def from_records(cls, records: list[dict[str, CellValue]]) -> MetricTable:
        return cls(rows=[MetricRow.from_mapping(r) for r in records])

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def latest(self) -> Optional[MetricRow]:
        return self.rows[0] if self.rows else None

    @property
    def columns(self) -> list[str]:
        """Measurement columns in first-seen order."""
        seen: dict[str, None] = {}
        for row in self.rows:
            for key, _ in row.fields():
                seen.setdefault(key, None)
        return list(seen)

    def window(self, days: int) -> MetricTable:
        """Return a new table holding only the *days* most recent rows."""
        return MetricTable(rows=list(self.rows[: max(days, 0)]))

    def series(self, name: str, limit: Optional[int] = None) -> list[float]:
        """Numeric values of *name*, newest first.

        Blank and malformed cells are dropped, never replaced by zero.
        """
        values = [v for v in (row.numeric(name) for row in self.rows) if v is not None]
        return values if limit is None else values[:limit]

    def trend_series(self, name: str, n: int) -> list[float]:
        """The *n* most recent values of *name*, ordered oldest → newest."""
        return list(reversed(self.series(name, limit=n)))


class NamedValue(BaseModel):
    """A current-value summary card (title, rendered value, subtitle)."""

    title: str
    value: str
    subtitle: str = ""
