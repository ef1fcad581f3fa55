"""
Metric export loader.

Turns a CSV export (one row per day, newest first) into a
:class:`MetricTable`:

- header names are trimmed and lower-cased
- numeric-looking cells become floats, blank cells become ``None``
- rows whose cells are all blank are dropped
- ``date`` and ``_source_file`` are lifted into row metadata

File order is preserved.
"""

import csv
import io
from pathlib import Path
from typing import Any, Iterable, Mapping, Union

from app.core.exceptions import DataLoadError
from app.core.logging import get_logger
from app.schemas.metrics import CellValue, MetricTable, normalize_key, to_number

log = get_logger(__name__)


def coerce_cell(value: Any) -> CellValue:
    """Normalise one raw cell: numbers to float, blanks to ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return to_number(value)
    text = str(value).strip()
    if not text:
        return None
    number = to_number(text)
    return number if number is not None else text


def _clean_record(record: Mapping[str, Any]) -> dict[str, CellValue]:
    return {
        normalize_key(key): coerce_cell(value)
        for key, value in record.items()
        if key is not None and key.strip()
    }


def parse_records(records: Iterable[Mapping[str, Any]]) -> MetricTable:
    """Build a table from already-split records (API payloads, CSV rows)."""
    cleaned = [_clean_record(r) for r in records]
    kept = [r for r in cleaned if any(v is not None for v in r.values())]
    if not kept:
        raise DataLoadError("No data rows found")
    return MetricTable.from_records(kept)


def parse_csv(text: str) -> MetricTable:
    """Parse CSV *text* into a metric table.

    Raises:
        DataLoadError: The text has no header or no non-blank row.
    """
    reader = csv.DictReader(io.StringIO(text.strip()))
    if not reader.fieldnames:
        raise DataLoadError("CSV has no header row")

    table = parse_records(reader)
    sources = sorted({r.source_file for r in table.rows if r.source_file})
    log.info("csv_parsed", rows=len(table), columns=len(table.columns), sources=sources)
    return table


def load_csv(path: Union[str, Path]) -> MetricTable:
    """Read and parse a CSV export from disk."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Failed to read {file_path}: {exc}") from exc
    return parse_csv(text)
