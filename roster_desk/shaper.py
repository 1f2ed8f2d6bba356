"""
Shape result rows into fixed-width string arrays.

The scheduling service has returned rows both as ordered value lists and as
keyed records, and its column layout has changed between versions. Rows are
wrapped in a small tagged variant (``SequenceRow`` / ``RecordRow`` /
``EmptyRow``) once, via ``as_row``, and every consumer goes through
``row_to_array`` to get exactly ``len(columns)`` strings back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union

from roster_desk.normalize import normalize_key

OFF = "OFF"
WORK = "WORK"

DEFAULT_STATUS_START = 3


@dataclass(frozen=True)
class SequenceRow:
    values: tuple


@dataclass(frozen=True)
class RecordRow:
    values: Mapping[str, Any]


@dataclass(frozen=True)
class EmptyRow:
    pass


RowLike = Union[SequenceRow, RecordRow, EmptyRow]


def as_row(value: Any) -> RowLike:
    if isinstance(value, (SequenceRow, RecordRow, EmptyRow)):
        return value
    if isinstance(value, (list, tuple)):
        return SequenceRow(tuple(value))
    if isinstance(value, Mapping):
        return RecordRow(dict(value))
    return EmptyRow()


def cell_text(value: Any) -> str:
    """Render a JSON scalar the way it reads in the service response."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def row_to_array(row: Any, columns: Sequence[str]) -> list[str]:
    columns = list(columns or [])
    width = len(columns)
    shaped = as_row(row)

    if isinstance(shaped, SequenceRow):
        values = [cell_text(v) for v in shaped.values[:width]]
        return values + [""] * (width - len(values))

    if isinstance(shaped, RecordRow):
        lookup = {normalize_key(key): value for key, value in shaped.values.items()}
        return [cell_text(lookup.get(normalize_key(column))) for column in columns]

    return [""] * width


def find_status_start_index(columns: Sequence[str]) -> int:
    """Index of the first day-of-month column.

    After ``ReqOff`` when present; otherwise two past ``Type`` (one identity
    column sits between them); otherwise 3.
    """
    keys = [normalize_key(column) for column in columns or []]
    if "reqoff" in keys:
        return keys.index("reqoff") + 1
    if "type" in keys:
        return keys.index("type") + 2
    return DEFAULT_STATUS_START


def status_class(value: str) -> str:
    return OFF if value == OFF else WORK


def preview_rows(columns: Sequence[str], rows: Sequence[Any], limit: int = 200) -> list[list[tuple[str, str]]]:
    """First ``limit`` rows as ``(text, kind)`` cells; kind is identity, OFF or WORK."""
    start = find_status_start_index(columns)
    preview = []
    for row in list(rows)[:limit]:
        cells = []
        for idx, text in enumerate(row_to_array(row, columns)):
            cells.append((text, status_class(text) if idx >= start else "identity"))
        preview.append(cells)
    return preview


def plain_row(row: RowLike) -> Any:
    """Back to the JSON shape the row arrived in."""
    if isinstance(row, SequenceRow):
        return list(row.values)
    if isinstance(row, RecordRow):
        return dict(row.values)
    return None
