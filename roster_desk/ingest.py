"""Turn a parsed CSV into roster employees and inferred types."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from roster_desk.columns import guess_civil_id_column, guess_name_column, guess_origin_column
from roster_desk.errors import CsvParseError, InvalidStateError
from roster_desk.loader import CsvSource, RawTabularInput, load_csv
from roster_desk.normalize import normalize_type
from roster_desk.roster import Employee, first_non_empty

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnSelection:
    name: str = ""
    civil_id: str = ""
    origin: str = ""


@dataclass
class ImportResult:
    employees: list[Employee] = field(default_factory=list)
    types: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.employees)


def infer_columns(headers: list[str]) -> ColumnSelection:
    return ColumnSelection(
        name=guess_name_column(headers),
        civil_id=guess_civil_id_column(headers),
        origin=guess_origin_column(headers),
    )


def _cell(row: dict, column: str) -> str:
    if not column:
        return ""
    value = row.get(column)
    return "" if value is None else str(value)


def extract_import(table: RawTabularInput, selection: ColumnSelection) -> ImportResult:
    if not table.rows or not selection.name:
        return ImportResult()

    by_name: dict[str, Employee] = {}
    types: dict[str, str] = {}
    skipped = 0

    for row in table.rows:
        name = _cell(row, selection.name).strip()
        if not name:
            skipped += 1
            continue

        civil_id = _cell(row, selection.civil_id).strip()
        employee_type = normalize_type(_cell(row, selection.origin))

        previous = by_name.get(name)
        by_name[name] = Employee(name, first_non_empty(previous.civil_id if previous else "", civil_id))
        if employee_type:
            types[name] = employee_type

    if skipped:
        logger.debug("Skipped %d row(s) with an empty %r value", skipped, selection.name)
    return ImportResult(employees=list(by_name.values()), types=types)


class ImportStatus(str, Enum):
    EMPTY = "empty"
    PARSING = "parsing"
    PARSED = "parsed"
    ERROR = "error"


class CsvImportState:
    """
    Ingestion state for one file picker.

    EMPTY -> PARSING -> PARSED | ERROR. Changing the column selection while
    PARSED recomputes the import from the rows already in memory. ERROR
    only leaves through a new ``load``.
    """

    def __init__(self) -> None:
        self.status = ImportStatus.EMPTY
        self.error: Optional[str] = None
        self._reset()

    def _reset(self) -> None:
        self.headers: list[str] = []
        self.rows: list[dict[str, str]] = []
        self.warnings: list[str] = []
        self.selection = ColumnSelection()
        self._table: Optional[RawTabularInput] = None

    def load(self, source: CsvSource) -> ImportResult:
        self.status = ImportStatus.PARSING
        self.error = None
        try:
            table = load_csv(source)
        except CsvParseError as exc:
            self._reset()
            self.status = ImportStatus.ERROR
            self.error = str(exc)
            logger.warning("CSV import failed: %s", exc)
            raise

        self._table = table
        self.headers = list(table.headers)
        self.rows = table.rows
        self.warnings = list(table.warnings)
        self.selection = infer_columns(self.headers) if self.headers else ColumnSelection()
        self.status = ImportStatus.PARSED
        logger.info(
            "Loaded %d row(s); columns name=%r civil_id=%r origin=%r",
            len(self.rows),
            self.selection.name,
            self.selection.civil_id,
            self.selection.origin,
        )
        return self.import_result()

    def select_columns(
        self,
        name: Optional[str] = None,
        civil_id: Optional[str] = None,
        origin: Optional[str] = None,
    ) -> ImportResult:
        if self.status is not ImportStatus.PARSED:
            raise InvalidStateError(f"Cannot change columns while import is {self.status.value}")

        current = self.selection
        selection = ColumnSelection(
            name=current.name if name is None else name,
            civil_id=current.civil_id if civil_id is None else civil_id,
            origin=current.origin if origin is None else origin,
        )
        for column in (selection.name, selection.civil_id, selection.origin):
            if column and column not in self.headers:
                raise InvalidStateError(f"Column {column!r} is not in the uploaded file")
        self.selection = selection
        return self.import_result()

    def import_result(self) -> ImportResult:
        if self.status is not ImportStatus.PARSED or self._table is None:
            return ImportResult()
        return extract_import(self._table, self.selection)
