"""Result payload returned by the scheduling service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from roster_desk.shaper import WORK, RowLike, as_row, plain_row, row_to_array

SHEET_NAMES = ("Matrix", "ByDay", "Summary", "Issues")
DEFAULT_EXPORT_NAME = "driver_schedule.xlsx"


@dataclass
class ResultSheet:
    columns: list[str]
    rows: list[RowLike]
    status: Optional[list[list[str]]] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ResultSheet"]:
        if not isinstance(data, Mapping):
            return None
        columns = data.get("columns")
        rows = data.get("rows")
        if not isinstance(columns, (list, tuple)) or not isinstance(rows, (list, tuple)):
            return None

        status = data.get("status")
        if isinstance(status, (list, tuple)):
            status = [
                [str(value) for value in line] if isinstance(line, (list, tuple)) else []
                for line in status
            ]
        else:
            status = None

        return cls(
            columns=["" if c is None else str(c) for c in columns],
            rows=[as_row(row) for row in rows],
            status=status,
        )

    def shaped_rows(self) -> list[list[str]]:
        return [row_to_array(row, self.columns) for row in self.rows]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"columns": list(self.columns), "rows": [plain_row(row) for row in self.rows]}
        if self.status is not None:
            data["status"] = self.status
        return data

    def status_at(self, row_idx: int, col_idx: int) -> str:
        try:
            value = self.status[row_idx][col_idx]  # type: ignore[index]
        except (TypeError, IndexError):
            return WORK
        return value or WORK


@dataclass
class ScheduleMeta:
    year: Any = None
    month: Any = None
    generated_at_utc: str = ""
    drivers: Optional[int] = None
    cap_per_day_used: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> "ScheduleMeta":
        if not isinstance(data, Mapping):
            return cls()
        counts = data.get("counts") if isinstance(data.get("counts"), Mapping) else {}
        return cls(
            year=data.get("year"),
            month=data.get("month"),
            generated_at_utc=str(data.get("generated_at_utc") or ""),
            drivers=counts.get("drivers"),
            cap_per_day_used=data.get("cap_per_day_used"),
        )


def export_filename(meta: Optional[ScheduleMeta]) -> str:
    if meta is None or meta.year in (None, "") or meta.month in (None, ""):
        return DEFAULT_EXPORT_NAME
    return f"driver_schedule_{meta.year}_{str(meta.month).zfill(2)}.xlsx"


@dataclass
class SchedulePayload:
    meta: ScheduleMeta = field(default_factory=ScheduleMeta)
    issues: list[str] = field(default_factory=list)
    sheets: dict[str, ResultSheet] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "SchedulePayload":
        if not isinstance(data, Mapping):
            raise ValueError(f"Schedule payload must be a JSON object, got {type(data).__name__}")

        raw_sheets = data.get("sheets") if isinstance(data.get("sheets"), Mapping) else {}
        sheets = {}
        for name in SHEET_NAMES:
            sheet = ResultSheet.from_dict(raw_sheets.get(name))
            if sheet is not None:
                sheets[name] = sheet

        issues = data.get("issues") if isinstance(data.get("issues"), (list, tuple)) else []
        return cls(
            meta=ScheduleMeta.from_dict(data.get("meta")),
            issues=[str(issue) for issue in issues],
            sheets=sheets,
        )

    def sheet(self, name: str) -> Optional[ResultSheet]:
        return self.sheets.get(name)

    @property
    def filename(self) -> str:
        return export_filename(self.meta)

    def to_dict(self) -> dict[str, Any]:
        meta = self.meta
        return {
            "meta": {
                "year": meta.year,
                "month": meta.month,
                "generated_at_utc": meta.generated_at_utc,
                "counts": {"drivers": meta.drivers},
                "cap_per_day_used": meta.cap_per_day_used,
            },
            "issues": list(self.issues),
            "sheets": {name: sheet.to_dict() for name, sheet in self.sheets.items()},
        }
