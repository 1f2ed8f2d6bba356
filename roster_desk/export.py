"""Write a schedule result to a styled multi-sheet .xlsx workbook."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Mapping, Union

import openpyxl
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from roster_desk.payload import ResultSheet, SchedulePayload
from roster_desk.shaper import OFF, find_status_start_index

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_COLOR = "111827"
WORK_COLOR = "16FC05"   # green
OFF_COLOR = "FA4343"    # red

MATRIX_LEADING_WIDTHS = [22, 22, 12, 8]   # Name, Civil ID, Type, ReqOff
MATRIX_DAY_WIDTH = 12
BYDAY_WIDTH = 24
SUMMARY_WIDTH = 16
ISSUES_WIDTH = 120

PayloadLike = Union[SchedulePayload, Mapping[str, Any]]


def _fill(hex_color: str) -> PatternFill:
    return PatternFill("solid", fgColor=hex_color)


def _center() -> Alignment:
    return Alignment(horizontal="center", vertical="center", wrap_text=True)


def _status_fill(status: str) -> PatternFill:
    return _fill(OFF_COLOR) if status == OFF else _fill(WORK_COLOR)


def _write_row(ws, row_idx: int, values) -> None:
    """Write cells as literal text; control characters are dropped."""
    for col_idx, value in enumerate(values, start=1):
        cell = ws.cell(row=row_idx, column=col_idx, value=ILLEGAL_CHARACTERS_RE.sub("", str(value)))
        if cell.value.startswith("="):
            cell.data_type = "s"


def _start_sheet(wb, title: str, sheet: ResultSheet):
    """Create the worksheet and write a styled header row."""
    ws = wb.create_sheet(title)
    _write_row(ws, 1, sheet.columns)
    header_fill = _fill(HEADER_COLOR)
    header_font = Font(bold=True, color="FFFFFF")
    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = _center()
    return ws


def _set_widths(ws, widths: list[int]) -> None:
    for i, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width


def _write_matrix(wb, sheet: ResultSheet) -> None:
    ws = _start_sheet(wb, "Matrix", sheet)
    width = len(sheet.columns)
    status_start = find_status_start_index(sheet.columns)

    identity_font = Font(bold=True)
    identity_alignment = Alignment(horizontal="left", vertical="center", wrap_text=True)
    status_font = Font(color="000000")

    for row_idx, values in enumerate(sheet.shaped_rows(), start=2):
        _write_row(ws, row_idx, values)
        for col_idx in range(1, width + 1):
            cell = ws.cell(row=row_idx, column=col_idx)
            if col_idx - 1 >= status_start:
                cell.alignment = _center()
                cell.fill = _status_fill(values[col_idx - 1])
                cell.font = status_font
            else:
                cell.font = identity_font
                cell.alignment = identity_alignment

    ws.freeze_panes = f"{get_column_letter(status_start + 1)}2"
    leading = MATRIX_LEADING_WIDTHS[:width]
    _set_widths(ws, leading + [MATRIX_DAY_WIDTH] * (width - len(leading)))


def _write_by_day(wb, sheet: ResultSheet) -> None:
    ws = _start_sheet(wb, "ByDay", sheet)
    cell_font = Font(color="FFFFFF")

    # Cell text here is usually a driver name, so color comes from the status matrix.
    for r, values in enumerate(sheet.shaped_rows()):
        row_idx = r + 2
        _write_row(ws, row_idx, values)
        for c in range(len(sheet.columns)):
            cell = ws.cell(row=row_idx, column=c + 1)
            cell.fill = _status_fill(sheet.status_at(r, c))
            cell.font = cell_font

    ws.freeze_panes = "A2"
    _set_widths(ws, [BYDAY_WIDTH] * len(sheet.columns))


def _write_plain(wb, title: str, sheet: ResultSheet, widths: list[int]) -> None:
    ws = _start_sheet(wb, title, sheet)
    for row_idx, values in enumerate(sheet.shaped_rows(), start=2):
        _write_row(ws, row_idx, values)
    _set_widths(ws, widths)


def build_workbook(payload: PayloadLike):
    if not isinstance(payload, SchedulePayload):
        payload = SchedulePayload.from_dict(payload)

    wb = openpyxl.Workbook()
    placeholder = wb.active

    matrix = payload.sheet("Matrix")
    if matrix is not None:
        _write_matrix(wb, matrix)

    by_day = payload.sheet("ByDay")
    if by_day is not None:
        _write_by_day(wb, by_day)

    summary = payload.sheet("Summary")
    if summary is not None:
        _write_plain(wb, "Summary", summary, [SUMMARY_WIDTH] * len(summary.columns))

    issues = payload.sheet("Issues")
    if issues is not None:
        _write_plain(wb, "Issues", issues, [ISSUES_WIDTH])

    if len(wb.worksheets) > 1:
        wb.remove(placeholder)
    else:
        placeholder.title = "Matrix"
        logger.warning("Schedule payload has no sheets; writing an empty workbook")

    logger.debug("Built workbook with sheets: %s", ", ".join(wb.sheetnames))
    return wb


def workbook_bytes(payload: PayloadLike) -> bytes:
    buffer = io.BytesIO()
    build_workbook(payload).save(buffer)
    return buffer.getvalue()


def write_export(payload: PayloadLike, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(workbook_bytes(payload))
    logger.info("Export written: %s", output_path)
    return output_path
