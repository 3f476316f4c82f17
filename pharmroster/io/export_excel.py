from __future__ import annotations

from collections.abc import Iterable
from typing import Final, cast

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from pharmroster.domain.types import (
    AMAssignment,
    CalendarDay,
    Employee,
    GeneratedShift,
    ShiftRecord,
)
from pharmroster.model.rest_days import RestDayResolver, shift_abbreviation
from pharmroster.model.shift_grid import ShiftGrid

WEEKDAY_LABELS: Final[str] = "月火水木金土日"  # date.weekday() 順

_BOLD = Font(bold=True)
_CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)
_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
HOLIDAY_FILL: Final[str] = "FDE2E2"
SATURDAY_FILL: Final[str] = "E6EEFB"
GENERATED_FILL: Final[str] = "FFF4CC"


def _fill(rgb: str) -> PatternFill:
    return PatternFill(fill_type="solid", start_color=rgb, end_color=rgb)


def _sheet(wb: Workbook, title: str, first: bool) -> Worksheet:
    ws_like = wb.active if first else None
    # None/Chartsheet の可能性を潰す
    if not isinstance(ws_like, Worksheet):
        ws_like = wb.create_sheet(title=title)
    ws: Worksheet = cast(Worksheet, ws_like)
    ws.title = title
    return ws


def _write_header(ws: Worksheet, days: list[CalendarDay], extra: list[str]) -> None:
    ws.column_dimensions["A"].width = 12
    ws.column_dimensions["B"].width = 8
    heads = ["職員", "職種"]
    for j, h in enumerate(heads, start=1):
        cell: Cell = ws.cell(row=1, column=j, value=h)
        cell.font = _BOLD
        cell.alignment = _CENTER
        cell.border = _BORDER

    for j, day in enumerate(days, start=3):
        ws.column_dimensions[get_column_letter(j)].width = 5
        label = f"{day.date.day}\n{WEEKDAY_LABELS[day.date.weekday()]}"
        cell = ws.cell(row=1, column=j, value=label)
        cell.font = _BOLD
        cell.alignment = _CENTER
        cell.border = _BORDER
        if day.is_closed:
            cell.fill = _fill(HOLIDAY_FILL)
        elif day.is_saturday:
            cell.fill = _fill(SATURDAY_FILL)

    for k, h in enumerate(extra, start=3 + len(days)):
        ws.column_dimensions[get_column_letter(k)].width = 8
        cell = ws.cell(row=1, column=k, value=h)
        cell.font = _BOLD
        cell.alignment = _CENTER
        cell.border = _BORDER

    ws.freeze_panes = "C2"


def export_roster_to_excel(
    *,
    employees: list[Employee],
    days: list[CalendarDay],
    shifts: Iterable[ShiftRecord],
    generated: Iterable[GeneratedShift] = (),
    am_assignments: Iterable[AMAssignment] | None = None,
    out_path: str,
) -> None:
    """
    勤務表(シフト略称と月の休日数)を1シート目に、
    am_assignments があれば午前業務を2シート目に出力する。
    生成した休みのセルは色付けする。
    """
    days = [d for d in days if d.is_current_month]
    generated = list(generated)
    grid = ShiftGrid(shifts)
    for g in generated:
        grid.put(g.employee_id, g.date, g.type)
    generated_keys = {(g.employee_id, g.date) for g in generated}
    resolver = RestDayResolver(grid, (d.date for d in days if d.is_closed))

    wb = Workbook()
    ws = _sheet(wb, "勤務表", first=True)
    _write_header(ws, days, ["休日数"])

    for i, e in enumerate(employees, start=2):
        ws.cell(row=i, column=1, value=e.name).border = _BORDER
        ws.cell(row=i, column=2, value=e.job_type.label).border = _BORDER
        for j, day in enumerate(days, start=3):
            shift_type = grid.get(e.id, day.date)
            cell = ws.cell(row=i, column=j, value=shift_abbreviation(shift_type) if shift_type else "")
            cell.alignment = _CENTER
            cell.border = _BORDER
            if (e.id, day.date) in generated_keys:
                cell.fill = _fill(GENERATED_FILL)
            elif day.is_closed:
                cell.fill = _fill(HOLIDAY_FILL)
        total = resolver.rest_total(e.id, [d.date for d in days])
        c_total = ws.cell(row=i, column=3 + len(days), value=total)
        c_total.alignment = _CENTER
        c_total.border = _BORDER

    if am_assignments is not None:
        tasks = {(a.employee_id, a.date): a.task_name for a in am_assignments}
        ws_am = _sheet(wb, "午前業務", first=False)
        _write_header(ws_am, days, [])
        for i, e in enumerate(employees, start=2):
            ws_am.cell(row=i, column=1, value=e.name).border = _BORDER
            ws_am.cell(row=i, column=2, value=e.job_type.label).border = _BORDER
            for j, day in enumerate(days, start=3):
                cell = ws_am.cell(row=i, column=j, value=tasks.get((e.id, day.date), ""))
                cell.alignment = _CENTER
                cell.border = _BORDER
                if day.is_closed:
                    cell.fill = _fill(HOLIDAY_FILL)

    wb.save(out_path)
