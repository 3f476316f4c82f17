from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from pharmroster.calendar.utils import CalendarProvider, enumerate_calendar_days
from pharmroster.domain.types import AMAssignment, Employee, ShiftRecord, TaskOption
from pharmroster.model.rest_days import DayKind, RestDayResolver
from pharmroster.model.shift_grid import ShiftGrid


@dataclass(frozen=True)
class DuplicateAlert:
    date: date
    task_name: str
    employee_names: tuple[str, ...]

    def format(self) -> str:
        return f"{self.date.month}/{self.date.day} {self.task_name} ({', '.join(self.employee_names)})"


def find_duplicate_tasks(
    *,
    year: int,
    month: int,
    employees: Iterable[Employee],
    assignments: Iterable[AMAssignment],
    shifts: Iterable[ShiftRecord],
    task_options: Iterable[TaskOption],
    calendar_provider: CalendarProvider = enumerate_calendar_days,
) -> list[DuplicateAlert]:
    """
    同じ日に同じ業務(余り業務以外)が2人以上に割り当たっている箇所を返す。
    不在の職員の割当は数えない。手入力の上書きで起こり得るので確認用に使う。
    """
    employees = list(employees)
    days = [d for d in calendar_provider(year, month) if d.is_current_month]
    resolver = RestDayResolver(ShiftGrid(shifts), (d.date for d in days if d.is_closed))
    fallback_names = {t.name for t in task_options if t.is_fallback}
    task_by_key = {(a.employee_id, a.date): a.task_name for a in assignments}

    alerts: list[DuplicateAlert] = []
    for day in days:
        holders: dict[str, list[str]] = defaultdict(list)
        for e in employees:
            task_name = task_by_key.get((e.id, day.date))
            if not task_name or task_name in fallback_names:
                continue
            if resolver.classify_day(e.id, day.date).kind == DayKind.ABSENT:
                continue
            holders[task_name].append(e.name)
        for task_name, names in holders.items():
            if len(names) > 1:
                alerts.append(DuplicateAlert(day.date, task_name, tuple(names)))
    return alerts
