"""薬剤師の午前業務の自動割当。

毎回その月の自動割当分をすべて作り直す(差分ではない)。
呼び出し側は保存前に、その月の is_auto_assigned=True の行をすべて削除すること。
手入力の割当(is_auto_assigned=False)は変更せず、回数の集計にだけ含める。
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from collections.abc import Iterable
from datetime import date

from pharmroster.calendar.utils import CalendarProvider, enumerate_calendar_days
from pharmroster.domain.types import AMAssignment, Employee, JobType, ShiftRecord, TaskOption
from pharmroster.model.rest_days import DayKind, RestDayResolver
from pharmroster.model.shift_grid import ShiftGrid

logger = logging.getLogger(__name__)

EARLY_SHIFT_TASK = "早出"


def split_task_options(options: Iterable[TaskOption]) -> tuple[list[TaskOption], TaskOption | None]:
    """
    (通常業務を order 順に並べたもの, 余った人に割り当てる業務) を返す。
    余り業務が複数指定されていても最初の1つだけを使う。
    """
    options = list(options)
    regular = sorted(
        (t for t in options if not t.is_fallback and not t.exclude_from_auto),
        key=lambda t: t.order,
    )
    fallback = next((t for t in options if t.is_fallback), None)
    return regular, fallback


def generate_am_assignments(
    *,
    year: int,
    month: int,
    employees: Iterable[Employee],
    task_options: Iterable[TaskOption],
    shifts: Iterable[ShiftRecord],
    existing: Iterable[AMAssignment] = (),
    calendar_provider: CalendarProvider = enumerate_calendar_days,
    rng: random.Random | None = None,
) -> list[AMAssignment]:
    rng = rng if rng is not None else random.Random()

    # 自動割当の対象は薬剤師のみ(他の職種は表示されるだけで触らない)
    pharmacists = [e for e in employees if e.job_type == JobType.PHARMACIST]
    days = [d for d in calendar_provider(year, month) if d.is_current_month]

    grid = ShiftGrid(shifts)
    resolver = RestDayResolver(grid, (d.date for d in days if d.is_closed))

    manual: dict[tuple[int, date], str] = {
        (a.employee_id, a.date): a.task_name
        for a in existing
        if not a.is_auto_assigned and (a.date.year, a.date.month) == (year, month)
    }

    # 手入力分を先に数えておき、偏りなく配分する
    task_counts: dict[int, Counter[str]] = {p.id: Counter() for p in pharmacists}
    for (employee_id, _), task_name in manual.items():
        if employee_id in task_counts:
            task_counts[employee_id][task_name] += 1

    regular, fallback = split_task_options(task_options)
    if not regular and fallback is None:
        logger.warning("%d年%d月: 自動割当の対象となる業務がありません", year, month)

    assignments: list[AMAssignment] = []
    for day in days:
        d = day.date
        pool: list[int] = []
        for p in pharmacists:
            if resolver.classify_day(p.id, d).kind == DayKind.ABSENT:
                continue
            if (p.id, d) in manual:
                continue
            pool.append(p.id)

        for task in regular:
            if not pool:
                break
            min_count = min(task_counts[eid][task.name] for eid in pool)
            tied = [eid for eid in pool if task_counts[eid][task.name] == min_count]
            chosen = rng.choice(tied)
            assignments.append(AMAssignment(chosen, d, task.name, is_auto_assigned=True))
            task_counts[chosen][task.name] += 1
            pool.remove(chosen)

        if fallback is not None:
            for eid in pool:
                assignments.append(AMAssignment(eid, d, fallback.name, is_auto_assigned=True))
                task_counts[eid][fallback.name] += 1
            pool = []

        logger.debug("%s: 未割当 %d 人", d.isoformat(), len(pool))

    logger.info("%d年%d月: 午前業務を %d 件自動割当", year, month, len(assignments))
    return assignments


def count_task_occurrences(
    assignments: Iterable[AMAssignment],
    *,
    year: int,
    excluded_month: int | None = None,
    task_name: str = EARLY_SHIFT_TASK,
) -> dict[int, int]:
    """年間の業務回数(早出など)を職員ごとに数える。表示中の月は除外できる。"""
    stats: Counter[int] = Counter()
    for a in assignments:
        if a.task_name != task_name or a.date.year != year:
            continue
        if excluded_month is not None and a.date.month == excluded_month:
            continue
        stats[a.employee_id] += 1
    return dict(stats)
