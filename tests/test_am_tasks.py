import datetime as dt
import random
from collections import Counter

from pharmroster.domain.types import (
    AMAssignment,
    CalendarDay,
    Employee,
    JobType,
    ShiftRecord,
    ShiftType,
    TaskOption,
)
from pharmroster.engine.am_tasks import (
    count_task_occurrences,
    generate_am_assignments,
    split_task_options,
)
from pharmroster.io.task_options_loader import default_task_options

D1 = dt.date(2025, 6, 2)  # 月
D2 = dt.date(2025, 6, 3)  # 火


def _provider(*dates, closed=()):
    """指定日だけを当月として返すカレンダー"""

    def provider(year, month):
        return [
            CalendarDay(
                date=d,
                is_current_month=True,
                is_sunday=d.weekday() == 6,
                is_saturday=d.weekday() == 5,
                is_holiday=d in closed,
            )
            for d in dates
        ]

    return provider


def _pharmacists(n):
    return [Employee(i, f"薬剤師{i}", JobType.PHARMACIST) for i in range(1, n + 1)]


def _generate(employees, options, shifts=(), existing=(), dates=(D1,), closed=(), seed=0):
    return generate_am_assignments(
        year=2025,
        month=6,
        employees=employees,
        task_options=options,
        shifts=shifts,
        existing=existing,
        calendar_provider=_provider(*dates, closed=closed),
        rng=random.Random(seed),
    )


OUTPATIENT = TaskOption(id="t1", name="外来", order=1)
WARD = TaskOption(id="t2", name="病棟", order=2, is_fallback=True)
DISPENSING = TaskOption(id="t3", name="処方薬調剤", order=3)


def test_one_regular_task_and_fallback_for_the_rest():
    result = _generate(_pharmacists(3), [OUTPATIENT, WARD])
    tasks = Counter(a.task_name for a in result)
    assert tasks == {"外来": 1, "病棟": 2}
    assert all(a.is_auto_assigned for a in result)
    assert {a.employee_id for a in result} == {1, 2, 3}


def test_regular_tasks_follow_order():
    late = TaskOption(id="t9", name="散剤", order=9)
    early = TaskOption(id="t0", name="早出", order=0)
    regular, fallback = split_task_options([late, WARD, early])
    assert [t.name for t in regular] == ["早出", "散剤"]
    assert fallback is WARD


def test_manual_assignment_is_kept_and_counted():
    x, y = _pharmacists(2)
    manual = AMAssignment(x.id, D1, "処方薬調剤", is_auto_assigned=False)
    shifts = [ShiftRecord(y.id, D1, ShiftType.REST_FULL.value)]

    result = _generate([x, y], [DISPENSING, WARD], shifts=shifts, existing=[manual], dates=(D1, D2))

    # 手入力の日は生成しない
    assert not [a for a in result if (a.employee_id, a.date) == (x.id, D1)]
    # D2: X は手入力で1回済みなので Y が処方薬調剤
    d2 = {a.employee_id: a.task_name for a in result if a.date == D2}
    assert d2 == {y.id: "処方薬調剤", x.id: "病棟"}


def test_manual_assignment_in_other_month_is_not_counted():
    x, y = _pharmacists(2)
    old = AMAssignment(x.id, dt.date(2025, 5, 30), "処方薬調剤", is_auto_assigned=False)
    results = {
        a.employee_id
        for seed in range(20)
        for a in _generate([x, y], [DISPENSING, WARD], existing=[old], seed=seed)
        if a.task_name == "処方薬調剤"
    }
    # 同点なので、どちらも選ばれうる
    assert results == {x.id, y.id}


def test_absent_pharmacists_are_skipped():
    employees = _pharmacists(4)
    shifts = [
        ShiftRecord(1, D1, ShiftType.REST_AM.value),
        ShiftRecord(2, D1, ShiftType.TRIP_FULL.value),
        ShiftRecord(3, D1, ShiftType.SPECIAL_LEAVE.value),
    ]
    result = _generate(employees, [OUTPATIENT, WARD], shifts=shifts)
    assert [(a.employee_id, a.task_name) for a in result] == [(4, "外来")]


def test_holiday_work_day_only_staff_who_work():
    sunday = dt.date(2025, 6, 8)
    employees = _pharmacists(3)
    shifts = [ShiftRecord(2, sunday, ShiftType.HOLIDAY_WORK_FULL.value)]
    result = _generate(employees, [OUTPATIENT, WARD], shifts=shifts, dates=(sunday,))
    assert [(a.employee_id, a.task_name) for a in result] == [(2, "外来")]


def test_closed_day_without_holiday_work_gets_nothing():
    sunday = dt.date(2025, 6, 8)
    result = _generate(_pharmacists(3), [OUTPATIENT, WARD], dates=(sunday,))
    assert result == []


def test_only_pharmacists_are_assigned():
    employees = [
        Employee(1, "山田", JobType.PHARMACIST),
        Employee(2, "鈴木", JobType.ASSISTANT),
        Employee(3, "高橋", JobType.PART_TIME),
    ]
    result = _generate(employees, [OUTPATIENT, WARD])
    assert {a.employee_id for a in result} == {1}


def test_first_fallback_wins():
    second = TaskOption(id="t8", name="調製", order=8, is_fallback=True)
    result = _generate(_pharmacists(3), [OUTPATIENT, WARD, second])
    assert Counter(a.task_name for a in result) == {"外来": 1, "病棟": 2}


def test_excluded_tasks_are_not_auto_assigned():
    manual_only = TaskOption(id="t5", name="委員会", order=0, exclude_from_auto=True)
    result = _generate(_pharmacists(2), [manual_only, OUTPATIENT, WARD])
    assert "委員会" not in {a.task_name for a in result}


def test_without_fallback_extra_staff_stay_unassigned():
    result = _generate(_pharmacists(3), [OUTPATIENT])
    assert len(result) == 1
    assert result[0].task_name == "外来"


def test_no_tasks_assigns_nothing():
    assert _generate(_pharmacists(2), []) == []


def test_task_counts_are_balanced_over_month():
    """最初に割り当てる業務は毎日全員から選ぶので、回数の差は1回まで"""
    employees = _pharmacists(7)
    options = default_task_options()
    options.append(TaskOption(id="t8", name="その他", order=99, is_fallback=True))
    dates = [dt.date(2025, 6, d) for d in range(2, 8)] + [dt.date(2025, 6, d) for d in range(9, 15)]
    result = _generate(employees, options, dates=dates, seed=11)

    # 7人・7業務なので全員が毎日いずれかの通常業務
    assert len(result) == 7 * len(dates)
    assert "その他" not in {a.task_name for a in result}
    first = Counter(a.employee_id for a in result if a.task_name == options[0].name)
    counts = [first[e.id] for e in employees]
    assert max(counts) - min(counts) <= 1


def test_count_task_occurrences_excludes_month():
    rows = [
        AMAssignment(1, dt.date(2025, 4, 1), "早出", True),
        AMAssignment(1, dt.date(2025, 6, 2), "早出", True),
        AMAssignment(2, dt.date(2025, 5, 1), "早出", False),
        AMAssignment(2, dt.date(2025, 5, 2), "外来", True),
        AMAssignment(3, dt.date(2024, 12, 1), "早出", True),
    ]
    assert count_task_occurrences(rows, year=2025, excluded_month=6) == {1: 1, 2: 1}
    assert count_task_occurrences(rows, year=2025) == {1: 2, 2: 1}
    assert count_task_occurrences(rows, year=2025, task_name="外来") == {2: 1}
