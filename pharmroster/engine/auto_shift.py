"""休みの自動割当。

前月〜翌月の3ヶ月分のシフトを作業用グリッドに載せ、
  A. 6連勤以上を見つけたら対象月の空き日に休みを入れて連勤を切る(連勤防止)
  B. 月の休日数が目標の下限に届かない職員に休みを足す(日数調整)
の2段階で「休み(終日)」のシフトを生成する。
制約を満たせない場合は例外にせず、その職員への追加を止めて結果に記録する。
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from pharmroster.calendar.utils import (
    CalendarProvider,
    enumerate_calendar_days,
    iso_week,
    window_calendar_days,
)
from pharmroster.constraints.autoimport import auto_import_all
from pharmroster.constraints.base import rules_for
from pharmroster.constraints.base_impl import RestRuleBase
from pharmroster.domain.context import RuleContext
from pharmroster.domain.types import (
    Employee,
    GeneratedShift,
    GenerationReason,
    JobType,
    RestGoal,
    ScheduleEntry,
    ShiftRecord,
    ShiftType,
)
from pharmroster.model.rest_days import RestDayResolver
from pharmroster.model.shift_grid import ShiftGrid

logger = logging.getLogger(__name__)

STREAK_ATTEMPTS = 20  # 連勤防止: 職員ごとの再スキャン回数の上限
QUOTA_ATTEMPTS = 31  # 日数調整: 職員ごとの追加試行回数の上限
MAX_CONSECUTIVE_WORK = 6
MAX_CONSECUTIVE_REST = 3


@dataclass
class ShiftSummary:
    employee_id: int
    name: str
    current: float  # 自動割当前の休日数
    added: float
    total: float
    goal_min: float | None
    goal_max: float | None
    is_goal_reached: bool
    messages: list[str] = field(default_factory=list)
    unresolved_streaks: list[tuple[date, date]] = field(default_factory=list)


@dataclass
class AutoShiftResult:
    new_shifts: list[GeneratedShift]
    results: list[ShiftSummary]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _fmt_days(v: float) -> str:
    return f"{v:g}"


class AutoShiftAssigner:
    """
    1回の自動割当の状態(作業用グリッド・生成済みシフト)を持つ。
    インスタンスは使い捨てで、run() を1度だけ呼ぶ。
    """

    def __init__(
        self,
        *,
        year: int,
        month: int,
        employees: list[Employee],
        shifts: Iterable[ShiftRecord],
        schedules: Iterable[ScheduleEntry],
        goals: Mapping[int, RestGoal],
        max_rest_pharmacist: int,
        max_rest_assistant: int,
        pending_shifts: Mapping[tuple[int, date], str | None] | None = None,
        calendar_provider: CalendarProvider = enumerate_calendar_days,
        rng: random.Random | None = None,
        rules: list[RestRuleBase] | None = None,
        max_consecutive_work: int = MAX_CONSECUTIVE_WORK,
        max_consecutive_rest: int = MAX_CONSECUTIVE_REST,
    ):
        self.year = year
        self.month = month
        self.employees = list(employees)
        self.goals = dict(goals)
        self.max_rest_pharmacist = max_rest_pharmacist
        self.max_rest_assistant = max_rest_assistant
        self.max_consecutive_work = max_consecutive_work
        self.rng = rng if rng is not None else random.Random()

        calendar_days = window_calendar_days(year, month, calendar_provider)
        self.window = [d.date for d in calendar_days]
        self.days = [d for d in self.window if (d.year, d.month) == (year, month)]

        self.grid = ShiftGrid(shifts, employee_ids=[e.id for e in self.employees])
        if pending_shifts:
            self.grid.apply_overrides(pending_shifts)
        self.resolver = RestDayResolver(self.grid, (d.date for d in calendar_days if d.is_closed))

        scheduled = {
            (s.employee_id, s.date) for s in schedules if s.employee_id is not None
        }
        self.ctx = RuleContext(
            year=year,
            month=month,
            days=self.days,
            window=self.window,
            employees=self.employees,
            grid=self.grid,
            resolver=self.resolver,
            scheduled=scheduled,
            max_consecutive_rest=max_consecutive_rest,
        )

        if rules is None:
            auto_import_all()
            streak_rules = rules_for(GenerationReason.STREAK_PREVENTION)
            quota_rules = rules_for(GenerationReason.QUOTA_FILL)
        else:
            streak_rules = [r for r in rules if GenerationReason.STREAK_PREVENTION in r.phases]
            quota_rules = [r for r in rules if GenerationReason.QUOTA_FILL in r.phases]
        for r in {*streak_rules, *quota_rules}:
            r.ensure_requires(self.ctx)
        self.streak_rules = streak_rules
        self.quota_rules = quota_rules

        self.new_shifts: list[GeneratedShift] = []

    # ---------- 判定ヘルパ ----------

    def peers(self, employee: Employee) -> list[Employee]:
        return [e for e in self.employees if e.job_type == employee.job_type]

    def daily_rest_limit(self, job_type: JobType) -> int:
        if job_type == JobType.PHARMACIST:
            return self.max_rest_pharmacist
        return self.max_rest_assistant

    def peer_rest_count(self, employee: Employee, d: date) -> int:
        """同じ職種で d に休んでいる人数(生成済みの休みを含む)"""
        return sum(1 for p in self.peers(employee) if self.resolver.is_rest_day(p.id, d))

    def weekly_off_count(self, employee: Employee, d: date) -> int:
        return sum(1 for w in iso_week(d) if not self.resolver.is_working_day(employee.id, w))

    def rest_total(self, employee: Employee) -> float:
        return self.resolver.rest_total(employee.id, self.days)

    def _allowed(self, employee: Employee, d: date, rules: list[RestRuleBase]) -> bool:
        return all(r.allows(employee, d, self.ctx) for r in rules)

    def _assign_rest(self, employee: Employee, d: date, reason: GenerationReason) -> None:
        self.grid.put(employee.id, d, ShiftType.REST_FULL.value)
        self.new_shifts.append(
            GeneratedShift(
                employee_id=employee.id,
                date=d,
                type=ShiftType.REST_FULL.value,
                reason=reason,
            )
        )
        logger.debug("%s %s: %s", employee.name, d.isoformat(), reason.value)

    # ---------- A. 連勤防止 ----------

    def break_first_streak(self, employee: Employee) -> bool:
        """
        最初に見つかった上限以上の連勤に休みを1日入れる。入れたら True。
        候補のない連勤は先頭の日を外して走査を続ける。
        """
        streak: list[date] = []
        for d in self.window:
            if not self.resolver.is_working_day(employee.id, d):
                streak = []
                continue
            streak.append(d)
            if len(streak) < self.max_consecutive_work:
                continue

            candidates = [c for c in streak if self._allowed(employee, c, self.streak_rules)]
            if not candidates:
                streak.pop(0)
                continue

            # 同点はランダムに崩す(先にシャッフルして最初の最小値を取る)
            self.rng.shuffle(candidates)
            best = min(candidates, key=lambda c: self.peer_rest_count(employee, c))
            self._assign_rest(employee, best, GenerationReason.STREAK_PREVENTION)
            return True
        return False

    def enforce_streak_limit(
        self, employee: Employee, attempts: int = STREAK_ATTEMPTS
    ) -> None:
        for _ in range(attempts):
            if not self.break_first_streak(employee):
                break

    def find_streaks(self, employee: Employee) -> list[tuple[date, date]]:
        """対象月にかかる上限以上の連勤 (開始日, 終了日) の一覧"""
        found: list[tuple[date, date]] = []
        run: list[date] = []
        for d in [*self.window, None]:
            if d is not None and self.resolver.is_working_day(employee.id, d):
                run.append(d)
                continue
            if len(run) >= self.max_consecutive_work and any(r in self.days for r in run):
                found.append((run[0], run[-1]))
            run = []
        return found

    # ---------- B. 日数調整 ----------

    def quota_order(self) -> list[Employee]:
        """目標下限までの不足が大きい順。同じ不足数の間はランダム。"""

        def gap(e: Employee) -> float:
            goal = self.goals.get(e.id)
            return (goal.min if goal else 0) - self.rest_total(e)

        shuffled = list(self.employees)
        self.rng.shuffle(shuffled)
        return sorted(shuffled, key=gap, reverse=True)

    def fill_quota(self, employee: Employee, attempts: int = QUOTA_ATTEMPTS) -> None:
        goal = self.goals.get(employee.id)
        if goal is None:
            return
        limit = self.daily_rest_limit(employee.job_type)

        for _ in range(attempts):
            if self.rest_total(employee) >= goal.min:
                return
            candidates = [d for d in self.days if self._allowed(employee, d, self.quota_rules)]
            if not candidates:
                return

            self.rng.shuffle(candidates)
            peer_counts = {d: self.peer_rest_count(employee, d) for d in candidates}
            candidates.sort(key=lambda d: (peer_counts[d], self.weekly_off_count(employee, d)))

            best = next((d for d in candidates if peer_counts[d] < limit), None)
            if best is None:
                # 上限を超えずに置ける日がない
                return
            self._assign_rest(employee, best, GenerationReason.QUOTA_FILL)

    # ---------- 実行 ----------

    def summarize(
        self,
        employee: Employee,
        initial: float,
        unresolved: list[tuple[date, date]],
    ) -> ShiftSummary:
        total = self.rest_total(employee)
        goal = self.goals.get(employee.id)
        messages: list[str] = []
        if goal is None:
            messages.append("目標休日数が未設定")
            reached = False
        else:
            reached = goal.min <= total <= goal.max
            if total < goal.min:
                messages.append(f"{_fmt_days(goal.min - total)}日不足")
            if total > goal.max:
                messages.append(f"{_fmt_days(total - goal.max)}日超過")
        for start, end in unresolved:
            messages.append(f"連勤未解消 {start.isoformat()}〜{end.isoformat()}")

        return ShiftSummary(
            employee_id=employee.id,
            name=employee.name,
            current=initial,
            added=total - initial,
            total=total,
            goal_min=goal.min if goal else None,
            goal_max=goal.max if goal else None,
            is_goal_reached=reached,
            messages=messages,
            unresolved_streaks=unresolved,
        )

    def run(
        self,
        *,
        streak_attempts: int = STREAK_ATTEMPTS,
        quota_attempts: int = QUOTA_ATTEMPTS,
    ) -> AutoShiftResult:
        initial = {e.id: self.rest_total(e) for e in self.employees}

        for e in self.employees:
            self.enforce_streak_limit(e, streak_attempts)

        for e in self.quota_order():
            self.fill_quota(e, quota_attempts)

        results: list[ShiftSummary] = []
        for e in self.employees:
            unresolved = self.find_streaks(e)
            if unresolved:
                logger.warning("%s: 解消できない連勤 %d 件", e.name, len(unresolved))
            summary = self.summarize(e, initial[e.id], unresolved)
            if not summary.is_goal_reached:
                logger.warning("%s: %s", e.name, " / ".join(summary.messages))
            results.append(summary)

        logger.info(
            "%d年%d月: 休みを %d 件生成 (連勤防止 %d / 日数調整 %d)",
            self.year,
            self.month,
            len(self.new_shifts),
            sum(1 for s in self.new_shifts if s.reason == GenerationReason.STREAK_PREVENTION),
            sum(1 for s in self.new_shifts if s.reason == GenerationReason.QUOTA_FILL),
        )
        return AutoShiftResult(new_shifts=list(self.new_shifts), results=results)


def generate_auto_shifts(
    *,
    year: int,
    month: int,
    employees: list[Employee],
    shifts: Iterable[ShiftRecord],
    schedules: Iterable[ScheduleEntry] = (),
    goals: Mapping[int, RestGoal],
    max_rest_pharmacist: int,
    max_rest_assistant: int,
    pending_shifts: Mapping[tuple[int, date], str | None] | None = None,
    calendar_provider: CalendarProvider = enumerate_calendar_days,
    rng: random.Random | None = None,
    rules: list[RestRuleBase] | None = None,
    streak_attempts: int = STREAK_ATTEMPTS,
    quota_attempts: int = QUOTA_ATTEMPTS,
    max_consecutive_work: int = MAX_CONSECUTIVE_WORK,
    max_consecutive_rest: int = MAX_CONSECUTIVE_REST,
) -> AutoShiftResult:
    """
    休みの自動割当を実行して、生成シフトと職員ごとの集計を返す。
    shifts には前月・当月・翌月の分を渡す。生成されるのは当月分のみ。
    """
    assigner = AutoShiftAssigner(
        year=year,
        month=month,
        employees=employees,
        shifts=shifts,
        schedules=schedules,
        goals=goals,
        max_rest_pharmacist=max_rest_pharmacist,
        max_rest_assistant=max_rest_assistant,
        pending_shifts=pending_shifts,
        calendar_provider=calendar_provider,
        rng=rng,
        rules=rules,
        max_consecutive_work=max_consecutive_work,
        max_consecutive_rest=max_consecutive_rest,
    )
    return assigner.run(streak_attempts=streak_attempts, quota_attempts=quota_attempts)
