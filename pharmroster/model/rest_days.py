"""休日数の算定と、1日ごとの出勤/休み/不在の判定。

判定はすべて ShiftGrid のその時点の内容から毎回計算し、結果を保持しない。
休日出勤による「暗黙の休み」は記録されないため、キャッシュすると
割当の追加・変更に追従できなくなる。
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

from pharmroster.domain.types import AbsenceMarker, ShiftType

if TYPE_CHECKING:
    from pharmroster.model.shift_grid import ShiftGrid

_FULL_REST: frozenset[str] = frozenset({ShiftType.REST_FULL.value, ShiftType.HOPE_REST_FULL.value})
_HALF_REST: frozenset[str] = frozenset(
    {
        ShiftType.REST_AM.value,
        ShiftType.REST_PM.value,
        ShiftType.HOPE_REST_AM.value,
        ShiftType.HOPE_REST_PM.value,
        ShiftType.HOLIDAY_WORK_AM.value,
        ShiftType.HOLIDAY_WORK_PM.value,
        ShiftType.WORK_AM.value,
        ShiftType.WORK_PM.value,
        ShiftType.TRIP_AM.value,
        ShiftType.TRIP_PM.value,
    }
)
_NO_REST: frozenset[str] = frozenset(
    {
        ShiftType.SPECIAL_LEAVE.value,
        ShiftType.HOLIDAY_WORK_FULL.value,
        ShiftType.WORK_FULL.value,
        ShiftType.TRIP_FULL.value,
    }
)

_ABBREVIATIONS: dict[str, str] = {
    ShiftType.REST_FULL.value: "休",
    ShiftType.REST_AM.value: "A休",
    ShiftType.REST_PM.value: "P休",
    ShiftType.HOPE_REST_FULL.value: "希休",
    ShiftType.HOPE_REST_AM.value: "希A",
    ShiftType.HOPE_REST_PM.value: "希P",
    ShiftType.WORK_FULL.value: "出",
    ShiftType.WORK_AM.value: "A出",
    ShiftType.WORK_PM.value: "P出",
    ShiftType.TRIP_FULL.value: "旅",
    ShiftType.TRIP_AM.value: "A旅",
    ShiftType.TRIP_PM.value: "P旅",
    ShiftType.SPECIAL_LEAVE.value: "特休",
}


def rest_contribution(shift_type: str) -> float:
    """
    シフト種別が月の休日数にいくつ寄与するか(0, 0.5, 1)。
    一覧にない旧データ・自由記述は文字列で推定する。
    """
    if shift_type in _FULL_REST:
        return 1
    if shift_type in _HALF_REST:
        return 0.5
    if shift_type in _NO_REST:
        return 0
    if "午前" in shift_type or "午後" in shift_type:
        return 0.5
    if "休み" in shift_type:
        return 1
    return 0


def is_holiday_work(shift_type: str) -> bool:
    """休日出勤(または出勤)のシフトか。その日は他の職員にとって暗黙の休みになる。"""
    return "出勤" in shift_type


def absence_marker(shift_type: str) -> AbsenceMarker | None:
    """明示シフトから午前業務に就けない理由を返す。就ける場合は None。"""
    if ShiftType.SPECIAL_LEAVE.value in shift_type:
        return AbsenceMarker.SPECIAL_LEAVE
    if "出張" in shift_type:
        return AbsenceMarker.TRIP
    if "休" in shift_type and "休日出勤" not in shift_type:
        return AbsenceMarker.REST
    return None


def shift_abbreviation(shift_type: str) -> str:
    """集計表用の略称"""
    if shift_type in _ABBREVIATIONS:
        return _ABBREVIATIONS[shift_type]
    if "休み" in shift_type:
        return "休"
    if "出勤" in shift_type:
        return "出"
    if "特別休暇" in shift_type:
        return "特"
    if "出張" in shift_type:
        return "旅"
    if "希望" in shift_type:
        return "希"
    return shift_type[:1]


class DayKind(str, Enum):
    WORKING = "出勤"
    RESTING = "休み"
    ABSENT = "不在"


@dataclass(frozen=True)
class DayStatus:
    kind: DayKind
    rest: float = 0  # その日の休日数への寄与
    reason: AbsenceMarker | None = None


class RestDayResolver:
    """
    ShiftGrid と休業日(日曜・祝日)の集合から、職員ごとの1日の扱いを判定する。

    - is_working_day: 連勤判定用。休業日・休日出勤日で記録のない人は出勤ではない
    - is_rest_day: 1日あたりの休み人数の上限判定用。休日出勤日で記録のない人は休み
      (ただの日曜・祝日は「休み」として数えない)
    2つは意図的に異なる述語なので統合しないこと。
    """

    def __init__(self, grid: ShiftGrid, closed_dates: Iterable[date]):
        self.grid = grid
        self.closed_dates = frozenset(closed_dates)

    def is_closed_day(self, d: date) -> bool:
        return d in self.closed_dates

    def is_closing_day(self, d: date) -> bool:
        """記録のない職員にとっての休業日か(日曜・祝日、または誰かが休日出勤する日)"""
        return self.is_closed_day(d) or self.grid.has_holiday_work(d)

    def is_working_day(self, employee_id: int, d: date) -> bool:
        shift_type = self.grid.get(employee_id, d)
        if shift_type:
            return rest_contribution(shift_type) < 1
        return not self.is_closing_day(d)

    def is_rest_day(self, employee_id: int, d: date) -> bool:
        shift_type = self.grid.get(employee_id, d)
        if shift_type:
            return rest_contribution(shift_type) >= 1
        return self.grid.has_holiday_work(d)

    def effective_rest(self, employee_id: int, d: date) -> float:
        shift_type = self.grid.get(employee_id, d)
        if shift_type:
            return rest_contribution(shift_type)
        return 1 if self.grid.has_holiday_work(d) else 0

    def rest_total(self, employee_id: int, days: Iterable[date]) -> float:
        return sum(self.effective_rest(employee_id, d) for d in days)

    def classify_day(self, employee_id: int, d: date) -> DayStatus:
        shift_type = self.grid.get(employee_id, d)
        holiday_work_day = self.grid.has_holiday_work(d)

        if shift_type:
            marker = absence_marker(shift_type)
            if marker is not None:
                return DayStatus(DayKind.ABSENT, rest_contribution(shift_type), marker)
        # 休日出勤日に自分は出勤していない → 暗黙の休み
        if holiday_work_day and not (shift_type and is_holiday_work(shift_type)):
            return DayStatus(DayKind.ABSENT, self.effective_rest(employee_id, d), AbsenceMarker.REST)
        # 誰も休日出勤しない休業日
        if self.is_closed_day(d) and not holiday_work_day:
            return DayStatus(DayKind.ABSENT, 0, AbsenceMarker.REST)

        rest = self.effective_rest(employee_id, d)
        return DayStatus(DayKind.RESTING if rest > 0 else DayKind.WORKING, rest)
