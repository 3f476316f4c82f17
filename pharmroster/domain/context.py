from datetime import date
from typing import Required, TypedDict

from pharmroster.domain.types import Employee
from pharmroster.model.rest_days import RestDayResolver
from pharmroster.model.shift_grid import ShiftGrid


class RuleContext(TypedDict, total=False):
    # 休み配置ルールの判定に必要な情報を保持するコンテキスト
    # Requiredは必須
    year: Required[int]
    month: Required[int]
    days: Required[list[date]]  # 割当対象の1ヶ月分の日付リスト
    window: Required[list[date]]  # 前月〜翌月の日付リスト(連勤判定用)
    employees: Required[list[Employee]]
    grid: Required[ShiftGrid]  # 作業用グリッド(生成済みの休みを含む)
    resolver: Required[RestDayResolver]

    # そのほかは任意
    scheduled: set[tuple[int, date]]  # (employee_id, date) 予定が入っている日
    max_consecutive_rest: int  # 連休の上限日数
