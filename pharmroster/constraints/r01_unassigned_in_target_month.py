from datetime import date
from typing import ClassVar, override

from pharmroster.domain.context import RuleContext
from pharmroster.domain.types import Employee, GenerationReason

from .base import register
from .base_impl import RestRuleBase


class UnassignedInTargetMonth(RestRuleBase):
    """
    休みを新たに置けるのは、対象月の日付で、まだシフトが入っていない日だけ。
    前月・翌月は連勤判定に使うだけで書き換えない。
    """

    name = "unassigned_in_target_month"
    summary = "対象月の未割当日のみ"
    requires: ClassVar[set[str]] = {"year", "month", "grid"}
    phases: ClassVar[set[GenerationReason]] = {
        GenerationReason.STREAK_PREVENTION,
        GenerationReason.QUOTA_FILL,
    }

    @override
    def allows(self, employee: Employee, d: date, ctx: RuleContext) -> bool:
        if (d.year, d.month) != (ctx["year"], ctx["month"]):
            return False
        return ctx["grid"].get(employee.id, d) is None


RULE = UnassignedInTargetMonth()
register(RULE)
