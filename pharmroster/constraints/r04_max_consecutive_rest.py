from datetime import date, timedelta
from typing import ClassVar, override

from pharmroster.domain.context import RuleContext
from pharmroster.domain.types import Employee, GenerationReason

from .base import register
from .base_impl import RestRuleBase


class MaxConsecutiveRest(RestRuleBase):
    """
    候補日を休みにしたとき、前後の非出勤日とつながって
    max_consecutive_rest 日を超える連休にならないこと。
    requires: ctx["resolver"]
    """

    name = "max_consecutive_rest"
    summary = "連休の上限"
    requires: ClassVar[set[str]] = {"resolver"}
    phases: ClassVar[set[GenerationReason]] = {GenerationReason.QUOTA_FILL}

    def __init__(self, scan_days: int = 5):
        # 前後それぞれ何日まで遡って非出勤日を数えるか
        self.scan_days = scan_days

    def _off_run(self, employee: Employee, d: date, step: int, ctx: RuleContext) -> int:
        resolver = ctx["resolver"]
        run = 0
        for k in range(1, self.scan_days + 1):
            if resolver.is_working_day(employee.id, d + timedelta(days=step * k)):
                break
            run += 1
        return run

    @override
    def allows(self, employee: Employee, d: date, ctx: RuleContext) -> bool:
        limit = ctx.get("max_consecutive_rest", 3)
        before = self._off_run(employee, d, -1, ctx)
        after = self._off_run(employee, d, 1, ctx)
        return before + 1 + after <= limit


RULE = MaxConsecutiveRest()
register(RULE)
