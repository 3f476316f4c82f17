from datetime import date
from typing import ClassVar, override

from pharmroster.domain.context import RuleContext
from pharmroster.domain.types import Employee, GenerationReason

from .base import register
from .base_impl import RestRuleBase


class NoFixedSchedule(RestRuleBase):
    """研修・会議など予定が入っている日には休みを置かない"""

    name = "no_fixed_schedule"
    summary = "予定のある日には置かない"
    phases: ClassVar[set[GenerationReason]] = {
        GenerationReason.STREAK_PREVENTION,
        GenerationReason.QUOTA_FILL,
    }

    @override
    def allows(self, employee: Employee, d: date, ctx: RuleContext) -> bool:
        return (employee.id, d) not in ctx.get("scheduled", set())


RULE = NoFixedSchedule()
register(RULE)
