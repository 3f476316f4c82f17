from datetime import date
from typing import ClassVar, override

from pharmroster.domain.context import RuleContext
from pharmroster.domain.types import Employee, GenerationReason

from .base import register
from .base_impl import RestRuleBase


class NotClosingDay(RestRuleBase):
    """日曜・祝日、休日出勤のある日は元々休みなので、日数調整の休みを置かない"""

    name = "not_closing_day"
    summary = "休業日には置かない"
    requires: ClassVar[set[str]] = {"resolver"}
    phases: ClassVar[set[GenerationReason]] = {GenerationReason.QUOTA_FILL}

    @override
    def allows(self, employee: Employee, d: date, ctx: RuleContext) -> bool:
        return not ctx["resolver"].is_closing_day(d)


RULE = NotClosingDay()
register(RULE)
