# pharmroster/constraints/base_impl.py
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import date
from typing import Any, ClassVar

from pharmroster.domain.context import RuleContext
from pharmroster.domain.types import Employee, GenerationReason


class RestRuleBase(ABC):
    name: str = "unnamed"
    summary: str = "no summary"
    requires: ClassVar[set[str]] = set()  # ctxに必要なキーの集合("grid", "scheduled"など)
    phases: ClassVar[set[GenerationReason]] = set()  # どの段階の候補日選びに使うか

    def ensure_requires(self, ctx: Mapping[str, Any]) -> None:
        miss = self.requires - set(ctx.keys())
        if miss:
            raise RuntimeError(f"{self.name}: missing ctx keys: {sorted(miss)}")

    @abstractmethod
    def allows(self, employee: Employee, d: date, ctx: RuleContext) -> bool:
        """employee の d に休みを置いてよいか"""
        pass
