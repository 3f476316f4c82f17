from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import date

from pharmroster.domain.types import ShiftRecord
from pharmroster.model.rest_days import is_holiday_work


class ShiftGrid:
    """
    (employee_id, date) -> シフト種別 の作業用グリッド。
    1回の自動割当の間だけ使い、呼び出し元の入力には書き戻さない。
    休日出勤のある日付は put のたびに数え直す。
    """

    def __init__(
        self,
        shifts: Iterable[ShiftRecord] = (),
        *,
        employee_ids: Iterable[int] | None = None,
    ):
        self._cells: dict[tuple[int, date], str] = {}
        self._holiday_work: Counter[date] = Counter()
        self._employee_ids = frozenset(employee_ids) if employee_ids is not None else None
        for s in shifts:
            self.put(s.employee_id, s.date, s.type)

    def accepts(self, employee_id: int) -> bool:
        return self._employee_ids is None or employee_id in self._employee_ids

    def get(self, employee_id: int, d: date) -> str | None:
        return self._cells.get((employee_id, d))

    def put(self, employee_id: int, d: date, shift_type: str | None) -> None:
        """シフトを書き込む。shift_type が空なら削除。対象外の職員は無視する。"""
        if not self.accepts(employee_id):
            return
        key = (employee_id, d)
        old = self._cells.pop(key, None)
        if old and is_holiday_work(old):
            self._holiday_work[d] -= 1
            if self._holiday_work[d] <= 0:
                del self._holiday_work[d]
        if shift_type:
            self._cells[key] = shift_type
            if is_holiday_work(shift_type):
                self._holiday_work[d] += 1

    def apply_overrides(self, overrides: Mapping[tuple[int, date], str | None]) -> None:
        """画面上の未保存の変更を上書き適用する"""
        for (employee_id, d), shift_type in overrides.items():
            self.put(employee_id, d, shift_type)

    def has_holiday_work(self, d: date) -> bool:
        return self._holiday_work[d] > 0

    def __contains__(self, key: tuple[int, date]) -> bool:
        return key in self._cells

    def __len__(self) -> int:
        return len(self._cells)
