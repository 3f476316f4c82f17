from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from pathlib import Path

from pharmroster.domain.types import GeneratedShift, ShiftRecord
from pharmroster.io.csv_files import read_rows, write_rows

logger = logging.getLogger(__name__)

SHIFT_HEADERS = ["employee_id", "date", "type"]


def load_shifts_csv(path: str) -> list[ShiftRecord]:
    """
    CSV 形式:
    employee_id,date,type
    1,2025-06-02,休み(終日)
    同じ (職員, 日付) の行が2つあればエラー。ファイルが無ければ空。
    """
    if not Path(path).exists():
        return []

    shifts: list[ShiftRecord] = []
    seen: set[tuple[int, dt.date]] = set()
    for row_idx, row in read_rows(path, SHIFT_HEADERS):
        try:
            employee_id = int(row["employee_id"])
            d = dt.date.fromisoformat(row["date"])
        except ValueError as e:
            raise ValueError(
                f"{path}:{row_idx}行目: 職員IDまたは日付が不正です "
                f"('{row['employee_id']}', '{row['date']}')"
            ) from e
        if not row["type"]:
            raise ValueError(f"{path}:{row_idx}行目: シフト種別が空です")
        if (employee_id, d) in seen:
            raise ValueError(f"{path}:{row_idx}行目: 職員 {employee_id} の {d} が重複しています")
        seen.add((employee_id, d))
        shifts.append(ShiftRecord(employee_id, d, row["type"]))

    return shifts


def save_shifts_csv(path: str, shifts: Iterable[ShiftRecord]) -> None:
    ordered = sorted(shifts, key=lambda s: (s.date, s.employee_id))
    write_rows(path, SHIFT_HEADERS, ([str(s.employee_id), s.date.isoformat(), s.type] for s in ordered))


def shifts_between(shifts: Iterable[ShiftRecord], start: dt.date, end: dt.date) -> list[ShiftRecord]:
    return [s for s in shifts if start <= s.date <= end]


def merge_generated_shifts(
    existing: Iterable[ShiftRecord], generated: Iterable[GeneratedShift]
) -> list[ShiftRecord]:
    """
    生成した休みを既存シフトに追加する。
    既にシフトのある (職員, 日付) は上書きしない。
    """
    merged = list(existing)
    taken = {(s.employee_id, s.date) for s in merged}
    skipped = 0
    for g in generated:
        key = (g.employee_id, g.date)
        if key in taken:
            skipped += 1
            continue
        taken.add(key)
        merged.append(ShiftRecord(g.employee_id, g.date, g.type))
    if skipped:
        logger.warning("既存シフトと重なる生成シフト %d 件を保存しませんでした", skipped)
    return merged
