from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from pathlib import Path

from pharmroster.domain.types import AMAssignment
from pharmroster.io.csv_files import read_rows, write_rows

logger = logging.getLogger(__name__)

AM_HEADERS = ["employee_id", "date", "task_name", "is_auto_assigned"]

_TRUE = {"1", "true", "yes", "y", "自動"}
_FALSE = {"", "0", "false", "no", "n", "手動"}


def _parse_flag(raw: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"真偽値を期待しましたが '{raw}' が見つかりました")


def load_am_assignments_csv(path: str) -> list[AMAssignment]:
    """
    CSV 形式:
    employee_id,date,task_name,is_auto_assigned
    1,2025-06-02,外来,1
    3,2025-06-02,処方薬調剤,0      ← 手入力
    ファイルが無ければ空。
    """
    if not Path(path).exists():
        return []

    rows: list[AMAssignment] = []
    for row_idx, row in read_rows(path, AM_HEADERS):
        try:
            rows.append(
                AMAssignment(
                    employee_id=int(row["employee_id"]),
                    date=dt.date.fromisoformat(row["date"]),
                    task_name=row["task_name"],
                    is_auto_assigned=_parse_flag(row["is_auto_assigned"]),
                )
            )
        except ValueError as e:
            raise ValueError(f"{path}:{row_idx}行目: {e}") from e
    return rows


def save_am_assignments_csv(path: str, assignments: Iterable[AMAssignment]) -> None:
    ordered = sorted(assignments, key=lambda a: (a.date, a.employee_id))
    write_rows(
        path,
        AM_HEADERS,
        (
            [str(a.employee_id), a.date.isoformat(), a.task_name, "1" if a.is_auto_assigned else "0"]
            for a in ordered
        ),
    )


def replace_auto_assignments(
    existing: Iterable[AMAssignment],
    fresh: Iterable[AMAssignment],
    year: int,
    month: int,
) -> list[AMAssignment]:
    """
    その月の自動割当をすべて消してから、新しい自動割当を追加する。
    手入力の行と他の月の行はそのまま残す。
    """
    existing = list(existing)
    kept = [
        a
        for a in existing
        if not (a.is_auto_assigned and (a.date.year, a.date.month) == (year, month))
    ]
    removed = len(existing) - len(kept)
    taken = {(a.employee_id, a.date) for a in kept}

    added = 0
    for a in fresh:
        if (a.employee_id, a.date) in taken:
            # 残した行(手入力)を優先する
            continue
        kept.append(a)
        added += 1
    logger.info(
        "%d年%d月: 自動割当を置き換えました (削除 %d 件 / 追加 %d 件)",
        year,
        month,
        removed,
        added,
    )
    return kept
