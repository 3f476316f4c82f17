from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator
from pathlib import Path


def read_rows(path: str, expected_headers: list[str]) -> Iterator[tuple[int, dict[str, str]]]:
    """
    ヘッダ付き CSV を (行番号, {列名: 値}) で返す。空行は読み飛ばす。
    必要な列が無ければ ValueError。
    """
    # BOM付きUTF-8も想定
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        try:
            headers = [(h or "").strip() for h in next(reader)]
        except StopIteration:
            return
        missing = [h for h in expected_headers if h not in headers]
        if missing:
            raise ValueError(f"{path}: ヘッダに {missing} がありません")

        for row_idx, row in enumerate(reader, start=2):
            if not row or all((c or "").strip() == "" for c in row):
                continue
            yield row_idx, {h: (row[i] if i < len(row) else "").strip() for i, h in enumerate(headers)}


def write_rows(path: str, headers: list[str], rows: Iterable[list[str]]) -> None:
    """一時ファイルに書いてから置き換える(書きかけの状態を読まれないように)"""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(target.name + ".tmp")
    with open(tmp, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        writer.writerows(rows)
    tmp.replace(target)
