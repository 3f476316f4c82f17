from __future__ import annotations

import datetime as dt
import tomllib

from pharmroster.domain.types import ScheduleEntry, ScheduleRule


def load_schedule_rules(config_path: str) -> list[ScheduleRule]:
    """
    予定を TOML から読み込む。
        [[schedules]]
        employee_id = 1
        date = 2025-06-12          # 日付指定
        text = "研修"

        [[schedules]]
        employee_id = 2
        week_number = 2            # 毎月第2
        day_of_week = 3            # 水曜 (0=日 ... 6=土)
        text = "委員会"
    """
    with open(config_path, "rb") as f:
        config = tomllib.loads(f.read().decode("utf-8-sig"))

    rules: list[ScheduleRule] = []
    for i, entry in enumerate(config.get("schedules", []), start=1):
        raw_date = entry.get("date")
        if isinstance(raw_date, str):
            raw_date = dt.date.fromisoformat(raw_date)
        rule = ScheduleRule(
            text=entry.get("text", ""),
            employee_id=entry.get("employee_id"),
            date=raw_date,
            week_number=entry.get("week_number"),
            day_of_week=entry.get("day_of_week"),
        )
        if rule.date is None and (rule.week_number is None or rule.day_of_week is None):
            raise ValueError(
                f"{config_path}: {i}件目の予定には date か week_number/day_of_week が必要です"
            )
        if rule.week_number is not None and not 1 <= rule.week_number <= 5:
            raise ValueError(f"{config_path}: {i}件目の week_number は1〜5で指定してください")
        if rule.day_of_week is not None and not 0 <= rule.day_of_week <= 6:
            raise ValueError(f"{config_path}: {i}件目の day_of_week は0〜6で指定してください")
        rules.append(rule)

    return rules


def nth_weekday(year: int, month: int, week_number: int, day_of_week: int) -> dt.date | None:
    """第 week_number の day_of_week 曜日(0=日)。その月に無ければ None。"""
    first = dt.date(year, month, 1)
    # Python の weekday() は 月=0 ... 日=6
    offset = ((day_of_week - 1) % 7 - first.weekday()) % 7
    d = first + dt.timedelta(days=offset + 7 * (week_number - 1))
    return d if d.month == month else None


def expand_schedules(rules: list[ScheduleRule], year: int, month: int) -> list[ScheduleEntry]:
    """予定を指定月の日付付きの予定に展開する"""
    entries: list[ScheduleEntry] = []
    for rule in rules:
        if rule.date is not None:
            if (rule.date.year, rule.date.month) == (year, month):
                entries.append(ScheduleEntry(rule.employee_id, rule.date, rule.text))
            continue
        if rule.week_number is None or rule.day_of_week is None:
            # 読み込み時に検査済み。直接組み立てた不完全な予定は無視する
            continue
        d = nth_weekday(year, month, rule.week_number, rule.day_of_week)
        if d is not None:
            entries.append(ScheduleEntry(rule.employee_id, d, rule.text))
    return entries
