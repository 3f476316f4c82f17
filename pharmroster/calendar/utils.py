from __future__ import annotations

import calendar
import datetime as dt
from collections.abc import Callable

import jpholiday

from pharmroster.domain.types import CalendarDay

# 年月 -> カレンダー表示日の一覧 (外部から差し替え可能な暦の供給元)
CalendarProvider = Callable[[int, int], list[CalendarDay]]

GRID_DAYS = 42  # 6週 x 7日


# 指定年・月の全日付を生成
def generate_monthly_dates(year: int, month: int) -> list[dt.date]:
    _, ndays = calendar.monthrange(year, month)
    return [dt.date(year, month, day) for day in range(1, ndays + 1)]


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """(year, month) から delta ヶ月ずらした (year, month)"""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def iso_week(d: dt.date) -> list[dt.date]:
    """d を含む ISO 週(月曜始まり)の7日間"""
    monday = d - dt.timedelta(days=d.weekday())
    return [monday + dt.timedelta(days=i) for i in range(7)]


def enumerate_calendar_days(year: int, month: int) -> list[CalendarDay]:
    """
    日曜始まりの 6 週(42日)ぶんのカレンダー表示日を返す。
    - 月がちょうど 4 行に収まる場合(例: 2026年2月)は前に 1 週パディングする
    - 前後月のパディング日は is_current_month=False
    """
    first = dt.date(year, month, 1)
    _, ndays = calendar.monthrange(year, month)
    last = dt.date(year, month, ndays)

    # Python の weekday() は 月=0 ... 日=6 なので日曜始まりに換算
    start = first - dt.timedelta(days=(first.weekday() + 1) % 7)
    end_of_last_week = last + dt.timedelta(days=(5 - last.weekday()) % 7)
    week_count = ((end_of_last_week - start).days + 1) // 7
    if week_count == 4:
        start -= dt.timedelta(days=7)

    days: list[CalendarDay] = []
    for i in range(GRID_DAYS):
        d = start + dt.timedelta(days=i)
        holiday_name = jpholiday.is_holiday_name(d)
        days.append(
            CalendarDay(
                date=d,
                is_current_month=(d.year == year and d.month == month),
                is_sunday=d.weekday() == 6,
                is_saturday=d.weekday() == 5,
                is_holiday=holiday_name is not None,
                holiday_name=holiday_name,
            )
        )
    return days


def window_calendar_days(
    year: int, month: int, provider: CalendarProvider = enumerate_calendar_days
) -> list[CalendarDay]:
    """前月・当月・翌月の3ヶ月分(パディング日を除く)を日付順に返す"""
    days: list[CalendarDay] = []
    for delta in (-1, 0, 1):
        y, m = shift_month(year, month, delta)
        days.extend(d for d in provider(y, m) if d.is_current_month)
    return sorted(days, key=lambda d: d.date)
