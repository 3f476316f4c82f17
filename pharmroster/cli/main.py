# pharmroster/cli/main.py
from __future__ import annotations

import argparse
import json
import logging
import pathlib
import random

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pharmroster import __version__
from pharmroster.calendar.utils import enumerate_calendar_days, shift_month
from pharmroster.engine.am_tasks import count_task_occurrences, generate_am_assignments
from pharmroster.engine.auto_shift import generate_auto_shifts
from pharmroster.engine.duplicates import find_duplicate_tasks
from pharmroster.engine.report import (
    print_am_assignments_rich,
    print_duplicates_rich,
    print_shift_result_rich,
)
from pharmroster.io.am_assignments_store import (
    load_am_assignments_csv,
    replace_auto_assignments,
    save_am_assignments_csv,
)
from pharmroster.io.employees_loader import load_employees, load_rest_goals
from pharmroster.io.export_excel import export_roster_to_excel
from pharmroster.io.schedules_loader import expand_schedules, load_schedule_rules
from pharmroster.io.settings_loader import load_settings
from pharmroster.io.shifts_store import (
    load_shifts_csv,
    merge_generated_shifts,
    save_shifts_csv,
    shifts_between,
)
from pharmroster.io.task_options_loader import load_task_options
from pharmroster.model.validation import check_rest_goals, check_task_options

logger = logging.getLogger("pharmroster")

# config / data ディレクトリのデフォルト
PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_EMPLOYEES = CONFIG_DIR / "employees.toml"
DEFAULT_SETTINGS = CONFIG_DIR / "settings.toml"
DEFAULT_TASK_OPTIONS = CONFIG_DIR / "task_options.toml"
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_SHIFTS = DATA_DIR / "shifts.csv"
DEFAULT_SCHEDULES = DATA_DIR / "schedules.toml"
DEFAULT_AM_ASSIGNMENTS = DATA_DIR / "am_assignments.csv"


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _rng(seed: int | None) -> random.Random:
    return random.Random(seed) if seed is not None else random.Random()


def run_shifts(args: argparse.Namespace) -> None:
    year, month = args.year, args.month

    # 1) 入力ロード
    settings = load_settings(str(args.settings))
    employees = load_employees(str(args.employees))
    goals = load_rest_goals(str(args.employees))
    all_shifts = load_shifts_csv(str(args.shifts))
    schedules = []
    if args.schedules and pathlib.Path(args.schedules).exists():
        schedules = expand_schedules(load_schedule_rules(str(args.schedules)), year, month)

    for w in check_rest_goals(employees, goals):
        logger.warning(w)

    # 前月〜翌月のシフトを連勤判定に使う
    py, pm = shift_month(year, month, -1)
    ny, nm = shift_month(year, month, 1)
    window_days = enumerate_calendar_days(py, pm) + enumerate_calendar_days(ny, nm)
    start = min(d.date for d in window_days)
    end = max(d.date for d in window_days)

    # 2) 自動割当
    result = generate_auto_shifts(
        year=year,
        month=month,
        employees=employees,
        shifts=shifts_between(all_shifts, start, end),
        schedules=schedules,
        goals=goals,
        max_rest_pharmacist=settings.max_rest_pharmacist,
        max_rest_assistant=settings.max_rest_assistant,
        rng=_rng(args.seed),
        streak_attempts=settings.streak_attempts,
        quota_attempts=settings.quota_attempts,
        max_consecutive_work=settings.max_consecutive_work,
        max_consecutive_rest=settings.max_consecutive_rest,
    )

    # 3) 出力
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2, default=str))
    else:
        print_shift_result_rich(result, employees)

    # 4) Excel 出力(指定があれば)
    if args.xlsx:
        export_roster_to_excel(
            employees=employees,
            days=enumerate_calendar_days(year, month),
            shifts=all_shifts,
            generated=result.new_shifts,
            out_path=str(args.xlsx),
        )
        Console().print(f":white_check_mark: Exported to {args.xlsx}")

    # 5) 保存(指定があれば)
    if args.write:
        save_shifts_csv(str(args.shifts), merge_generated_shifts(all_shifts, result.new_shifts))
        logger.info("%s に %d 件の休みを保存しました", args.shifts, len(result.new_shifts))


def print_task_stats_rich(stats: dict[int, int], names: dict[int, str], task_name: str) -> None:
    if not stats:
        return
    t = Table(f"{task_name}回数(当月を除く)", "回数")
    for employee_id, n in sorted(stats.items(), key=lambda kv: -kv[1]):
        t.add_row(names.get(employee_id, str(employee_id)), str(n))
    Console().print(t)


def run_am_tasks(args: argparse.Namespace) -> None:
    year, month = args.year, args.month

    # 1) 入力ロード
    employees = load_employees(str(args.employees))
    options = load_task_options(str(args.task_options))
    shifts = load_shifts_csv(str(args.shifts))
    existing = load_am_assignments_csv(str(args.am_assignments))

    for w in check_task_options(options):
        logger.warning(w)

    days = enumerate_calendar_days(year, month)
    month_days = [d.date for d in days if d.is_current_month]
    month_shifts = shifts_between(shifts, month_days[0], month_days[-1])

    # 2) 自動割当(当月分を作り直す)
    fresh = generate_am_assignments(
        year=year,
        month=month,
        employees=employees,
        task_options=options,
        shifts=month_shifts,
        existing=existing,
        rng=_rng(args.seed),
    )
    merged = replace_auto_assignments(existing, fresh, year, month)
    alerts = find_duplicate_tasks(
        year=year,
        month=month,
        employees=employees,
        assignments=merged,
        shifts=month_shifts,
        task_options=options,
    )

    # 3) 出力
    if args.json:
        payload = {
            "assignments": [vars(a) for a in fresh],
            "duplicates": [a.format() for a in alerts],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))
    else:
        print_am_assignments_rich(fresh, employees)
        print_duplicates_rich(alerts)
        stats = count_task_occurrences(merged, year=year, excluded_month=month)
        print_task_stats_rich(stats, {e.id: e.name for e in employees}, "早出")

    # 4) Excel 出力(指定があれば)
    if args.xlsx:
        export_roster_to_excel(
            employees=employees,
            days=days,
            shifts=month_shifts,
            am_assignments=merged,
            out_path=str(args.xlsx),
        )
        Console().print(f":white_check_mark: Exported to {args.xlsx}")

    # 5) 保存(指定があれば): 当月の自動割当を削除してから新しい割当を書き込む
    if args.write:
        save_am_assignments_csv(str(args.am_assignments), merged)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("-y", "--year", type=int, required=True, help="対象年 (例: 2025)")
    p.add_argument("-m", "--month", type=int, required=True, help="対象月 (1-12)")
    p.add_argument(
        "-e",
        "--employees",
        type=pathlib.Path,
        default=DEFAULT_EMPLOYEES,
        help=f"職員と目標休日数を記載したemployees.toml (default: {DEFAULT_EMPLOYEES})",
    )
    p.add_argument(
        "-s",
        "--shifts",
        type=pathlib.Path,
        default=DEFAULT_SHIFTS,
        help=f"シフトCSV (default: {DEFAULT_SHIFTS})",
    )
    p.add_argument(
        "-x",
        "--xlsx",
        type=pathlib.Path,
        help="Excel 出力パス (例: output/roster_2025_06.xlsx)",
    )
    p.add_argument("-j", "--json", action="store_true", help="テキストの代わりにJSON形式で出力")
    p.add_argument("-w", "--write", action="store_true", help="結果をデータファイルに保存")
    p.add_argument("--seed", type=int, help="乱数シード(同じ入力で同じ結果を再現したいとき)")
    p.add_argument("-v", "--verbose", action="store_true", help="詳細なログを表示")


def main() -> None:
    ap = argparse.ArgumentParser(description="薬剤部 勤務表・午前業務 自動割当ツール")

    # Version option
    ap.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"pharmroster {__version__}",
        help="バージョン情報を表示",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    p_shifts = sub.add_parser("shifts", help="休みの自動割当(連勤防止・日数調整)")
    _add_common(p_shifts)
    p_shifts.add_argument(
        "-S",
        "--settings",
        type=pathlib.Path,
        default=DEFAULT_SETTINGS,
        help=f"休み人数の上限などを記載したsettings.toml (default: {DEFAULT_SETTINGS})",
    )
    p_shifts.add_argument(
        "--schedules",
        type=pathlib.Path,
        default=DEFAULT_SCHEDULES,
        help=f"予定を記載したschedules.toml (default: {DEFAULT_SCHEDULES})",
    )
    p_shifts.set_defaults(func=run_shifts)

    p_am = sub.add_parser("am-tasks", help="薬剤師の午前業務の自動割当")
    _add_common(p_am)
    p_am.add_argument(
        "-t",
        "--task-options",
        type=pathlib.Path,
        default=DEFAULT_TASK_OPTIONS,
        help=f"午前業務の一覧task_options.toml (default: {DEFAULT_TASK_OPTIONS})",
    )
    p_am.add_argument(
        "-a",
        "--am-assignments",
        type=pathlib.Path,
        default=DEFAULT_AM_ASSIGNMENTS,
        help=f"午前業務の割当CSV (default: {DEFAULT_AM_ASSIGNMENTS})",
    )
    p_am.set_defaults(func=run_am_tasks)

    args = ap.parse_args()
    if not 1 <= args.month <= 12:
        ap.error("--month は 1〜12 で指定してください")

    setup_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
