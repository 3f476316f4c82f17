from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from pharmroster.domain.types import AMAssignment, Employee, GenerationReason
from pharmroster.engine.auto_shift import AutoShiftResult
from pharmroster.engine.duplicates import DuplicateAlert


def _days(v: float | None) -> str:
    return "-" if v is None else f"{v:g}"


def print_shift_result_rich(result: AutoShiftResult, employees: list[Employee]) -> None:
    console = Console()
    names = {e.id: e.name for e in employees}

    # 1) 職員別サマリ
    summary = Table(title="休日数サマリ", show_lines=False)
    summary.add_column("職員", no_wrap=True)
    summary.add_column("現在", justify="right")
    summary.add_column("追加", justify="right")
    summary.add_column("合計", justify="right")
    summary.add_column("目標", justify="right")
    summary.add_column("判定", justify="center")
    summary.add_column("メッセージ", overflow="fold")
    for r in result.results:
        mark = "[green]OK[/]" if r.is_goal_reached else "[red]NG[/]"
        summary.add_row(
            r.name,
            _days(r.current),
            _days(r.added),
            _days(r.total),
            f"{_days(r.goal_min)}〜{_days(r.goal_max)}",
            mark,
            " / ".join(r.messages),
        )

    reached = sum(1 for r in result.results if r.is_goal_reached)
    by_reason = Counter(s.reason for s in result.new_shifts)
    title = (
        f"[b]生成 {len(result.new_shifts)} 件[/b] "
        f"(連勤防止 {by_reason[GenerationReason.STREAK_PREVENTION]} / "
        f"日数調整 {by_reason[GenerationReason.QUOTA_FILL]}) "
        f"目標達成 {reached}/{len(result.results)} 人"
    )
    summary_panel = Panel(summary, title=title, border_style="cyan")

    # 2) 生成シフトの明細
    detail = Table(title="生成シフト", show_lines=False)
    detail.add_column("#", justify="right", no_wrap=True)
    detail.add_column("日付", no_wrap=True)
    detail.add_column("職員", no_wrap=True)
    detail.add_column("種別")
    detail.add_column("理由")
    ordered = sorted(result.new_shifts, key=lambda s: (s.date, s.employee_id))
    for i, s in enumerate(ordered, 1):
        detail.add_row(
            str(i),
            s.date.isoformat(),
            names.get(s.employee_id, str(s.employee_id)),
            s.type,
            s.reason.value,
        )

    console.print(Group(summary_panel, detail))


def print_am_assignments_rich(
    assignments: Iterable[AMAssignment], employees: list[Employee]
) -> None:
    console = Console()
    assignments = list(assignments)
    if not assignments:
        console.print("[bold yellow]自動割当された午前業務はありません。[/]")
        return

    names = {e.id: e.name for e in employees}
    counts: dict[int, Counter[str]] = {}
    task_names: list[str] = []
    for a in assignments:
        counts.setdefault(a.employee_id, Counter())[a.task_name] += 1
        if a.task_name not in task_names:
            task_names.append(a.task_name)

    table = Table(title=f"午前業務 自動割当 ({len(assignments)} 件)")
    table.add_column("職員", no_wrap=True)
    for t in task_names:
        table.add_column(t, justify="right")
    for employee_id, c in counts.items():
        table.add_row(names.get(employee_id, str(employee_id)), *(str(c[t]) for t in task_names))
    console.print(table)


def print_duplicates_rich(alerts: list[DuplicateAlert]) -> None:
    console = Console()
    if not alerts:
        console.print("[bold green]業務の重複はありません。[/]")
        return
    console.rule(f"⚠️  [bold red]業務重複 {len(alerts)}件")
    for a in alerts:
        console.print(f"[red]- {a.format()}[/]")
