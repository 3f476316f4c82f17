from collections.abc import Iterable, Mapping

from pharmroster.domain.types import Employee, RestGoal, TaskOption


def fallback_candidates(options: Iterable[TaskOption]) -> list[TaskOption]:
    """余り業務に指定されている業務の一覧。自動割当では先頭の1つだけが使われる。"""
    return [t for t in options if t.is_fallback]


def check_task_options(options: Iterable[TaskOption]) -> list[str]:
    """業務設定の注意点を文言で返す(割当は止めない)"""
    options = list(options)
    warnings = []
    fallbacks = fallback_candidates(options)
    if len(fallbacks) > 1:
        names = "、".join(t.name for t in fallbacks)
        warnings.append(f"余り業務が複数指定されています({names})。「{fallbacks[0].name}」のみ使用します")
    names = [t.name for t in options]
    dup = sorted({n for n in names if names.count(n) > 1})
    if dup:
        warnings.append(f"業務名が重複しています: {', '.join(dup)}")
    if not any(not t.is_fallback and not t.exclude_from_auto for t in options) and not fallbacks:
        warnings.append("自動割当の対象となる業務がありません")
    return warnings


def check_rest_goals(employees: Iterable[Employee], goals: Mapping[int, RestGoal]) -> list[str]:
    """目標休日数の未設定・下限と上限の逆転を文言で返す"""
    warnings = []
    for e in employees:
        goal = goals.get(e.id)
        if goal is None:
            warnings.append(f"{e.name}: 目標休日数が未設定のため日数調整を行いません")
        elif goal.min > goal.max:
            warnings.append(f"{e.name}: 目標休日数の下限({goal.min:g})が上限({goal.max:g})を超えています")
    return warnings
