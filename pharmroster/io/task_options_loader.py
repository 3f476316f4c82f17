import tomllib
from pathlib import Path

from pharmroster.domain.types import TaskOption

DEFAULT_TASK_OPTIONS: tuple[TaskOption, ...] = (
    TaskOption(id="t1", name="院外監査", order=1, bg_color="bg-slate-100"),
    TaskOption(id="t2", name="注射監査", order=2, bg_color="bg-yellow-50"),
    TaskOption(
        id="t3", name="ミキシング・散剤", order=3, bg_color="bg-orange-400", text_color="text-white"
    ),
    TaskOption(id="t4", name="処方薬調剤", order=4, bg_color="bg-yellow-300"),
    TaskOption(id="t5", name="外来", order=5, bg_color="bg-white", text_color="text-red-500"),
    TaskOption(id="t6", name="病棟", order=6, bg_color="bg-blue-500", text_color="text-white"),
    TaskOption(id="t7", name="散剤混注", order=7, bg_color="bg-amber-500", text_color="text-white"),
)


def default_task_options() -> list[TaskOption]:
    return [TaskOption(**vars(t)) for t in DEFAULT_TASK_OPTIONS]


def load_task_options(config_path: str | None) -> list[TaskOption]:
    """Load AM task options from a TOML file.

    ファイルが無い、または業務が1つも書かれていない場合は既定の業務一覧を返す。
    """
    if config_path is None or not Path(config_path).exists():
        return default_task_options()

    with open(config_path, "rb") as f:
        config = tomllib.loads(f.read().decode("utf-8-sig"))

    options: list[TaskOption] = []
    for i, entry in enumerate(config.get("task_options", []), start=1):
        name = (entry.get("name") or "").strip()
        if not name:
            raise ValueError(f"{config_path}: {i}件目の業務に name がありません")
        options.append(
            TaskOption(
                id=str(entry.get("id", f"t{i}")),
                name=name,
                order=int(entry.get("order", i)),
                bg_color=entry.get("bg_color", "bg-slate-100"),
                text_color=entry.get("text_color", "text-slate-800"),
                is_fallback=bool(entry.get("is_fallback", False)),
                exclude_from_auto=bool(entry.get("exclude_from_auto", False)),
            )
        )

    return options or default_task_options()
