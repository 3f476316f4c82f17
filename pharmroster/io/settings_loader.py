import tomllib
from dataclasses import dataclass
from pathlib import Path

from pharmroster.engine.auto_shift import (
    MAX_CONSECUTIVE_REST,
    MAX_CONSECUTIVE_WORK,
    QUOTA_ATTEMPTS,
    STREAK_ATTEMPTS,
)


@dataclass
class EngineSettings:
    max_rest_pharmacist: int = 3  # 1日に休める薬剤師の上限人数
    max_rest_assistant: int = 2  # 1日に休める薬剤助手(ほか)の上限人数
    max_consecutive_work: int = MAX_CONSECUTIVE_WORK
    max_consecutive_rest: int = MAX_CONSECUTIVE_REST
    streak_attempts: int = STREAK_ATTEMPTS
    quota_attempts: int = QUOTA_ATTEMPTS


def load_settings(config_path: str | None) -> EngineSettings:
    """Load engine settings from a TOML file.

    書かれていない項目は既定値。ファイルが無ければすべて既定値。
    """
    settings = EngineSettings()
    if config_path is None or not Path(config_path).exists():
        return settings

    with open(config_path, "rb") as f:
        config = tomllib.loads(f.read().decode("utf-8-sig"))

    merged = {**config.get("rest", {}), **config.get("limits", {})}
    for key, raw in merged.items():
        if not hasattr(settings, key):
            raise ValueError(f"{config_path}: 不明な設定項目です: {key}")
        value = int(raw)
        if value < 0:
            raise ValueError(f"{config_path}: {key} に負の値 {value} は指定できません")
        setattr(settings, key, value)

    return settings
