import importlib
import sys

import pytest

import pharmroster.constraints.base as base


def _reset_registry_and_modules(module_paths: list[str] | None = None):
    """レジストリをクリアし、指定モジュールを再importできる状態に戻す"""
    base.rule_registry.clear()
    if module_paths:
        for m in module_paths:
            sys.modules.pop(m, None)
    importlib.invalidate_caches()


@pytest.fixture
def ensure_rule():
    """
    テストごとにルールモジュールを再importし、対象ルールを返すフィクスチャ。

    使い方:
        def test_xxx(ensure_rule):
            r = ensure_rule(
                "pharmroster.constraints.r02_not_closing_day",
                "not_closing_day",
            )
            ...
    """

    def _loader(module_path: str, rule_name: str):
        # クリアして対象モジュールを再import
        _reset_registry_and_modules([module_path])
        importlib.import_module(module_path)

        from pharmroster.constraints.base import all_rules

        matches = [r for r in all_rules() if r.name == rule_name]
        assert matches, f"{rule_name} not registered in {module_path}"
        return matches[0]

    yield _loader

    # 後片付け
    _reset_registry_and_modules()
