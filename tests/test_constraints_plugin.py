import datetime as dt
import importlib
import sys

import pytest

from pharmroster.domain.types import Employee, GenerationReason, JobType, ShiftRecord, ShiftType
from pharmroster.model.rest_days import RestDayResolver
from pharmroster.model.shift_grid import ShiftGrid

RULE_MODULES = [
    "pharmroster.constraints.r01_unassigned_in_target_month",
    "pharmroster.constraints.r02_not_closing_day",
    "pharmroster.constraints.r03_no_fixed_schedule",
    "pharmroster.constraints.r04_max_consecutive_rest",
]


def _reset_registry_and_module():
    """
    レジストリと関連モジュールをきれいにして、毎テスト同じ初期状態にする。
    """
    import pharmroster.constraints.base as base

    base.rule_registry.clear()

    # 以前に import 済みのプラグインをモジュールキャッシュから外す
    for mod in RULE_MODULES:
        sys.modules.pop(mod, None)

    # autoimport を再読み込み(__path__参照のため)
    sys.modules.pop("pharmroster.constraints.autoimport", None)
    importlib.invalidate_caches()


@pytest.fixture(autouse=True)
def _clean():
    _reset_registry_and_module()
    yield
    _reset_registry_and_module()


EMP = Employee(1, "山田", JobType.PHARMACIST)


def _ctx(shifts=(), closed=(), scheduled=None, year=2025, month=6, max_rest=3):
    grid = ShiftGrid(shifts)
    ctx = {
        "year": year,
        "month": month,
        "grid": grid,
        "resolver": RestDayResolver(grid, closed),
        "max_consecutive_rest": max_rest,
    }
    if scheduled is not None:
        ctx["scheduled"] = scheduled
    return ctx


def test_registry_is_empty_until_plugin_is_imported():
    from pharmroster.constraints.base import all_rules

    # 何も import していない間は空
    assert all_rules() == []

    # プラグインを import すると register() が走る
    import pharmroster.constraints.r02_not_closing_day  # noqa: F401

    names = [r.name for r in all_rules()]
    assert names == ["not_closing_day"]


def test_autoimport_loads_plugins_and_registers():
    from pharmroster.constraints.autoimport import auto_import_all
    from pharmroster.constraints.base import all_rules

    assert all_rules() == []

    auto_import_all()

    names = {r.name for r in all_rules()}
    assert names == {
        "unassigned_in_target_month",
        "not_closing_day",
        "no_fixed_schedule",
        "max_consecutive_rest",
    }


def test_autoimport_reregisters_after_registry_clear():
    """import 済みのままレジストリだけ空になっても、もう一度呼べば登録し直される"""
    from pharmroster.constraints.autoimport import auto_import_all
    from pharmroster.constraints.base import all_rules, rule_registry

    auto_import_all()
    rule_registry.clear()
    auto_import_all()
    assert len(all_rules()) == 4

    # 二重登録はしない
    auto_import_all()
    assert len(all_rules()) == 4


def test_rules_for_splits_by_phase():
    from pharmroster.constraints.autoimport import auto_import_all
    from pharmroster.constraints.base import rules_for

    auto_import_all()
    streak = {r.name for r in rules_for(GenerationReason.STREAK_PREVENTION)}
    quota = {r.name for r in rules_for(GenerationReason.QUOTA_FILL)}

    # 連勤防止では休業日・連休の制限をかけない
    assert streak == {"unassigned_in_target_month", "no_fixed_schedule"}
    assert quota == {
        "unassigned_in_target_month",
        "not_closing_day",
        "no_fixed_schedule",
        "max_consecutive_rest",
    }


def test_ensure_requires_raises_on_missing_keys(ensure_rule):
    r = ensure_rule("pharmroster.constraints.r01_unassigned_in_target_month", "unassigned_in_target_month")
    with pytest.raises(RuntimeError) as ei:
        r.ensure_requires({"year": 2025})
    assert "grid" in str(ei.value)
    assert "month" in str(ei.value)


def test_unassigned_in_target_month(ensure_rule):
    r = ensure_rule("pharmroster.constraints.r01_unassigned_in_target_month", "unassigned_in_target_month")
    ctx = _ctx(shifts=[ShiftRecord(1, dt.date(2025, 6, 3), ShiftType.WORK_FULL.value)])

    assert r.allows(EMP, dt.date(2025, 6, 2), ctx) is True
    # 既にシフトがある日
    assert r.allows(EMP, dt.date(2025, 6, 3), ctx) is False
    # 前月・翌月には置かない
    assert r.allows(EMP, dt.date(2025, 5, 30), ctx) is False
    assert r.allows(EMP, dt.date(2025, 7, 1), ctx) is False


def test_not_closing_day(ensure_rule):
    r = ensure_rule("pharmroster.constraints.r02_not_closing_day", "not_closing_day")
    sunday = dt.date(2025, 6, 8)
    saturday = dt.date(2025, 6, 14)
    ctx = _ctx(
        shifts=[ShiftRecord(2, saturday, ShiftType.HOLIDAY_WORK_FULL.value)],
        closed=[sunday],
    )

    assert r.allows(EMP, dt.date(2025, 6, 10), ctx) is True
    assert r.allows(EMP, sunday, ctx) is False
    # 誰かが休日出勤している日も休業日扱い
    assert r.allows(EMP, saturday, ctx) is False


def test_no_fixed_schedule(ensure_rule):
    r = ensure_rule("pharmroster.constraints.r03_no_fixed_schedule", "no_fixed_schedule")
    d = dt.date(2025, 6, 11)

    assert r.allows(EMP, d, _ctx(scheduled={(1, d)})) is False
    # 他の職員の予定は関係ない
    assert r.allows(EMP, d, _ctx(scheduled={(2, d)})) is True
    # scheduled が無ければ常に許可
    assert r.allows(EMP, d, _ctx()) is True


def test_max_consecutive_rest(ensure_rule):
    r = ensure_rule("pharmroster.constraints.r04_max_consecutive_rest", "max_consecutive_rest")
    sunday = dt.date(2025, 6, 8)
    rest = ShiftType.REST_FULL.value
    ctx = _ctx(
        shifts=[ShiftRecord(1, dt.date(2025, 6, 7), rest)],
        closed=[sunday],
    )

    # 土(休み)・日(休業) の翌月曜に置くと3連休 → 上限3なら可
    assert r.allows(EMP, dt.date(2025, 6, 9), ctx) is True
    # 金曜に置くと 金土日 の3連休 → 可
    assert r.allows(EMP, dt.date(2025, 6, 6), ctx) is True

    ctx2 = _ctx(
        shifts=[
            ShiftRecord(1, dt.date(2025, 6, 7), rest),
            ShiftRecord(1, dt.date(2025, 6, 9), rest),
        ],
        closed=[sunday],
    )
    # 土日月が休みのところに火曜を足すと4連休
    assert r.allows(EMP, dt.date(2025, 6, 10), ctx2) is False
    assert r.allows(EMP, dt.date(2025, 6, 6), ctx2) is False
    # 上限を緩めれば可
    ctx2["max_consecutive_rest"] = 4
    assert r.allows(EMP, dt.date(2025, 6, 10), ctx2) is True


def test_half_day_rest_does_not_extend_run(ensure_rule):
    """半日休みの日は出勤日として扱い、連休を途切れさせる"""
    r = ensure_rule("pharmroster.constraints.r04_max_consecutive_rest", "max_consecutive_rest")
    ctx = _ctx(
        shifts=[
            ShiftRecord(1, dt.date(2025, 6, 3), ShiftType.REST_FULL.value),
            ShiftRecord(1, dt.date(2025, 6, 4), ShiftType.REST_FULL.value),
            ShiftRecord(1, dt.date(2025, 6, 6), ShiftType.REST_AM.value),
        ],
        max_rest=3,
    )
    # 火水休み + 木 = 3連休、金は半日なので数えない
    assert r.allows(EMP, dt.date(2025, 6, 5), ctx) is True
