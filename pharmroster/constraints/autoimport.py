import importlib
import pkgutil

from pharmroster.constraints.base import register


def auto_import_all() -> None:
    # この関数を呼ぶと constraints パッケージ配下のルールを全て import して登録
    from . import __path__ as pkg_path  # constraints パッケージの検索パス

    for m in pkgutil.iter_modules(pkg_path):
        name = m.name
        if name.startswith("_"):
            continue
        # base.py / autoimport.py 自体はスキップ
        if name in {"base", "base_impl", "autoimport"}:
            continue
        module = importlib.import_module(f"pharmroster.constraints.{name}")
        # import 済みでレジストリだけ空になっている場合に備えて登録し直す
        rule = getattr(module, "RULE", None)
        if rule is not None:
            register(rule)
