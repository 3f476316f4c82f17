# プラグイン化の基底プログラム
from pharmroster.constraints.base_impl import RestRuleBase

rule_registry: list[RestRuleBase] = []  # 登録された休み配置ルールのリスト


def register(rule: RestRuleBase) -> None:
    # 同名のルールは二重登録しない
    if any(r.name == rule.name for r in rule_registry):
        return
    rule_registry.append(rule)


def all_rules() -> list[RestRuleBase]:
    return list(rule_registry)


def rules_for(phase) -> list[RestRuleBase]:
    return [r for r in rule_registry if phase in r.phases]
