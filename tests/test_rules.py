import pathlib
import sys
from decimal import Decimal

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from core.rules import (
    CONTRIBUTION_STAGES,
    ContributionFacts,
    evaluate_contribution_rules,
)


def _facts(**overrides):
    base = dict(
        reserves=Decimal("20000"),
        monthly_piti=Decimal("1000"),
        deficiency=Decimal("50000"),
        housing_ratio=Decimal("0.35"),
    )
    base.update(overrides)
    return ContributionFacts(**base)


def _codes(facts):
    return [r.code for r in evaluate_contribution_rules(facts)[1]]


def test_both_triggers_fire_in_order():
    outcome, fired = evaluate_contribution_rules(_facts())
    assert [r.code for r in fired] == ["RESERVES_OVER_10K", "HOUSING_RATIO_40_OR_LESS", "CONTRIBUTION_AMOUNT"]
    assert outcome.required is True
    assert outcome.amount == Decimal("4000")
    assert [r.context["stage"] for r in fired] == ["trigger", "trigger", "amount"]


def test_reserve_trigger_is_strictly_greater_than_ten_thousand():
    assert "RESERVES_OVER_10K" not in _codes(_facts(reserves=Decimal("10000"), housing_ratio=None))
    assert "RESERVES_OVER_10K" in _codes(_facts(reserves=Decimal("10000.01"), housing_ratio=None))


def test_ratio_trigger_includes_forty_percent():
    assert "HOUSING_RATIO_40_OR_LESS" in _codes(_facts(reserves=Decimal("0"), housing_ratio=Decimal("0.40")))
    assert "HOUSING_RATIO_40_OR_LESS" not in _codes(_facts(reserves=Decimal("0"), housing_ratio=Decimal("0.4001")))


def test_no_trigger_means_no_amount():
    outcome, fired = evaluate_contribution_rules(_facts(reserves=Decimal("5000"), housing_ratio=None))
    assert fired == []
    assert outcome.required is False
    assert outcome.amount == 0


def test_first_waiver_wins():
    facts = _facts(deficiency=Decimal("100"), is_servicemember_with_pcs=True)
    outcome, fired = evaluate_contribution_rules(facts)
    assert "WAIVER_DE_MINIMIS" in [r.code for r in fired]
    assert "WAIVER_PCS" not in [r.code for r in fired]
    assert outcome.waived is True
    assert outcome.required is True


def test_pcs_waiver_without_requirement():
    outcome, fired = evaluate_contribution_rules(
        _facts(reserves=Decimal("0"), housing_ratio=None, is_servicemember_with_pcs=True)
    )
    assert [r.code for r in fired] == ["WAIVER_PCS"]
    assert outcome.required is False
    assert outcome.waived is True


def test_stage_order():
    assert [stage for stage, _, _ in CONTRIBUTION_STAGES] == ["trigger", "amount", "waiver"]
