import os
import sys
from datetime import date
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from core.validation import CalculationError
from lossmit.calculators import (
    calculate_affordability_for_modification,
    calculate_cash_contribution,
    calculate_escrow_shortage_repayment,
    calculate_housing_expense_to_income_ratio,
    calculate_non_retirement_cash_reserves,
    calculate_non_taxable_income_gross_up,
    calculate_payment_deferral_eligibility,
    calculate_property_ltv_and_paydown,
    calculate_relocation_assistance_eligibility,
    calculate_repayment_plan_parameters,
    calculate_short_sale_net_proceeds_and_deficiency,
    calculate_total_debt_to_income_ratio,
    calculate_trial_period_payment,
)

SELLING_COSTS = {
    "real_estate_commission": 18000,
    "closing_costs": 6000,
    "repair_costs": 3000,
    "subordinate_lien_payoffs": 1000,
    "other_costs": 1000,
}


def test_housing_ratio_is_piti_over_income():
    res = calculate_housing_expense_to_income_ratio(1500, 5000)
    assert res.calculation_type == "housing_expense_to_income_ratio"
    assert res.result == Decimal("0.3")
    assert res.details["ratio_percentage"] == Decimal("30.00")
    assert res.guideline_reference.startswith("Line 120")


def test_housing_ratio_rounds_to_four_places():
    res = calculate_housing_expense_to_income_ratio(1000, 3000)
    assert res.result == Decimal("0.3333")
    assert res.details["ratio_percentage"] == Decimal("33.33")


def test_housing_ratio_monotonic():
    low = calculate_housing_expense_to_income_ratio(1000, 5000).result
    mid = calculate_housing_expense_to_income_ratio(1500, 5000).result
    lower = calculate_housing_expense_to_income_ratio(1500, 7000).result
    assert low < mid
    assert lower < mid


def test_housing_ratio_boundary_warning_is_inclusive():
    at_limit = calculate_housing_expense_to_income_ratio(2000, 5000)
    above = calculate_housing_expense_to_income_ratio(2001, 5000)
    assert any("40%" in w for w in at_limit.warnings)
    assert above.warnings == []


def test_housing_ratio_rejects_zero_income():
    with pytest.raises(CalculationError, match="Gross monthly income must be greater than zero") as exc:
        calculate_housing_expense_to_income_ratio(1500, 0)
    assert exc.value.field == "gross_monthly_income"


def test_ratio_rejects_unknown_loan_type():
    with pytest.raises(CalculationError, match="Loan type must be one of"):
        calculate_housing_expense_to_income_ratio(1500, 5000, loan_type="Jumbo")


def test_total_dti_includes_other_debts():
    res = calculate_total_debt_to_income_ratio(1500, 5000, 500, loan_type="FHA")
    assert res.result == Decimal("0.4")
    assert res.details["total_monthly_debts"] == Decimal("2000.00")
    assert res.details["loan_type"] == "FHA"


def test_total_dti_other_debts_default_zero():
    assert calculate_total_debt_to_income_ratio(1500, 5000).result == Decimal("0.3")


def test_gross_up_defaults_to_twenty_five_percent():
    res = calculate_non_taxable_income_gross_up(1000)
    assert res.result == Decimal("1250.00")
    assert res.details["gross_up_percentage"] == Decimal("25.00")
    assert res.details["gross_up_amount"] == Decimal("250.00")


def test_gross_up_zero_income_is_zero():
    assert calculate_non_taxable_income_gross_up(0).result == 0


def test_gross_up_validation():
    with pytest.raises(CalculationError, match="Non-taxable income cannot be negative"):
        calculate_non_taxable_income_gross_up(-1)
    with pytest.raises(CalculationError, match="Gross-up percentage must be between 0 and 1"):
        calculate_non_taxable_income_gross_up(1000, 1.5)


def test_cash_reserves_over_ten_thousand():
    res = calculate_non_retirement_cash_reserves(8000, 3000, 0, 0, 0)
    assert res.result == 11000
    assert any("≥ $10,000" in w for w in res.warnings)
    assert not any("≥ $25,000" in w for w in res.warnings)
    assert any("< $25,000" in w for w in res.warnings)


def test_cash_reserves_tiers_are_not_exclusive():
    res = calculate_non_retirement_cash_reserves(20000, 5000, 2500, 2500, 0)
    assert res.result == 30000
    assert any("≥ $10,000" in w for w in res.warnings)
    assert any("≥ $25,000" in w for w in res.warnings)
    assert not any("< $25,000" in w for w in res.warnings)


def test_cash_reserves_reject_negative_balance():
    with pytest.raises(CalculationError) as exc:
        calculate_non_retirement_cash_reserves(100, -1, 0, 0, 0)
    assert exc.value.field == "savings_account_balance"


def test_cash_contribution_reserve_trigger():
    res = calculate_cash_contribution(15000, 2000, 50000)
    assert res.result["contribution_required"] is True
    assert res.result["contribution_amount"] == Decimal("8000.00")
    assert res.result["contribution_waived"] is False
    assert res.details["triggered_by_cash_reserves"] is True
    assert res.details["triggered_by_housing_ratio"] is False


def test_cash_contribution_ratio_trigger():
    res = calculate_cash_contribution(5000, 1000, 50000, housing_expense_to_income_ratio=0.35)
    assert res.result["contribution_required"] is True
    assert res.result["contribution_amount"] == Decimal("4000.00")
    assert res.details["rules_fired"] == ["HOUSING_RATIO_40_OR_LESS", "CONTRIBUTION_AMOUNT"]


def test_cash_contribution_not_required():
    res = calculate_cash_contribution(5000, 1000, 50000, housing_expense_to_income_ratio=0.5)
    assert res.result["contribution_required"] is False
    assert res.result["contribution_amount"] == 0
    assert res.result["contribution_waived"] is False
    assert res.warnings == []


def test_cash_contribution_capped_at_deficiency():
    res = calculate_cash_contribution(100000, 2000, 5000)
    assert res.result["contribution_amount"] == Decimal("5000.00")
    for reserves, piti, deficiency in [(11000, 100, 900), (60000, 5000, 12000), (250000, 800, 49999.99)]:
        amount = calculate_cash_contribution(reserves, piti, deficiency).result["contribution_amount"]
        assert amount <= Decimal(str(deficiency))


def test_cash_contribution_de_minimis_waiver_keeps_required():
    res = calculate_cash_contribution(11000, 100, 300)
    assert res.result["contribution_required"] is True
    assert res.result["contribution_waived"] is True
    assert res.result["contribution_amount"] == 0
    assert "less than $500" in res.result["waiver_reason"]


def test_cash_contribution_pcs_always_waived():
    for reserves, ratio in [(50000, None), (0, 0.9), (9000, 0.2)]:
        res = calculate_cash_contribution(
            reserves, 3000, 100000, housing_expense_to_income_ratio=ratio, is_servicemember_with_pcs=True
        )
        assert res.result["contribution_waived"] is True
        assert res.result["contribution_amount"] == 0
        assert "PCS" in res.result["waiver_reason"]


def test_escrow_repayment_defaults_to_sixty_months():
    res = calculate_escrow_shortage_repayment(1200)
    assert res.result == Decimal("20.00")
    assert res.details["repayment_term_months"] == 60


def test_escrow_repayment_rounding_error_bounded():
    for shortage, term in [(1000, 7), (2500.55, 60), (99.99, 13)]:
        monthly = calculate_escrow_shortage_repayment(shortage, term).result
        assert abs(monthly * term - Decimal(str(shortage))) <= Decimal("0.01") * term


def test_escrow_repayment_rejects_zero_term():
    with pytest.raises(CalculationError, match="Repayment term must be greater than zero"):
        calculate_escrow_shortage_repayment(1200, 0)


def test_trial_period_payment_sums_components():
    res = calculate_trial_period_payment(1200, 300, 100, 50)
    assert res.result == Decimal("1650.00")
    assert calculate_trial_period_payment(1200, 300, 100).result == Decimal("1600.00")


def test_repayment_plan_exceeds_payment_limit():
    res = calculate_repayment_plan_parameters(2000, 15000, 12)
    assert res.result["proposed_payment"] == Decimal("3250.00")
    assert res.result["max_allowable_payment"] == Decimal("3000.00")
    assert res.result["exceeds_payment_limit"] is True
    assert res.result["exceeds_term_limit"] is False
    assert res.result["is_valid_plan"] is False
    assert "Proposed payment $3,250.00 exceeds 150% limit of $3,000.00" in res.warnings


def test_repayment_plan_long_term_needs_approval():
    res = calculate_repayment_plan_parameters(2000, 6000, 24)
    assert res.result["is_valid_plan"] is True
    assert any("prior written approval" in w for w in res.warnings)


def test_repayment_plan_exceeds_term_limit():
    res = calculate_repayment_plan_parameters(2000, 3600, 40)
    assert res.result["exceeds_payment_limit"] is False
    assert res.result["exceeds_term_limit"] is True
    assert res.result["is_valid_plan"] is False


DEFERRAL_BASE = dict(
    loan_origination_date=date(2020, 1, 15),
    evaluation_date=date(2025, 6, 1),
    loan_maturity_date=date(2050, 1, 15),
    current_delinquency_months=3,
)

CRITERIA = (
    "loan_originated_at_least_12_months_prior",
    "delinquency_in_range",
    "cumulative_deferrals_under_12_months",
    "no_prior_deferral_within_12_months",
    "not_within_36_months_of_maturity",
)


def _deferral(**changes):
    return calculate_payment_deferral_eligibility(**{**DEFERRAL_BASE, **changes})


def test_payment_deferral_all_criteria_met():
    res = _deferral()
    assert all(res.result[c] for c in CRITERIA)
    assert res.result["overall_eligible"] is True
    assert res.warnings == []
    assert res.details["months_since_origination"] == 65


@pytest.mark.parametrize(
    "changes, criterion, message",
    [
        ({"loan_origination_date": date(2025, 1, 10)}, CRITERIA[0], "current: 5 months"),
        ({"current_delinquency_months": 8}, CRITERIA[1], "Delinquency must be 2-6 months (current: 8 months)"),
        (
            {
                "prior_deferral_history": [
                    {"effective_date": "2021-01-01", "months_deferred": 6},
                    {"effective_date": "2022-06-01", "months_deferred": 7},
                ]
            },
            CRITERIA[2],
            "exceed 12 months (current: 13)",
        ),
        (
            {"prior_deferral_history": [{"effective_date": "2024-09-01", "months_deferred": 3}]},
            CRITERIA[3],
            "Prior non-disaster deferral within last 12 months",
        ),
        ({"loan_maturity_date": date(2027, 6, 1)}, CRITERIA[4], "(24 months remaining)"),
    ],
)
def test_payment_deferral_single_failure(changes, criterion, message):
    res = _deferral(**changes)
    assert res.result[criterion] is False
    assert all(res.result[c] for c in CRITERIA if c != criterion)
    assert res.result["overall_eligible"] is False
    assert len(res.warnings) == 1
    assert message in res.warnings[0]


def test_payment_deferral_reports_every_failure():
    res = _deferral(loan_origination_date=date(2025, 1, 10), current_delinquency_months=0)
    assert res.result["overall_eligible"] is False
    assert len(res.warnings) == 2


def test_payment_deferral_exactly_twelve_months_is_compliant():
    res = _deferral(
        prior_deferral_history=[
            {"effective_date": "2021-01-01", "months_deferred": 6},
            {"effective_date": "2022-06-01", "months_deferred": 6},
        ]
    )
    assert res.result["cumulative_deferrals_under_12_months"] is True
    assert res.details["total_non_disaster_months_deferred"] == 12


def test_payment_deferral_disaster_rules():
    res = _deferral(
        current_delinquency_months=10,
        is_disaster_related=True,
        prior_deferral_history=[
            {"effective_date": "2021-01-01", "months_deferred": 6},
            {"effective_date": "2024-09-01", "months_deferred": 12, "is_disaster_related": True},
        ],
    )
    assert res.result["overall_eligible"] is True
    assert res.details["total_non_disaster_months_deferred"] == 6


def test_payment_deferral_maturity_boundary():
    res = _deferral(loan_maturity_date=date(2028, 6, 1))
    assert res.details["months_until_maturity"] == 36
    assert res.result["not_within_36_months_of_maturity"] is False


def test_payment_deferral_failed_trial_is_advisory():
    res = _deferral(
        prior_modification_history=[{"effective_date": "2025-01-01", "type": "FlexMod", "trial_period_failed": True}]
    )
    assert res.result["overall_eligible"] is True
    assert res.details["recent_failed_trial_periods"] == 1
    assert any("trial period" in w for w in res.warnings)


def test_payment_deferral_validation():
    with pytest.raises(CalculationError, match="Loan maturity date must be after"):
        _deferral(loan_maturity_date=date(2019, 1, 1))
    with pytest.raises(CalculationError) as exc:
        _deferral(prior_deferral_history=[{"effective_date": "2021-01-01", "months_deferred": "x"}])
    assert exc.value.field.startswith("prior_deferral_history[0]")
    with pytest.raises(CalculationError, match="Months deferred must be greater than zero"):
        _deferral(prior_deferral_history=[{"effective_date": "2021-01-01", "months_deferred": 0}])


def test_ltv_requires_paydown():
    res = calculate_property_ltv_and_paydown(200000, 250000)
    assert res.result["ltv_before"] == Decimal("80.00")
    assert res.result["ltv_after"] == Decimal("80.00")
    assert res.result["requires_paydown"] is True
    assert res.result["required_paydown_amount"] == Decimal("50000.00")
    assert res.result["meets_target_ltv"] is False
    assert any("$50,000.00" in w for w in res.warnings)


def test_ltv_meets_target():
    res = calculate_property_ltv_and_paydown(100000, 250000, 240000)
    assert res.result["requires_paydown"] is False
    assert res.result["required_paydown_amount"] == 0
    assert res.result["meets_target_ltv"] is True
    assert res.warnings == []


def test_ltv_sub_cent_excess_still_requires_paydown():
    res = calculate_property_ltv_and_paydown("60000.004", 100000)
    assert res.result["meets_target_ltv"] is False
    assert res.result["requires_paydown"] is True
    assert res.result["required_paydown_amount"] == Decimal("0.00")


def test_ltv_target_validation():
    with pytest.raises(CalculationError, match="Target LTV must be greater than zero"):
        calculate_property_ltv_and_paydown(100000, 250000, target_ltv=0)
    with pytest.raises(CalculationError, match="Target LTV must be between 0 and 1"):
        calculate_property_ltv_and_paydown(100000, 250000, target_ltv=1.2)


def test_relocation_assistance_eligible():
    res = calculate_relocation_assistance_eligibility(True, False, False)
    assert res.result["eligible"] is True
    assert res.result["amount"] == Decimal("7500.00")
    assert res.result["ineligibility_reason"] is None
    assert calculate_relocation_assistance_eligibility(True, False, True, False).result["eligible"] is True


def test_relocation_assistance_first_failing_reason():
    res = calculate_relocation_assistance_eligibility(False, True, True, True)
    assert res.result["ineligibility_reason"] == "Property must be borrower's principal residence"
    res = calculate_relocation_assistance_eligibility(True, True, True, True)
    assert "cash contribution" in res.result["ineligibility_reason"]
    res = calculate_relocation_assistance_eligibility(True, False, True, True)
    assert "PCS" in res.result["ineligibility_reason"]
    assert res.result["amount"] == 0


def test_relocation_assistance_requires_flags():
    with pytest.raises(CalculationError, match="must be true or false"):
        calculate_relocation_assistance_eligibility("yes", False, False)


def test_short_sale_proceeds_and_deficiency():
    res = calculate_short_sale_net_proceeds_and_deficiency(300000, SELLING_COSTS, 320000, 5000, 2000)
    assert res.result["total_selling_costs"] == Decimal("29000.00")
    assert res.result["net_proceeds"] == Decimal("271000.00")
    assert res.result["total_amount_owed"] == Decimal("327000.00")
    assert res.result["deficiency_amount"] == Decimal("56000.00")
    assert res.result["recovery_percentage"] == Decimal("82.87")
    assert any("deficiency" in w for w in res.warnings)


def test_short_sale_recovery_can_exceed_hundred():
    res = calculate_short_sale_net_proceeds_and_deficiency(400000, {}, 300000)
    assert res.result["deficiency_amount"] == 0
    assert res.result["recovery_percentage"] == Decimal("133.33")
    assert res.warnings == []


def test_short_sale_validation():
    with pytest.raises(CalculationError, match="Total amount owed must be greater than zero"):
        calculate_short_sale_net_proceeds_and_deficiency(300000, {}, 0)
    with pytest.raises(CalculationError) as exc:
        calculate_short_sale_net_proceeds_and_deficiency(300000, {"repair_costs": -5}, 1000)
    assert exc.value.field == "selling_costs.repair_costs"


def test_affordability_flags_each_target():
    res = calculate_affordability_for_modification(6000, 2100, 500)
    assert res.result["housing_dti"] == Decimal("35.00")
    assert res.result["total_dti"] == Decimal("43.33")
    assert res.result["recommended_max_piti"] == Decimal("1860.00")
    assert res.result["recommended_max_total_payments"] == Decimal("2580.00")
    assert "Housing DTI 35.0% exceeds target 31%" in res.warnings
    assert "Total DTI 43.3% exceeds target 43%" in res.warnings


def test_affordability_within_targets():
    res = calculate_affordability_for_modification(6000, 1800)
    assert res.result["is_affordable_housing"] is True
    assert res.result["is_affordable_total"] is True
    assert res.warnings == []


def test_envelope_as_dict_is_json_ready():
    data = calculate_repayment_plan_parameters(2000, 15000, 12).as_dict()
    assert data["calculation_type"] == "repayment_plan_parameters"
    assert data["result"]["proposed_payment"] == 3250
    assert isinstance(data["result"]["proposed_payment"], int)
    assert data["details"]["proposed_monthly_repayment"] == 1250
