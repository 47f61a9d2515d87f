"""Static catalog of the available calculators.

Names are the public identifiers used by the HTTP layer and downstream report
bindings; renaming one is a breaking change.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List

from lossmit import calculators as calc
from lossmit.models import CalculationResult


@dataclass(frozen=True)
class CalculatorInfo:
    name: str
    description: str
    guideline_reference: str
    calculation_type: str
    func: Callable[..., CalculationResult]

    def as_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "description": self.description,
            "guideline_reference": self.guideline_reference,
        }


CALCULATORS: List[CalculatorInfo] = [
    CalculatorInfo(
        "calculate_housing_expense_to_income_ratio",
        "Calculates housing expense-to-income ratio (front-end DTI)",
        "Line 120: Short sale cash contribution evaluation",
        "housing_expense_to_income_ratio",
        calc.calculate_housing_expense_to_income_ratio,
    ),
    CalculatorInfo(
        "calculate_total_debt_to_income_ratio",
        "Calculates total debt-to-income ratio (back-end DTI)",
        "General affordability assessment",
        "total_debt_to_income_ratio",
        calc.calculate_total_debt_to_income_ratio,
    ),
    CalculatorInfo(
        "calculate_non_taxable_income_gross_up",
        "Adjusts non-taxable income by adding 25% gross-up",
        "Lines 10-11: Non-taxable income adjustment",
        "non_taxable_income_gross_up",
        calc.calculate_non_taxable_income_gross_up,
    ),
    CalculatorInfo(
        "calculate_non_retirement_cash_reserves",
        "Sums liquid assets excluding retirement funds",
        "Lines 93, 106, 120, 130: $10K and $25K thresholds",
        "non_retirement_cash_reserves",
        calc.calculate_non_retirement_cash_reserves,
    ),
    CalculatorInfo(
        "calculate_cash_contribution",
        "Determines cash contribution for short sales/DILs",
        "Line 120: Cash contribution formula",
        "cash_contribution",
        calc.calculate_cash_contribution,
    ),
    CalculatorInfo(
        "calculate_escrow_shortage_repayment",
        "Calculates monthly escrow shortage repayment over 60 months",
        "Lines 53, 74: Escrow shortage repayment",
        "escrow_shortage_repayment",
        calc.calculate_escrow_shortage_repayment,
    ),
    CalculatorInfo(
        "calculate_trial_period_payment",
        "Estimates total PITI for trial modification period",
        "Line 89: Trial Period Plan requirement",
        "trial_period_payment",
        calc.calculate_trial_period_payment,
    ),
    CalculatorInfo(
        "calculate_repayment_plan_parameters",
        "Validates repayment plan payments and terms",
        "Lines 41, 45, 47: 150% limit and 36-month limit",
        "repayment_plan_parameters",
        calc.calculate_repayment_plan_parameters,
    ),
    CalculatorInfo(
        "calculate_payment_deferral_eligibility",
        "Evaluates payment deferral eligibility criteria",
        "Lines 58-65: Payment deferral requirements",
        "payment_deferral_eligibility",
        calc.calculate_payment_deferral_eligibility,
    ),
    CalculatorInfo(
        "calculate_property_ltv_and_paydown",
        "Calculates LTV and required paydown for 60% target",
        "Lines 158, 161-167: Property-related LTV requirements",
        "property_ltv_and_paydown",
        calc.calculate_property_ltv_and_paydown,
    ),
    CalculatorInfo(
        "calculate_relocation_assistance_eligibility",
        "Determines $7,500 relocation assistance eligibility",
        "Lines 121, 149: Relocation assistance conditions",
        "relocation_assistance_eligibility",
        calc.calculate_relocation_assistance_eligibility,
    ),
    CalculatorInfo(
        "calculate_short_sale_net_proceeds_and_deficiency",
        "Estimates net proceeds and deficiency for short sales",
        "Implicit for short sale evaluation",
        "short_sale_net_proceeds_and_deficiency",
        calc.calculate_short_sale_net_proceeds_and_deficiency,
    ),
    CalculatorInfo(
        "calculate_affordability_for_modification",
        "Assesses affordability of proposed modified payments",
        "Lines 85-100: Flex Modification goals",
        "affordability_for_modification",
        calc.calculate_affordability_for_modification,
    ),
]

_BY_NAME = {c.name: c for c in CALCULATORS}


def get_available_calculators() -> List[Dict[str, str]]:
    """Return ``{name, description, guideline_reference}`` for every calculator."""

    return [c.as_dict() for c in CALCULATORS]


def get_calculator(name: str) -> CalculatorInfo:
    try:
        return _BY_NAME[name]
    except KeyError:
        raise KeyError(f"Unknown calculator: {name}") from None
