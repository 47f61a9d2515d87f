"""Loss-mitigation calculators.

Each function validates its inputs, computes one guideline test and returns a
:class:`~lossmit.models.CalculationResult`.  The functions are pure: no I/O,
no clock, no shared state, so they are safe to call concurrently and give
identical envelopes for identical inputs.

Amounts are dollars and may be passed as ``int``, ``float``, ``str`` or
``Decimal``.  Ratios are fractions (``0.40`` for 40%).
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from core.formatter import format_result
from core.rules import ContributionFacts, evaluate_contribution_rules
from core.utils import (
    ZERO,
    as_percentage,
    format_money,
    format_percent,
    months_before,
    months_between,
    nz,
    round_money,
    round_ratio,
)
from core.validation import (
    CalculationError,
    require_choice,
    require_date,
    require_flag,
    require_fraction,
    require_non_negative,
    require_positive,
    require_whole_number,
)
from lossmit import presets
from lossmit.models import (
    CalculationResult,
    DeferralHistoryEntry,
    ModificationHistoryEntry,
    SellingCosts,
)

logger = logging.getLogger(__name__)


def _loan_type(loan_type) -> Optional[str]:
    if loan_type is None:
        return None
    return require_choice(loan_type, "loan_type", "Loan type", presets.LOAN_TYPES)


def _history(entries, model, field: str, label: str) -> list:
    """Coerce caller-supplied history rows (dicts or models) into ``model``."""

    out = []
    for i, entry in enumerate(entries or []):
        if isinstance(entry, model):
            out.append(entry)
            continue
        try:
            out.append(model.model_validate(entry))
        except ValidationError as exc:
            err = exc.errors()[0]
            loc = ".".join(str(p) for p in err["loc"])
            raise CalculationError(f"{field}[{i}].{loc}", f"{label} entry {i}: {err['msg']}") from None
    return out


# ---------------------------------------------------------------------------
# Ratio tests
# ---------------------------------------------------------------------------


def calculate_housing_expense_to_income_ratio(
    monthly_piti, gross_monthly_income, loan_type=None
) -> CalculationResult:
    """Housing expense-to-income ratio (front-end DTI): PITI / gross income.

    A ratio at or below 40% can make a short sale or deed-in-lieu borrower
    owe a cash contribution, so that boundary is flagged inclusively.
    """

    income = require_positive(gross_monthly_income, "gross_monthly_income", "Gross monthly income")
    piti = require_non_negative(monthly_piti, "monthly_piti", "Monthly PITI")
    loan_type = _loan_type(loan_type)

    ratio = piti / income
    warnings = []
    if ratio <= presets.HOUSING_RATIO_CONTRIBUTION_LIMIT:
        warnings.append(
            "Housing expense ratio ≤ 40% may trigger cash contribution requirement for short sales"
        )
    details = {
        "monthly_piti": round_money(piti),
        "gross_monthly_income": round_money(income),
        "ratio_percentage": as_percentage(ratio),
    }
    if loan_type:
        details["loan_type"] = loan_type
    logger.debug("housing ratio %s for PITI %s / income %s", ratio, piti, income)
    return format_result("housing_expense_to_income_ratio", round_ratio(ratio), details, warnings)


def calculate_total_debt_to_income_ratio(
    monthly_piti, gross_monthly_income, other_monthly_debts=None, loan_type=None
) -> CalculationResult:
    """Total (back-end) DTI: housing payment plus recurring debts over income."""

    income = require_positive(gross_monthly_income, "gross_monthly_income", "Gross monthly income")
    piti = require_non_negative(monthly_piti, "monthly_piti", "Monthly PITI")
    other = require_non_negative(nz(other_monthly_debts), "other_monthly_debts", "Other monthly debts")
    loan_type = _loan_type(loan_type)

    total = piti + other
    ratio = total / income
    details = {
        "monthly_piti": round_money(piti),
        "other_monthly_debts": round_money(other),
        "total_monthly_debts": round_money(total),
        "gross_monthly_income": round_money(income),
        "ratio_percentage": as_percentage(ratio),
    }
    if loan_type:
        details["loan_type"] = loan_type
    return format_result("total_debt_to_income_ratio", round_ratio(ratio), details)


def calculate_non_taxable_income_gross_up(
    non_taxable_income, gross_up_percentage=None
) -> CalculationResult:
    """Gross up non-taxable income (25% unless a higher documented rate applies)."""

    income = require_non_negative(non_taxable_income, "non_taxable_income", "Non-taxable income")
    pct = require_fraction(
        nz(gross_up_percentage, presets.DEFAULT_GROSS_UP_PCT),
        "gross_up_percentage",
        "Gross-up percentage",
    )
    gross_up = income * pct
    adjusted = round_money(income + gross_up)
    details = {
        "original_non_taxable_income": round_money(income),
        "gross_up_percentage": as_percentage(pct),
        "gross_up_amount": round_money(gross_up),
        "adjusted_gross_income": adjusted,
    }
    return format_result("non_taxable_income_gross_up", adjusted, details)


# ---------------------------------------------------------------------------
# Assets and contribution
# ---------------------------------------------------------------------------

RESERVE_FIELDS = (
    ("checking_account_balance", "Checking account balance"),
    ("savings_account_balance", "Savings account balance"),
    ("money_market_balance", "Money market balance"),
    ("stocks_bonds_value", "Stocks and bonds value"),
    ("other_liquid_assets", "Other liquid assets"),
)


def calculate_non_retirement_cash_reserves(
    checking_account_balance,
    savings_account_balance,
    money_market_balance,
    stocks_bonds_value,
    other_liquid_assets,
) -> CalculationResult:
    """Sum liquid, non-retirement assets and flag the $10K/$25K thresholds.

    The threshold notes are not mutually exclusive: a $30,000 balance crosses
    both the contribution and the imminent-default thresholds.
    """

    raw = (
        checking_account_balance,
        savings_account_balance,
        money_market_balance,
        stocks_bonds_value,
        other_liquid_assets,
    )
    balances = {
        field: require_non_negative(value, field, label)
        for (field, label), value in zip(RESERVE_FIELDS, raw)
    }
    total = sum(balances.values(), ZERO)

    warnings = []
    if total >= presets.RESERVES_CONTRIBUTION_THRESHOLD:
        warnings.append(
            "Cash reserves ≥ $10,000: May trigger cash contribution requirement for short sales/DILs"
        )
    if total >= presets.RESERVES_IMMINENT_DEFAULT_THRESHOLD:
        warnings.append("Cash reserves ≥ $25,000: May affect imminent default determination")
    else:
        warnings.append(
            "Cash reserves < $25,000: Supports imminent default determination if other criteria met"
        )

    details = {field: round_money(v) for field, v in balances.items()}
    details["total_reserves"] = round_money(total)
    return format_result("non_retirement_cash_reserves", round_money(total), details, warnings)


def calculate_cash_contribution(
    non_retirement_cash_reserves,
    contractual_monthly_piti,
    estimated_deficiency,
    housing_expense_to_income_ratio=None,
    is_current_or_less_than_60_days_delinquent: bool = False,
    is_servicemember_with_pcs: bool = False,
    loan_type=None,
) -> CalculationResult:
    """Cash contribution owed toward a short sale or deed-in-lieu deficiency.

    The contribution is required when reserves exceed $10,000 or the housing
    ratio is 40% or less.  The amount is the greater of 20% of reserves or four
    months of PITI, never more than the deficiency.  Waivers (under $500, PCS
    servicemember) zero the amount but leave ``contribution_required`` intact.
    See :mod:`core.rules` for the rule table.
    """

    reserves = require_non_negative(
        non_retirement_cash_reserves, "non_retirement_cash_reserves", "Non-retirement cash reserves"
    )
    piti = require_non_negative(contractual_monthly_piti, "contractual_monthly_piti", "Contractual monthly PITI")
    deficiency = require_non_negative(estimated_deficiency, "estimated_deficiency", "Estimated deficiency")
    ratio = None
    if housing_expense_to_income_ratio is not None:
        ratio = require_non_negative(
            housing_expense_to_income_ratio,
            "housing_expense_to_income_ratio",
            "Housing expense-to-income ratio",
        )
    current = require_flag(
        is_current_or_less_than_60_days_delinquent,
        "is_current_or_less_than_60_days_delinquent",
        "Current or less than 60 days delinquent",
    )
    pcs = require_flag(is_servicemember_with_pcs, "is_servicemember_with_pcs", "Servicemember with PCS")
    loan_type = _loan_type(loan_type)

    facts = ContributionFacts(
        reserves=reserves,
        monthly_piti=piti,
        deficiency=deficiency,
        housing_ratio=ratio,
        is_servicemember_with_pcs=pcs,
    )
    outcome, fired = evaluate_contribution_rules(facts)
    codes = [r.code for r in fired]

    result = {
        "contribution_required": outcome.required,
        "contribution_amount": round_money(outcome.amount),
        "contribution_waived": outcome.waived,
        "waiver_reason": outcome.waiver_reason,
    }
    details = {
        "non_retirement_cash_reserves": round_money(reserves),
        "contractual_monthly_piti": round_money(piti),
        "estimated_deficiency": round_money(deficiency),
        "housing_expense_to_income_ratio": ratio,
        "is_current_or_less_than_60_days_delinquent": current,
        "twenty_percent_reserves": round_money(facts.twenty_percent_reserves),
        "four_times_monthly_piti": round_money(facts.piti_multiple),
        "triggered_by_cash_reserves": "RESERVES_OVER_10K" in codes,
        "triggered_by_housing_ratio": "HOUSING_RATIO_40_OR_LESS" in codes,
        "rules_fired": codes,
    }
    if loan_type:
        details["loan_type"] = loan_type
    warnings = [r.message for r in fired if r.severity != "info"]
    logger.debug("cash contribution rules fired: %s", codes)
    return format_result("cash_contribution", result, details, warnings)


# ---------------------------------------------------------------------------
# Servicing payments
# ---------------------------------------------------------------------------


def calculate_escrow_shortage_repayment(
    escrow_shortage_amount, repayment_term_months=None
) -> CalculationResult:
    """Monthly payment that cures an escrow shortage over ``repayment_term_months`` (60)."""

    shortage = require_non_negative(escrow_shortage_amount, "escrow_shortage_amount", "Escrow shortage amount")
    if repayment_term_months is None:
        repayment_term_months = presets.DEFAULT_ESCROW_TERM_MONTHS
    term = require_whole_number(repayment_term_months, "repayment_term_months", "Repayment term", minimum=1)

    monthly = round_money(shortage / term)
    details = {
        "escrow_shortage_amount": round_money(shortage),
        "repayment_term_months": term,
        "monthly_repayment_amount": monthly,
    }
    return format_result("escrow_shortage_repayment", monthly, details)


def calculate_trial_period_payment(
    principal_and_interest, monthly_property_taxes, monthly_insurance, other_escrow_amounts=None
) -> CalculationResult:
    pi = require_non_negative(principal_and_interest, "principal_and_interest", "Principal and interest")
    taxes = require_non_negative(monthly_property_taxes, "monthly_property_taxes", "Monthly property taxes")
    insurance = require_non_negative(monthly_insurance, "monthly_insurance", "Monthly insurance")
    other = require_non_negative(nz(other_escrow_amounts), "other_escrow_amounts", "Other escrow amounts")

    total = round_money(pi + taxes + insurance + other)
    details = {
        "principal_and_interest": round_money(pi),
        "monthly_property_taxes": round_money(taxes),
        "monthly_insurance": round_money(insurance),
        "other_escrow_amounts": round_money(other),
        "total_trial_payment": total,
    }
    return format_result("trial_period_payment", total, details)


def calculate_repayment_plan_parameters(
    full_monthly_piti, total_delinquency_amount, proposed_repayment_term_months
) -> CalculationResult:
    """Check a repayment plan against the 150% payment and 36-month limits.

    Both limits are reported independently so a caller can tell which one
    failed.  Terms over 12 months stay valid but need prior written approval.
    """

    piti = require_positive(full_monthly_piti, "full_monthly_piti", "Full monthly PITI")
    delinquency = require_non_negative(
        total_delinquency_amount, "total_delinquency_amount", "Total delinquency amount"
    )
    term = require_whole_number(
        proposed_repayment_term_months, "proposed_repayment_term_months", "Proposed repayment term", minimum=1
    )

    monthly_repayment = round_money(delinquency / term)
    proposed = round_money(piti + delinquency / term)
    max_allowable = round_money(piti * presets.REPAYMENT_PAYMENT_LIMIT_PCT)
    exceeds_payment = proposed > max_allowable
    exceeds_term = term > presets.REPAYMENT_MAX_TERM_MONTHS

    warnings = []
    if exceeds_payment:
        warnings.append(
            f"Proposed payment {format_money(proposed)} exceeds 150% limit of {format_money(max_allowable)}"
        )
    if exceeds_term:
        warnings.append(
            f"Proposed term {term} months exceeds 36-month combined forbearance/repayment limit"
        )
    if term > presets.REPAYMENT_APPROVAL_TERM_MONTHS:
        warnings.append(
            "Repayment plan term exceeding 12 months requires prior written approval from Fannie Mae"
        )

    result = {
        "is_valid_plan": not exceeds_payment and not exceeds_term,
        "max_allowable_payment": max_allowable,
        "proposed_payment": proposed,
        "exceeds_payment_limit": exceeds_payment,
        "exceeds_term_limit": exceeds_term,
    }
    details = {
        "full_monthly_piti": round_money(piti),
        "total_delinquency_amount": round_money(delinquency),
        "proposed_repayment_term_months": term,
        "proposed_monthly_repayment": monthly_repayment,
    }
    return format_result("repayment_plan_parameters", result, details, warnings)


# ---------------------------------------------------------------------------
# Payment deferral
# ---------------------------------------------------------------------------


def calculate_payment_deferral_eligibility(
    loan_origination_date,
    evaluation_date,
    loan_maturity_date,
    current_delinquency_months,
    is_disaster_related: bool = False,
    prior_deferral_history: Optional[Iterable[Union[DeferralHistoryEntry, Mapping]]] = None,
    prior_modification_history: Optional[Iterable[Union[ModificationHistoryEntry, Mapping]]] = None,
) -> CalculationResult:
    """Evaluate the five payment deferral criteria.

    1. loan at least 12 whole months old;
    2. delinquency of 2-6 months (1-12 when disaster related);
    3. cumulative non-disaster months deferred no more than 12;
    4. no non-disaster deferral effective in the 12 months before evaluation;
    5. more than 36 whole months left to maturity.

    All five are evaluated even after one fails so every problem is reported
    in one pass.  ``overall_eligible`` is their conjunction.  A failed Flex
    Modification trial period inside the look-back window is reported as an
    advisory warning only.
    """

    originated = require_date(loan_origination_date, "loan_origination_date", "Loan origination date")
    evaluated = require_date(evaluation_date, "evaluation_date", "Evaluation date")
    matures = require_date(loan_maturity_date, "loan_maturity_date", "Loan maturity date")
    if matures <= originated:
        raise CalculationError("loan_maturity_date", "Loan maturity date must be after the origination date")
    delinquency = require_whole_number(
        current_delinquency_months, "current_delinquency_months", "Current delinquency months"
    )
    disaster = require_flag(is_disaster_related, "is_disaster_related", "Disaster related")
    deferrals: List[DeferralHistoryEntry] = _history(
        prior_deferral_history, DeferralHistoryEntry, "prior_deferral_history", "Prior deferral"
    )
    modifications: List[ModificationHistoryEntry] = _history(
        prior_modification_history, ModificationHistoryEntry, "prior_modification_history", "Prior modification"
    )
    for i, entry in enumerate(deferrals):
        require_whole_number(
            entry.months_deferred, f"prior_deferral_history[{i}].months_deferred", "Months deferred", minimum=1
        )

    months_since_origination = months_between(originated, evaluated)
    loan_age_ok = months_since_origination >= presets.DEFERRAL_MIN_LOAN_AGE_MONTHS

    low, high = (
        presets.DEFERRAL_DISASTER_DELINQUENCY_RANGE if disaster else presets.DEFERRAL_DELINQUENCY_RANGE
    )
    delinquency_ok = low <= delinquency <= high

    non_disaster = [d for d in deferrals if not d.is_disaster_related]
    total_deferred = sum(d.months_deferred for d in non_disaster)
    cumulative_ok = total_deferred <= presets.DEFERRAL_CUMULATIVE_CAP_MONTHS

    window_start = months_before(evaluated, presets.DEFERRAL_LOOKBACK_MONTHS)
    recent = [d for d in non_disaster if d.effective_date >= window_start]
    no_recent_ok = not recent

    months_until_maturity = months_between(evaluated, matures)
    maturity_ok = months_until_maturity > presets.DEFERRAL_MATURITY_BUFFER_MONTHS

    warnings = []
    if not loan_age_ok:
        warnings.append(
            f"Loan must be originated ≥12 months prior (current: {months_since_origination} months)"
        )
    if not delinquency_ok:
        warnings.append(f"Delinquency must be {low}-{high} months (current: {delinquency} months)")
    if not cumulative_ok:
        warnings.append(f"Cumulative non-disaster deferrals exceed 12 months (current: {total_deferred})")
    if not no_recent_ok:
        warnings.append("Prior non-disaster deferral within last 12 months")
    if not maturity_ok:
        warnings.append(f"Loan within 36 months of maturity ({months_until_maturity} months remaining)")

    failed_trials = [m for m in modifications if m.trial_period_failed and m.effective_date >= window_start]
    if failed_trials:
        warnings.append("Failed modification trial period within last 12 months; confirm deferral is appropriate")

    result = {
        "loan_originated_at_least_12_months_prior": loan_age_ok,
        "delinquency_in_range": delinquency_ok,
        "cumulative_deferrals_under_12_months": cumulative_ok,
        "no_prior_deferral_within_12_months": no_recent_ok,
        "not_within_36_months_of_maturity": maturity_ok,
        "overall_eligible": all((loan_age_ok, delinquency_ok, cumulative_ok, no_recent_ok, maturity_ok)),
    }
    details = {
        "months_since_origination": months_since_origination,
        "current_delinquency_months": delinquency,
        "total_non_disaster_months_deferred": total_deferred,
        "months_until_maturity": months_until_maturity,
        "is_disaster_related": disaster,
        "recent_failed_trial_periods": len(failed_trials),
    }
    return format_result("payment_deferral_eligibility", result, details, warnings)


# ---------------------------------------------------------------------------
# Property, disposition and modification
# ---------------------------------------------------------------------------


def calculate_property_ltv_and_paydown(
    current_loan_balance, property_value_before, property_value_after=None, target_ltv=None
) -> CalculationResult:
    """LTV before and after a property action and the paydown to reach ``target_ltv``."""

    balance = require_non_negative(current_loan_balance, "current_loan_balance", "Current loan balance")
    before = require_positive(property_value_before, "property_value_before", "Property value before")
    after = before
    if property_value_after is not None:
        after = require_positive(property_value_after, "property_value_after", "Property value after")
    target = require_fraction(nz(target_ltv, presets.DEFAULT_TARGET_LTV), "target_ltv", "Target LTV")
    if target == 0:
        raise CalculationError("target_ltv", "Target LTV must be greater than zero")

    ltv_after = balance / after
    target_balance = after * target
    excess = max(ZERO, balance - target_balance)
    paydown = round_money(excess)

    warnings = []
    if excess > 0:
        warnings.append(
            f"LTV after {as_percentage(ltv_after)}% exceeds target {format_percent(target, None)}%: "
            f"paydown of {format_money(paydown)} required"
        )
    result = {
        "ltv_before": as_percentage(balance / before),
        "ltv_after": as_percentage(ltv_after),
        "requires_paydown": excess > 0,
        "required_paydown_amount": paydown,
        "meets_target_ltv": ltv_after <= target,
    }
    details = {
        "current_loan_balance": round_money(balance),
        "property_value_before": round_money(before),
        "property_value_after": round_money(after),
        "target_ltv": as_percentage(target),
        "target_loan_balance": round_money(target_balance),
    }
    return format_result("property_ltv_and_paydown", result, details, warnings)


def calculate_relocation_assistance_eligibility(
    is_principal_residence: bool,
    is_cash_contribution_required: bool,
    is_servicemember_with_pcs: bool,
    receiving_dla_or_government_aid: bool = False,
) -> CalculationResult:
    """$7,500 relocation assistance; the first failing condition is reported."""

    residence = require_flag(is_principal_residence, "is_principal_residence", "Principal residence")
    contribution = require_flag(
        is_cash_contribution_required, "is_cash_contribution_required", "Cash contribution required"
    )
    pcs = require_flag(is_servicemember_with_pcs, "is_servicemember_with_pcs", "Servicemember with PCS")
    aid = require_flag(
        receiving_dla_or_government_aid, "receiving_dla_or_government_aid", "Receiving DLA or government aid"
    )

    reason = None
    if not residence:
        reason = "Property must be borrower's principal residence"
    elif contribution:
        reason = "Not eligible when cash contribution is required (even if not made)"
    elif pcs and aid:
        reason = "Servicemember with PCS orders receiving DLA or other government relocation aid"

    eligible = reason is None
    result = {
        "eligible": eligible,
        "amount": round_money(presets.RELOCATION_ASSISTANCE_AMOUNT if eligible else ZERO),
        "ineligibility_reason": reason,
    }
    details = {
        "is_principal_residence": residence,
        "is_cash_contribution_required": contribution,
        "is_servicemember_with_pcs": pcs,
        "receiving_dla_or_government_aid": aid,
    }
    return format_result("relocation_assistance_eligibility", result, details)


SELLING_COST_LABELS = {
    "real_estate_commission": "Real estate commission",
    "closing_costs": "Closing costs",
    "repair_costs": "Repair costs",
    "subordinate_lien_payoffs": "Subordinate lien payoffs",
    "other_costs": "Other costs",
}


def _selling_costs(selling_costs) -> SellingCosts:
    if isinstance(selling_costs, SellingCosts):
        costs = selling_costs
    else:
        try:
            costs = SellingCosts.model_validate(selling_costs or {})
        except ValidationError as exc:
            err = exc.errors()[0]
            loc = ".".join(str(p) for p in err["loc"])
            raise CalculationError(f"selling_costs.{loc}", f"Selling costs: {err['msg']}") from None
    for field, label in SELLING_COST_LABELS.items():
        require_non_negative(getattr(costs, field), f"selling_costs.{field}", label)
    return costs


def calculate_short_sale_net_proceeds_and_deficiency(
    estimated_sale_price,
    selling_costs,
    unpaid_principal_balance,
    accrued_interest=None,
    other_advances=None,
) -> CalculationResult:
    """Net proceeds of a short sale and the deficiency left on the loan.

    ``recovery_percentage`` is net proceeds over total owed, as a percentage;
    it exceeds 100 when the sale covers the debt.
    """

    price = require_non_negative(estimated_sale_price, "estimated_sale_price", "Estimated sale price")
    costs = _selling_costs(selling_costs)
    upb = require_non_negative(unpaid_principal_balance, "unpaid_principal_balance", "Unpaid principal balance")
    interest = require_non_negative(nz(accrued_interest), "accrued_interest", "Accrued interest")
    advances = require_non_negative(nz(other_advances), "other_advances", "Other advances")

    total_costs = sum((getattr(costs, f) for f in SELLING_COST_LABELS), ZERO)
    net = price - total_costs
    owed = upb + interest + advances
    if owed <= 0:
        raise CalculationError("unpaid_principal_balance", "Total amount owed must be greater than zero")
    deficiency = max(ZERO, owed - net)

    warnings = []
    if net < 0:
        warnings.append("Selling costs exceed the estimated sale price")
    if deficiency > 0:
        warnings.append(
            f"Estimated deficiency of {format_money(deficiency)}; evaluate cash contribution"
        )

    result = {
        "gross_proceeds": round_money(price),
        "total_selling_costs": round_money(total_costs),
        "net_proceeds": round_money(net),
        "total_amount_owed": round_money(owed),
        "deficiency_amount": round_money(deficiency),
        "recovery_percentage": as_percentage(net / owed),
    }
    details = {
        "estimated_sale_price": round_money(price),
        "selling_costs": {f: round_money(getattr(costs, f)) for f in SELLING_COST_LABELS},
        "unpaid_principal_balance": round_money(upb),
        "accrued_interest": round_money(interest),
        "other_advances": round_money(advances),
    }
    return format_result("short_sale_net_proceeds_and_deficiency", result, details, warnings)


def calculate_affordability_for_modification(
    gross_monthly_income,
    proposed_modified_piti,
    other_monthly_debts=None,
    target_housing_dti=None,
    target_total_dti=None,
) -> CalculationResult:
    """Compare a proposed modified payment with the housing/total DTI targets (31%/43%)."""

    income = require_positive(gross_monthly_income, "gross_monthly_income", "Gross monthly income")
    piti = require_non_negative(proposed_modified_piti, "proposed_modified_piti", "Proposed modified PITI")
    other = require_non_negative(nz(other_monthly_debts), "other_monthly_debts", "Other monthly debts")
    target_housing = require_fraction(
        nz(target_housing_dti, presets.MOD_TARGET_HOUSING_DTI), "target_housing_dti", "Target housing DTI"
    )
    target_total = require_fraction(
        nz(target_total_dti, presets.MOD_TARGET_TOTAL_DTI), "target_total_dti", "Target total DTI"
    )

    housing_dti = piti / income
    total_dti = (piti + other) / income
    housing_ok = housing_dti <= target_housing
    total_ok = total_dti <= target_total

    warnings = []
    if not housing_ok:
        warnings.append(
            f"Housing DTI {format_percent(housing_dti)}% exceeds target {format_percent(target_housing, None)}%"
        )
    if not total_ok:
        warnings.append(
            f"Total DTI {format_percent(total_dti)}% exceeds target {format_percent(target_total, None)}%"
        )

    result = {
        "housing_dti": as_percentage(housing_dti),
        "total_dti": as_percentage(total_dti),
        "is_affordable_housing": housing_ok,
        "is_affordable_total": total_ok,
        "recommended_max_piti": round_money(income * target_housing),
        "recommended_max_total_payments": round_money(income * target_total),
    }
    details = {
        "gross_monthly_income": round_money(income),
        "proposed_modified_piti": round_money(piti),
        "other_monthly_debts": round_money(other),
        "target_housing_dti": as_percentage(target_housing),
        "target_total_dti": as_percentage(target_total),
    }
    return format_result("affordability_for_modification", result, details, warnings)
