"""Composite workout-option evaluation.

``evaluate_workout_option`` merges document-derived borrower facts with caller
overrides, runs the calculators relevant to one workout option in dependency
order and folds their envelopes into a single ``workout_option_evaluation``
envelope.  Calculators whose inputs are missing are listed under
``details["skipped"]``; invalid inputs still raise.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

from pydantic import ValidationError

from core.audit import AuditLog
from core.document_mapping import build_document_checklist, map_document_fields
from core.formatter import format_result
from core.utils import nz, to_decimal
from core.validation import CalculationError
from lossmit import calculators as calc
from lossmit.models import BorrowerRecord, CalculationResult, WorkoutOption

logger = logging.getLogger(__name__)

GROSS_UP = "non_taxable_income_gross_up"
HOUSING_DTI = "housing_expense_to_income_ratio"
TOTAL_DTI = "total_debt_to_income_ratio"
RESERVES = "non_retirement_cash_reserves"
PROCEEDS = "short_sale_net_proceeds_and_deficiency"
CONTRIBUTION = "cash_contribution"
RELOCATION = "relocation_assistance_eligibility"
AFFORDABILITY = "affordability_for_modification"
ESCROW = "escrow_shortage_repayment"
TRIAL = "trial_period_payment"
LTV = "property_ltv_and_paydown"
DEFERRAL = "payment_deferral_eligibility"
REPAYMENT = "repayment_plan_parameters"


class Skip(NamedTuple):
    reason: str


class Context(NamedTuple):
    option: WorkoutOption
    record: BorrowerRecord
    done: Dict[str, CalculationResult]


Step = Callable[[Context], Union[CalculationResult, Skip]]


def _missing(*pairs: Tuple[str, Any]) -> Optional[Skip]:
    names = [name for name, value in pairs if value is None]
    if names:
        return Skip("missing inputs: " + ", ".join(names))
    return None


def _qualifying_income(ctx: Context):
    """Gross monthly income plus grossed-up non-taxable income, if either is known."""

    gross_up = ctx.done.get(GROSS_UP)
    if ctx.record.gross_monthly_income is None and gross_up is None:
        return None
    income = nz(ctx.record.gross_monthly_income)
    if gross_up is not None:
        income = income + gross_up.result
    return income


def _gross_up(ctx):
    r = ctx.record
    return _missing(("non_taxable_income", r.non_taxable_income)) or calc.calculate_non_taxable_income_gross_up(
        r.non_taxable_income, r.gross_up_percentage
    )


def _housing_dti(ctx):
    r = ctx.record
    income = _qualifying_income(ctx)
    return _missing(
        ("monthly_piti", r.monthly_piti), ("gross_monthly_income", income)
    ) or calc.calculate_housing_expense_to_income_ratio(r.monthly_piti, income, r.loan_type)


def _total_dti(ctx):
    r = ctx.record
    income = _qualifying_income(ctx)
    return _missing(
        ("monthly_piti", r.monthly_piti), ("gross_monthly_income", income)
    ) or calc.calculate_total_debt_to_income_ratio(r.monthly_piti, income, r.other_monthly_debts, r.loan_type)


RESERVE_INPUTS = (
    "checking_account_balance",
    "savings_account_balance",
    "money_market_balance",
    "stocks_bonds_value",
    "other_liquid_assets",
)


def _reserves(ctx):
    values = [getattr(ctx.record, f) for f in RESERVE_INPUTS]
    if all(v is None for v in values):
        return Skip("missing inputs: " + ", ".join(RESERVE_INPUTS))
    # unreported balances count as zero once any balance is known
    return calc.calculate_non_retirement_cash_reserves(*[nz(v) for v in values])


def _proceeds(ctx):
    r = ctx.record
    if ctx.option is WorkoutOption.DEED_IN_LIEU:
        price = ("property_value", r.property_value)
    else:
        price = ("estimated_sale_price", r.estimated_sale_price)
    return _missing(
        price, ("unpaid_principal_balance", r.unpaid_principal_balance)
    ) or calc.calculate_short_sale_net_proceeds_and_deficiency(
        price[1], r.selling_costs, r.unpaid_principal_balance, r.accrued_interest, r.other_advances
    )


def _contribution(ctx):
    r = ctx.record
    reserves = ctx.done.get(RESERVES)
    deficiency = r.estimated_deficiency
    if deficiency is None and PROCEEDS in ctx.done:
        deficiency = ctx.done[PROCEEDS].result["deficiency_amount"]
    skip = _missing(
        (RESERVES, reserves), ("monthly_piti", r.monthly_piti), ("estimated_deficiency", deficiency)
    )
    if skip:
        return skip
    ratio = None
    if HOUSING_DTI in ctx.done:
        # exact quotient; the housing envelope only reports the 4-place ratio
        ratio = to_decimal(r.monthly_piti) / to_decimal(_qualifying_income(ctx))
    return calc.calculate_cash_contribution(
        reserves.result,
        r.monthly_piti,
        deficiency,
        housing_expense_to_income_ratio=ratio,
        is_current_or_less_than_60_days_delinquent=r.is_current_or_less_than_60_days_delinquent,
        is_servicemember_with_pcs=r.is_servicemember_with_pcs,
        loan_type=r.loan_type,
    )


def _relocation(ctx):
    r = ctx.record
    contribution = ctx.done.get(CONTRIBUTION)
    return _missing(
        ("is_principal_residence", r.is_principal_residence), (CONTRIBUTION, contribution)
    ) or calc.calculate_relocation_assistance_eligibility(
        r.is_principal_residence,
        contribution.result["contribution_required"],
        r.is_servicemember_with_pcs,
        r.receiving_dla_or_government_aid,
    )


def _affordability(ctx):
    r = ctx.record
    income = _qualifying_income(ctx)
    return _missing(
        ("gross_monthly_income", income), ("proposed_modified_piti", r.proposed_modified_piti)
    ) or calc.calculate_affordability_for_modification(income, r.proposed_modified_piti, r.other_monthly_debts)


def _escrow(ctx):
    r = ctx.record
    return _missing(("escrow_shortage_amount", r.escrow_shortage_amount)) or calc.calculate_escrow_shortage_repayment(
        r.escrow_shortage_amount, r.escrow_repayment_term_months
    )


def _trial(ctx):
    r = ctx.record
    skip = _missing(
        ("principal_and_interest", r.principal_and_interest),
        ("monthly_property_taxes", r.monthly_property_taxes),
        ("monthly_insurance", r.monthly_insurance),
    )
    if skip:
        return skip
    other = nz(r.other_escrow_amounts)
    if ESCROW in ctx.done:
        other = other + ctx.done[ESCROW].result
    return calc.calculate_trial_period_payment(
        r.principal_and_interest, r.monthly_property_taxes, r.monthly_insurance, other
    )


def _ltv(ctx):
    r = ctx.record
    return _missing(
        ("unpaid_principal_balance", r.unpaid_principal_balance), ("property_value", r.property_value)
    ) or calc.calculate_property_ltv_and_paydown(
        r.unpaid_principal_balance, r.property_value, r.property_value_after, r.target_ltv
    )


def _deferral(ctx):
    r = ctx.record
    return _missing(
        ("loan_origination_date", r.loan_origination_date),
        ("evaluation_date", r.evaluation_date),
        ("loan_maturity_date", r.loan_maturity_date),
        ("current_delinquency_months", r.current_delinquency_months),
    ) or calc.calculate_payment_deferral_eligibility(
        r.loan_origination_date,
        r.evaluation_date,
        r.loan_maturity_date,
        r.current_delinquency_months,
        is_disaster_related=r.is_disaster_related,
        prior_deferral_history=r.prior_deferral_history,
        prior_modification_history=r.prior_modification_history,
    )


def _repayment(ctx):
    r = ctx.record
    return _missing(
        ("monthly_piti", r.monthly_piti),
        ("total_delinquency_amount", r.total_delinquency_amount),
        ("proposed_repayment_term_months", r.proposed_repayment_term_months),
    ) or calc.calculate_repayment_plan_parameters(
        r.monthly_piti, r.total_delinquency_amount, r.proposed_repayment_term_months
    )


INCOME_STEPS: List[Tuple[str, Step]] = [
    (GROSS_UP, _gross_up),
    (HOUSING_DTI, _housing_dti),
    (TOTAL_DTI, _total_dti),
]

DISPOSITION_STEPS: List[Tuple[str, Step]] = INCOME_STEPS + [
    (RESERVES, _reserves),
    (PROCEEDS, _proceeds),
    (CONTRIBUTION, _contribution),
    (RELOCATION, _relocation),
]

# Calculators per option, in dependency order
PLANS: Dict[WorkoutOption, List[Tuple[str, Step]]] = {
    WorkoutOption.SHORT_SALE: DISPOSITION_STEPS,
    WorkoutOption.DEED_IN_LIEU: DISPOSITION_STEPS,
    WorkoutOption.MODIFICATION: INCOME_STEPS
    + [
        (AFFORDABILITY, _affordability),
        (ESCROW, _escrow),
        (TRIAL, _trial),
        (LTV, _ltv),
    ],
    WorkoutOption.PAYMENT_DEFERRAL: INCOME_STEPS
    + [
        (RESERVES, _reserves),
        (DEFERRAL, _deferral),
        (REPAYMENT, _repayment),
    ],
}


def _option(option) -> WorkoutOption:
    try:
        return WorkoutOption(getattr(option, "value", option))
    except ValueError:
        allowed = ", ".join(o.value for o in WorkoutOption)
        raise CalculationError("option", f"Workout option must be one of: {allowed}") from None


def _same(document_value, caller_value) -> bool:
    try:
        return to_decimal(document_value) == to_decimal(caller_value)
    except ValueError:
        return document_value == caller_value


def merge_inputs(
    document_data: Optional[Mapping[str, Any]], overrides: Optional[Mapping[str, Any]]
) -> Tuple[Dict[str, Any], AuditLog]:
    """Document-derived defaults overlaid with caller overrides.

    ``None`` overrides leave the document value in place.  Every override that
    replaces a different document value is recorded in the returned log.
    """

    defaults = map_document_fields(document_data)
    merged = dict(defaults)
    audit = AuditLog()
    for field, value in (overrides or {}).items():
        if value is None:
            continue
        if field in defaults and not _same(defaults[field], value):
            audit.record(field, defaults[field], value)
        merged[field] = value
    return merged, audit


def _borrower_record(merged: Mapping[str, Any]) -> BorrowerRecord:
    try:
        return BorrowerRecord.model_validate(merged)
    except ValidationError as exc:
        err = exc.errors()[0]
        field = ".".join(str(p) for p in err["loc"]) or "borrower"
        raise CalculationError(field, f"Invalid borrower field {field}: {err['msg']}") from None


def evaluate_workout_option(
    option,
    document_data: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> CalculationResult:
    """Run every calculator relevant to ``option`` and consolidate the envelopes.

    ``document_data`` holds raw extracted form fields (see
    :mod:`core.document_mapping`); ``overrides`` holds
    :class:`~lossmit.models.BorrowerRecord` fields supplied by the caller and
    wins on collision.  A sub-calculator's ``CalculationError`` propagates.
    """

    option = _option(option)
    merged, audit = merge_inputs(document_data, overrides)
    if audit.entries:
        logger.info("%s: caller overrode %s", option.value, ", ".join(audit.fields()))
    ctx = Context(option=option, record=_borrower_record(merged), done={})

    skipped: List[Dict[str, str]] = []
    for name, step in PLANS[option]:
        outcome = step(ctx)
        if isinstance(outcome, Skip):
            skipped.append({"calculation": name, "reason": outcome.reason})
            logger.info("%s: skipped %s (%s)", option.value, name, outcome.reason)
            continue
        ctx.done[name] = outcome
        logger.info("%s: ran %s", option.value, name)

    relocation = ctx.done.get(RELOCATION)
    result = {
        "option": option.value,
        "eligible_for_relocation_assistance": relocation.result["eligible"] if relocation else None,
        "calculations": {name: env.as_dict() for name, env in ctx.done.items()},
    }
    details = {
        "merged_input": merged,
        "overrides_applied": audit.as_dict(),
        "calculations_performed": list(ctx.done),
        "skipped": skipped,
        "required_documents": build_document_checklist(option, ctx.record.model_dump()),
    }
    warnings = [f"{name}: {w}" for name, env in ctx.done.items() for w in env.warnings]
    return format_result("workout_option_evaluation", result, details, warnings)
