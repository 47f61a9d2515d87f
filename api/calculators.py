"""
API endpoints for the loss-mitigation calculators.

One POST endpoint per calculator plus the composite workout-option evaluation.
Every response body is a calculation envelope; validation failures come back as
400 with a field-specific message.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.evaluator import evaluate_workout_option
from core.registry import get_available_calculators
from core.validation import CalculationError
from lossmit import calculators as calc
from lossmit.models import (
    DeferralHistoryEntry,
    LoanType,
    ModificationHistoryEntry,
    SellingCosts,
    WorkoutOption,
)
from lossmit.presets import GUIDELINE_SOURCE, LOAN_TYPES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calculators", tags=["Calculators"])


# Request Models

class DTIRequest(BaseModel):
    """Request body for the housing and total DTI endpoints"""
    monthly_piti: Decimal
    gross_monthly_income: Decimal
    other_monthly_debts: Optional[Decimal] = None
    loan_type: Optional[LoanType] = None


class GrossUpRequest(BaseModel):
    non_taxable_income: Decimal
    gross_up_percentage: Optional[Decimal] = None


class CashReservesRequest(BaseModel):
    checking_account_balance: Decimal = Decimal("0")
    savings_account_balance: Decimal = Decimal("0")
    money_market_balance: Decimal = Decimal("0")
    stocks_bonds_value: Decimal = Decimal("0")
    other_liquid_assets: Decimal = Decimal("0")


class CashContributionRequest(BaseModel):
    non_retirement_cash_reserves: Decimal
    contractual_monthly_piti: Decimal
    estimated_deficiency: Decimal
    housing_expense_to_income_ratio: Optional[Decimal] = None
    is_current_or_less_than_60_days_delinquent: bool = False
    is_servicemember_with_pcs: bool = False
    loan_type: Optional[LoanType] = None


class EscrowShortageRequest(BaseModel):
    escrow_shortage_amount: Decimal
    repayment_term_months: Optional[int] = None


class TrialPeriodRequest(BaseModel):
    principal_and_interest: Decimal
    monthly_property_taxes: Decimal
    monthly_insurance: Decimal
    other_escrow_amounts: Optional[Decimal] = None


class RepaymentPlanRequest(BaseModel):
    full_monthly_piti: Decimal
    total_delinquency_amount: Decimal
    proposed_repayment_term_months: int


class PaymentDeferralRequest(BaseModel):
    """Request body for POST /api/calculators/payment-deferral-eligibility"""
    loan_origination_date: date
    evaluation_date: Optional[date] = Field(None, description="Defaults to today")
    loan_maturity_date: date
    current_delinquency_months: int
    is_disaster_related: bool = False
    prior_deferral_history: List[DeferralHistoryEntry] = Field(default_factory=list)
    prior_modification_history: List[ModificationHistoryEntry] = Field(default_factory=list)


class LTVRequest(BaseModel):
    current_loan_balance: Decimal
    property_value_before: Decimal
    property_value_after: Optional[Decimal] = None
    target_ltv: Optional[Decimal] = None


class RelocationRequest(BaseModel):
    is_principal_residence: bool
    is_cash_contribution_required: bool
    is_servicemember_with_pcs: bool
    receiving_dla_or_government_aid: bool = False


class ShortSaleRequest(BaseModel):
    estimated_sale_price: Decimal
    selling_costs: SellingCosts = Field(default_factory=SellingCosts)
    unpaid_principal_balance: Decimal
    accrued_interest: Optional[Decimal] = None
    other_advances: Optional[Decimal] = None


class AffordabilityRequest(BaseModel):
    gross_monthly_income: Decimal
    proposed_modified_piti: Decimal
    other_monthly_debts: Optional[Decimal] = None
    target_housing_dti: Optional[Decimal] = None
    target_total_dti: Optional[Decimal] = None


class WorkoutEvaluationRequest(BaseModel):
    """Request body for POST /api/calculators/evaluate-workout-option"""
    option: WorkoutOption
    document_data: Optional[Dict[str, Any]] = Field(None, description="Extracted borrower form fields")
    overrides: Optional[Dict[str, Any]] = Field(None, description="Borrower fields; win over document data")


# Helpers

def _error(status_code: int, code: str, message: str, field: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"code": code, "message": message}
    if field is not None:
        body["field"] = field
    return JSONResponse(status_code=status_code, content={"error": body})


def _run(name: str, func: Callable, **kwargs):
    try:
        return func(**kwargs).as_dict()
    except CalculationError as e:
        logger.info(f"{name} rejected input {e.field}: {e.message}")
        return JSONResponse(status_code=400, content={"error": e.as_dict()})
    except Exception as e:
        logger.error(f"{name} calculation failed: {e}", exc_info=True)
        return _error(500, "CALCULATION_ERROR", f"Failed to calculate {name.replace('_', ' ')}")


# Endpoints

@router.get("/")
async def list_calculators():
    """List every calculator with its description and guideline citation."""
    calculators = get_available_calculators()
    return {
        "calculators": calculators,
        "total_count": len(calculators),
        "supported_loan_types": list(LOAN_TYPES),
        "guideline_source": GUIDELINE_SOURCE,
    }


@router.post("/housing-dti")
async def housing_dti(request: DTIRequest):
    return _run(
        "housing_expense_to_income_ratio",
        calc.calculate_housing_expense_to_income_ratio,
        monthly_piti=request.monthly_piti,
        gross_monthly_income=request.gross_monthly_income,
        loan_type=request.loan_type,
    )


@router.post("/total-dti")
async def total_dti(request: DTIRequest):
    return _run(
        "total_debt_to_income_ratio",
        calc.calculate_total_debt_to_income_ratio,
        **request.model_dump(),
    )


@router.post("/income-gross-up")
async def income_gross_up(request: GrossUpRequest):
    return _run("non_taxable_income_gross_up", calc.calculate_non_taxable_income_gross_up, **request.model_dump())


@router.post("/cash-reserves")
async def cash_reserves(request: CashReservesRequest):
    return _run("non_retirement_cash_reserves", calc.calculate_non_retirement_cash_reserves, **request.model_dump())


@router.post("/cash-contribution")
async def cash_contribution(request: CashContributionRequest):
    return _run("cash_contribution", calc.calculate_cash_contribution, **request.model_dump())


@router.post("/escrow-shortage")
async def escrow_shortage(request: EscrowShortageRequest):
    return _run("escrow_shortage_repayment", calc.calculate_escrow_shortage_repayment, **request.model_dump())


@router.post("/trial-period-payment")
async def trial_period_payment(request: TrialPeriodRequest):
    return _run("trial_period_payment", calc.calculate_trial_period_payment, **request.model_dump())


@router.post("/repayment-plan")
async def repayment_plan(request: RepaymentPlanRequest):
    return _run("repayment_plan_parameters", calc.calculate_repayment_plan_parameters, **request.model_dump())


@router.post("/payment-deferral-eligibility")
async def payment_deferral_eligibility(request: PaymentDeferralRequest):
    """
    Evaluate the five payment deferral criteria.

    **Example Request:**
    ```json
    {
      "loan_origination_date": "2020-01-15",
      "evaluation_date": "2025-06-01",
      "loan_maturity_date": "2050-01-15",
      "current_delinquency_months": 3,
      "prior_deferral_history": [
        {"effective_date": "2023-03-01", "months_deferred": 3, "is_disaster_related": false}
      ]
    }
    ```
    """
    return _run(
        "payment_deferral_eligibility",
        calc.calculate_payment_deferral_eligibility,
        loan_origination_date=request.loan_origination_date,
        evaluation_date=request.evaluation_date or date.today(),
        loan_maturity_date=request.loan_maturity_date,
        current_delinquency_months=request.current_delinquency_months,
        is_disaster_related=request.is_disaster_related,
        prior_deferral_history=request.prior_deferral_history,
        prior_modification_history=request.prior_modification_history,
    )


@router.post("/ltv-paydown")
async def ltv_paydown(request: LTVRequest):
    return _run("property_ltv_and_paydown", calc.calculate_property_ltv_and_paydown, **request.model_dump())


@router.post("/relocation-assistance")
async def relocation_assistance(request: RelocationRequest):
    return _run(
        "relocation_assistance_eligibility",
        calc.calculate_relocation_assistance_eligibility,
        **request.model_dump(),
    )


@router.post("/short-sale-proceeds")
async def short_sale_proceeds(request: ShortSaleRequest):
    return _run(
        "short_sale_net_proceeds_and_deficiency",
        calc.calculate_short_sale_net_proceeds_and_deficiency,
        estimated_sale_price=request.estimated_sale_price,
        selling_costs=request.selling_costs,
        unpaid_principal_balance=request.unpaid_principal_balance,
        accrued_interest=request.accrued_interest,
        other_advances=request.other_advances,
    )


@router.post("/affordability")
async def affordability(request: AffordabilityRequest):
    return _run("affordability_for_modification", calc.calculate_affordability_for_modification, **request.model_dump())


@router.post("/evaluate-workout-option")
async def evaluate_option(request: WorkoutEvaluationRequest):
    """
    Run every calculator relevant to a workout option.

    Document data holds raw extracted form fields (``monthly_gross_income``,
    ``checking_account_balance``...); overrides hold borrower fields and win on
    collision. Payment deferral evaluations default ``evaluation_date`` to today.
    """
    overrides = dict(request.overrides or {})
    if request.option is WorkoutOption.PAYMENT_DEFERRAL and overrides.get("evaluation_date") is None:
        overrides["evaluation_date"] = date.today()
    return _run(
        "workout_option_evaluation",
        evaluate_workout_option,
        option=request.option,
        document_data=request.document_data,
        overrides=overrides,
    )
