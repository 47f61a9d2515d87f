from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LoanType(str, Enum):
    CONVENTIONAL = "Conventional"
    FHA = "FHA"
    VA = "VA"
    USDA = "USDA"
    OTHER = "Other"


class WorkoutOption(str, Enum):
    SHORT_SALE = "short_sale"
    DEED_IN_LIEU = "deed_in_lieu"
    MODIFICATION = "modification"
    PAYMENT_DEFERRAL = "payment_deferral"


class DeferralHistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    effective_date: date
    months_deferred: int
    is_disaster_related: bool = False


class ModificationHistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    effective_date: date
    type: Literal["FlexMod", "Other"] = "FlexMod"
    trial_period_failed: bool = False


class SellingCosts(BaseModel):
    real_estate_commission: Decimal = Decimal("0")
    closing_costs: Decimal = Decimal("0")
    repair_costs: Decimal = Decimal("0")
    subordinate_lien_payoffs: Decimal = Decimal("0")
    other_costs: Decimal = Decimal("0")


def _plain(obj):
    """Recursively convert Decimals, dates and models into JSON primitives."""

    if obj is None or isinstance(obj, (str, bool, int, float)):
        return obj
    if isinstance(obj, Decimal):
        if obj == obj.to_integral_value():
            return int(obj)
        return float(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, BaseModel):
        return _plain(obj.model_dump())
    if isinstance(obj, dict):
        return {k: _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(x) for x in obj]
    return str(obj)


class CalculationResult(BaseModel):
    """Uniform envelope returned by every calculator.

    ``result`` is the headline value (a Decimal, or a mapping of named values
    for multi-part results).  ``details`` carries the intermediate figures a
    reviewer needs to re-derive the result, ``warnings`` the guideline
    thresholds that were crossed, and ``guideline_reference`` the citation.
    """

    calculation_type: str
    result: Any
    details: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    guideline_reference: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return _plain(
            {
                "calculation_type": self.calculation_type,
                "result": self.result,
                "details": self.details,
                "warnings": list(self.warnings),
                "guideline_reference": self.guideline_reference,
            }
        )


class BorrowerRecord(BaseModel):
    """Borrower and loan facts consumed by the composite workout evaluation.

    Every field is optional; calculators whose inputs are missing are skipped.
    Amounts are dollars.  Range checks happen in the calculators, not here.
    """

    model_config = ConfigDict(extra="forbid")

    loan_type: Optional[LoanType] = None

    # Income and obligations
    gross_monthly_income: Optional[Decimal] = None
    non_taxable_income: Optional[Decimal] = None
    gross_up_percentage: Optional[Decimal] = None
    monthly_piti: Optional[Decimal] = None
    other_monthly_debts: Optional[Decimal] = None

    # Liquid assets
    checking_account_balance: Optional[Decimal] = None
    savings_account_balance: Optional[Decimal] = None
    money_market_balance: Optional[Decimal] = None
    stocks_bonds_value: Optional[Decimal] = None
    other_liquid_assets: Optional[Decimal] = None

    # Loan and property
    unpaid_principal_balance: Optional[Decimal] = None
    accrued_interest: Optional[Decimal] = None
    other_advances: Optional[Decimal] = None
    property_value: Optional[Decimal] = None
    property_value_after: Optional[Decimal] = None
    target_ltv: Optional[Decimal] = None
    estimated_sale_price: Optional[Decimal] = None
    selling_costs: Optional[SellingCosts] = None
    estimated_deficiency: Optional[Decimal] = None

    # Borrower circumstances
    is_principal_residence: Optional[bool] = None
    is_servicemember_with_pcs: bool = False
    receiving_dla_or_government_aid: bool = False
    is_current_or_less_than_60_days_delinquent: bool = False

    # Payment deferral
    loan_origination_date: Optional[date] = None
    loan_maturity_date: Optional[date] = None
    evaluation_date: Optional[date] = None
    current_delinquency_months: Optional[int] = None
    is_disaster_related: bool = False
    prior_deferral_history: List[DeferralHistoryEntry] = Field(default_factory=list)
    prior_modification_history: List[ModificationHistoryEntry] = Field(default_factory=list)

    # Servicing and modification terms
    escrow_shortage_amount: Optional[Decimal] = None
    escrow_repayment_term_months: Optional[int] = None
    total_delinquency_amount: Optional[Decimal] = None
    proposed_repayment_term_months: Optional[int] = None
    proposed_modified_piti: Optional[Decimal] = None
    principal_and_interest: Optional[Decimal] = None
    monthly_property_taxes: Optional[Decimal] = None
    monthly_insurance: Optional[Decimal] = None
    other_escrow_amounts: Optional[Decimal] = None
