"""Map extracted hardship-form fields to borrower facts.

Document extraction yields the field names of the borrower assistance form
(``monthly_gross_income``, ``checking_account_balance``...).  The composite
evaluation consumes :class:`~lossmit.models.BorrowerRecord` field names, so
this module translates one into the other.  The result is only a set of
defaults; caller-supplied values always win.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from core.utils import to_decimal
from core.validation import CalculationError
from lossmit.models import WorkoutOption

Combiner = Callable[[Mapping[str, Any]], Any]


def _present(value) -> bool:
    return value is not None and not (isinstance(value, str) and not value.strip())


def _first(*keys: str) -> Combiner:
    def pick(form):
        for key in keys:
            if _present(form.get(key)):
                return form[key]
        return None

    return pick


def _sum_of(*keys: str) -> Combiner:
    """Sum the present form fields; ``None`` when none of them were extracted."""

    def add(form):
        present = [k for k in keys if _present(form.get(k))]
        if not present:
            return None
        total = to_decimal(0)
        for key in present:
            try:
                total += to_decimal(form[key])
            except ValueError:
                raise CalculationError(key, f"Document field {key} must be a number") from None
        return total

    return add


def _yes_no(key: str) -> Combiner:
    def flag(form):
        value = form.get(key)
        if isinstance(value, bool):
            return value
        if not _present(value):
            return None
        return str(value).strip().lower() in ("yes", "y", "true", "1")

    return flag


# borrower field -> form field, or a function of the whole form
FIELD_MAP: Dict[str, Union[str, Combiner]] = {
    "gross_monthly_income": "monthly_gross_income",
    "monthly_piti": _first("first_mortgage_payment", "monthly_payment"),
    "other_monthly_debts": _sum_of(
        "second_mortgage_payment", "car_payment", "credit_card_payments", "child_support_paid"
    ),
    "non_taxable_income": "child_support_received",
    "checking_account_balance": "checking_account_balance",
    "savings_account_balance": "savings_account_balance",
    "money_market_balance": "money_market_balance",
    "stocks_bonds_value": "stocks_bonds_value",
    "other_liquid_assets": _sum_of("cash_on_hand", "other_assets"),
    "unpaid_principal_balance": "mortgage_balance",
    "property_value": "property_value",
    "estimated_sale_price": "listing_price",
    "is_principal_residence": _yes_no("owner_occupied"),
}


def map_document_fields(form: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return borrower defaults for every field the form actually supplied."""

    if not form:
        return {}
    out: Dict[str, Any] = {}
    for field, source in FIELD_MAP.items():
        value = source(form) if callable(source) else form.get(source)
        if _present(value):
            out[field] = value
    return out


# Required documents per workout option
DOCS_BY_OPTION: Dict[str, List[str]] = {
    WorkoutOption.SHORT_SALE.value: [
        "Borrower assistance form",
        "Hardship letter",
        "Two most recent bank statements",
        "Listing agreement",
        "Purchase contract",
        "Estimated settlement statement",
    ],
    WorkoutOption.DEED_IN_LIEU.value: [
        "Borrower assistance form",
        "Hardship letter",
        "Two most recent bank statements",
        "Title report",
    ],
    WorkoutOption.MODIFICATION.value: [
        "Borrower assistance form",
        "Hardship letter",
        "Income documentation",
        "Two most recent bank statements",
    ],
    WorkoutOption.PAYMENT_DEFERRAL.value: [
        "Borrower assistance form",
        "Hardship resolution statement",
    ],
}

CONDITIONAL_DOCS = (
    ("is_servicemember_with_pcs", "Permanent Change of Station orders"),
    ("is_disaster_related", "Disaster declaration or FEMA documentation"),
    ("non_taxable_income", "Proof of non-taxable income"),
)


def build_document_checklist(option, facts: Optional[Mapping[str, Any]] = None) -> List[str]:
    """Return a de-duplicated list of documents required for ``option``."""

    key = getattr(option, "value", option)
    docs: List[str] = []
    for doc in DOCS_BY_OPTION.get(key, []):
        if doc not in docs:
            docs.append(doc)
    for field, doc in CONDITIONAL_DOCS:
        if facts and facts.get(field) and doc not in docs:
            docs.append(doc)
    return docs
