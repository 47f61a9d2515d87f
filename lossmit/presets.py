from decimal import Decimal

GUIDELINE_SOURCE = "Fannie Mae Servicing Guide dated April 9, 2025"

DISCLAIMER = (
    "These calculations implement the loss-mitigation thresholds of the servicing guide "
    "(cash contribution, payment deferral, repayment plan and Flex Modification affordability tests). "
    "Results are estimates for evaluation only; investor requirements, servicer overlays and "
    "reviewer discretion prevail. Verify inputs against the borrower's documentation."
)

LOAN_TYPES = ("Conventional", "FHA", "VA", "USDA", "Other")

# Ratio tests
HOUSING_RATIO_CONTRIBUTION_LIMIT = Decimal("0.40")
DEFAULT_GROSS_UP_PCT = Decimal("0.25")

# Cash reserves and contribution
RESERVES_CONTRIBUTION_THRESHOLD = Decimal("10000")
RESERVES_IMMINENT_DEFAULT_THRESHOLD = Decimal("25000")
CONTRIBUTION_RESERVES_PCT = Decimal("0.20")
CONTRIBUTION_PITI_MULTIPLE = Decimal("4")
CONTRIBUTION_DE_MINIMIS = Decimal("500")

# Servicing
DEFAULT_ESCROW_TERM_MONTHS = 60
REPAYMENT_PAYMENT_LIMIT_PCT = Decimal("1.50")
REPAYMENT_MAX_TERM_MONTHS = 36
REPAYMENT_APPROVAL_TERM_MONTHS = 12

# Payment deferral
DEFERRAL_MIN_LOAN_AGE_MONTHS = 12
DEFERRAL_DELINQUENCY_RANGE = (2, 6)
DEFERRAL_DISASTER_DELINQUENCY_RANGE = (1, 12)
DEFERRAL_CUMULATIVE_CAP_MONTHS = 12
DEFERRAL_LOOKBACK_MONTHS = 12
DEFERRAL_MATURITY_BUFFER_MONTHS = 36

# Property, disposition and modification
DEFAULT_TARGET_LTV = Decimal("0.60")
RELOCATION_ASSISTANCE_AMOUNT = Decimal("7500")
MOD_TARGET_HOUSING_DTI = Decimal("0.31")
MOD_TARGET_TOTAL_DTI = Decimal("0.43")

GUIDELINE_REFERENCES = {
    "housing_expense_to_income_ratio": "Line 120: Short sale cash contribution based on housing expense-to-income ratio ≤ 40%",
    "total_debt_to_income_ratio": "General affordability assessment for loan modifications and workout options",
    "non_taxable_income_gross_up": "Lines 10-11: Non-taxable income grossed up by 25% or higher actual tax rate",
    "non_retirement_cash_reserves": "Lines 93, 106, 120, 130: $10K and $25K thresholds for cash contribution and imminent default",
    "cash_contribution": "Line 120: Cash contribution = greater of 20% reserves or 4x monthly PITI, not exceeding deficiency",
    "escrow_shortage_repayment": "Lines 53, 74: Escrow shortage repayment over 60 months for payment deferrals",
    "trial_period_payment": "Line 89: Trial Period Plan required for Fannie Mae Flex Modifications",
    "repayment_plan_parameters": "Lines 41, 45, 47: Repayment payment ≤ 150% of PITI, combined period ≤ 36 months",
    "payment_deferral_eligibility": "Lines 58-65: Payment deferral eligibility criteria including timing and history requirements",
    "property_ltv_and_paydown": "Lines 158, 161-167: Property-related requests target LTV < 60% or require paydown",
    "relocation_assistance_eligibility": "Lines 121, 149: $7,500 relocation assistance for principal residence, excluding cash contribution cases",
    "short_sale_net_proceeds_and_deficiency": "Implicit calculation for short sale evaluation and deficiency determination",
    "affordability_for_modification": "Lines 85-100: Goal of Fannie Mae Flex Modifications for affordability",
    "workout_option_evaluation": "Combined evaluation per " + GUIDELINE_SOURCE,
}
