"""Ordered guideline rules for the short sale / deed-in-lieu cash contribution.

The rule set is evaluated in three stages:

* ``trigger`` - every rule is checked; any match sets ``required``.
* ``amount`` - computes the contribution once it is required.
* ``waiver`` - first matching rule wins and overrides the *amount* only;
  ``required`` is never cleared by a waiver.

Each rule is a ``(predicate, effect)`` pair so the table reads the same way the
guideline text does and new conditions can be appended without touching the
others.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from core.utils import ZERO
from lossmit.presets import (
    CONTRIBUTION_DE_MINIMIS,
    CONTRIBUTION_PITI_MULTIPLE,
    CONTRIBUTION_RESERVES_PCT,
    HOUSING_RATIO_CONTRIBUTION_LIMIT,
    RESERVES_CONTRIBUTION_THRESHOLD,
)


class RuleResult(BaseModel):
    code: str
    severity: Literal["info", "warn", "critical"]
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class ContributionFacts:
    reserves: Decimal
    monthly_piti: Decimal
    deficiency: Decimal
    housing_ratio: Optional[Decimal] = None
    is_servicemember_with_pcs: bool = False

    @property
    def twenty_percent_reserves(self) -> Decimal:
        return self.reserves * CONTRIBUTION_RESERVES_PCT

    @property
    def piti_multiple(self) -> Decimal:
        return self.monthly_piti * CONTRIBUTION_PITI_MULTIPLE


@dataclass(frozen=True)
class ContributionOutcome:
    required: bool = False
    amount: Decimal = ZERO
    waived: bool = False
    waiver_reason: Optional[str] = None


Predicate = Callable[[ContributionFacts, ContributionOutcome], bool]
Effect = Callable[[ContributionFacts, ContributionOutcome], ContributionOutcome]


@dataclass(frozen=True)
class ContributionRule:
    code: str
    severity: Literal["info", "warn", "critical"]
    message: str
    predicate: Predicate
    effect: Effect


def _require(facts, outcome):
    return replace(outcome, required=True)


def _contribution_amount(facts, outcome):
    candidate = max(facts.twenty_percent_reserves, facts.piti_multiple)
    return replace(outcome, amount=min(candidate, facts.deficiency))


def _waive(reason: str) -> Effect:
    def effect(facts, outcome):
        return replace(outcome, amount=ZERO, waived=True, waiver_reason=reason)

    return effect


DE_MINIMIS_REASON = "Contribution amount less than $500 - waived per guidelines"
PCS_REASON = "Servicemember with PCS orders - contribution waived"

TRIGGER_RULES: Tuple[ContributionRule, ...] = (
    ContributionRule(
        code="RESERVES_OVER_10K",
        severity="warn",
        message="Non-retirement cash reserves exceed $10,000: cash contribution required",
        predicate=lambda f, o: f.reserves > RESERVES_CONTRIBUTION_THRESHOLD,
        effect=_require,
    ),
    ContributionRule(
        code="HOUSING_RATIO_40_OR_LESS",
        severity="warn",
        message="Housing expense-to-income ratio ≤ 40%: cash contribution required",
        predicate=lambda f, o: (
            f.housing_ratio is not None and f.housing_ratio <= HOUSING_RATIO_CONTRIBUTION_LIMIT
        ),
        effect=_require,
    ),
)

AMOUNT_RULES: Tuple[ContributionRule, ...] = (
    ContributionRule(
        code="CONTRIBUTION_AMOUNT",
        severity="info",
        message="Contribution is the greater of 20% of reserves or 4x monthly PITI, not exceeding the deficiency",
        predicate=lambda f, o: o.required,
        effect=_contribution_amount,
    ),
)

WAIVER_RULES: Tuple[ContributionRule, ...] = (
    ContributionRule(
        code="WAIVER_DE_MINIMIS",
        severity="warn",
        message=DE_MINIMIS_REASON,
        predicate=lambda f, o: o.required and o.amount < CONTRIBUTION_DE_MINIMIS,
        effect=_waive(DE_MINIMIS_REASON),
    ),
    ContributionRule(
        code="WAIVER_PCS",
        severity="warn",
        message=PCS_REASON,
        predicate=lambda f, o: f.is_servicemember_with_pcs,
        effect=_waive(PCS_REASON),
    ),
)

# (stage, rules, stop at first match)
CONTRIBUTION_STAGES = (
    ("trigger", TRIGGER_RULES, False),
    ("amount", AMOUNT_RULES, False),
    ("waiver", WAIVER_RULES, True),
)


def evaluate_contribution_rules(
    facts: ContributionFacts,
) -> Tuple[ContributionOutcome, List[RuleResult]]:
    """Run the contribution rule table and return the outcome plus fired rules."""

    outcome = ContributionOutcome()
    fired: List[RuleResult] = []
    for stage, rules, first_match_only in CONTRIBUTION_STAGES:
        for rule in rules:
            if not rule.predicate(facts, outcome):
                continue
            outcome = rule.effect(facts, outcome)
            fired.append(
                RuleResult(
                    code=rule.code,
                    severity=rule.severity,
                    message=rule.message,
                    context={"stage": stage},
                )
            )
            if first_match_only:
                break
    return outcome, fired
