"""Wrap raw calculator output into the :class:`CalculationResult` envelope."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from lossmit.models import CalculationResult
from lossmit.presets import GUIDELINE_REFERENCES


def format_result(
    calculation_type: str,
    result: Any,
    details: Optional[Dict[str, Any]] = None,
    warnings: Optional[Iterable[str]] = None,
    guideline_reference: Optional[str] = None,
) -> CalculationResult:
    """Build the envelope for ``calculation_type``.

    The guideline citation defaults to the one registered for the calculation
    type in :data:`lossmit.presets.GUIDELINE_REFERENCES`.
    """

    if guideline_reference is None:
        guideline_reference = GUIDELINE_REFERENCES.get(calculation_type)
    return CalculationResult(
        calculation_type=calculation_type,
        result=result,
        details=dict(details or {}),
        warnings=list(warnings or []),
        guideline_reference=guideline_reference,
    )
