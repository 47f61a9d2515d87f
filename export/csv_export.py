"""Tabular and JSON export of calculation envelopes.

Exports consume only the envelope fields (result, details, warnings and
guideline reference); nothing is recomputed here.
"""
from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from lossmit.models import CalculationResult, _plain

COLUMNS = ["Calculation", "Result", "Details", "Warnings", "Guideline Reference"]

METADATA_LABELS = (
    ("borrower_name", "Borrower Name"),
    ("property_address", "Property Address"),
    ("loan_number", "Loan Number"),
    ("evaluation_type", "Evaluation Type"),
)


def _envelope(calc) -> Dict[str, Any]:
    if isinstance(calc, CalculationResult):
        return calc.as_dict()
    return _plain(dict(calc))


def prepare_calculation_export(
    calculations: Mapping[str, Any],
    metadata: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Bundle named envelopes with report metadata and a UTC timestamp."""

    metadata = dict(metadata or {})
    stamp = now or datetime.now(timezone.utc)
    return {
        "borrower_name": metadata.get("borrower_name"),
        "property_address": metadata.get("property_address"),
        "loan_number": metadata.get("loan_number"),
        "calculation_type": metadata.get("calculation_type") or "Financial Analysis",
        "evaluation_type": metadata.get("evaluation_type"),
        "calculations": {name: _envelope(c) for name, c in calculations.items()},
        "timestamp": stamp.isoformat(),
    }


def calculation_title(name: str) -> str:
    return name.replace("_", " ").title()


def _cell(value) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return "" if value is None else str(value)


def calculations_to_frame(payload: Mapping[str, Any]) -> pd.DataFrame:
    rows = []
    for name, env in payload.get("calculations", {}).items():
        details = env.get("details") or {}
        rows.append(
            {
                "Calculation": calculation_title(name),
                "Result": _cell(env.get("result")),
                "Details": "; ".join(f"{k}: {_cell(v)}" for k, v in details.items()),
                "Warnings": "; ".join(env.get("warnings") or []),
                "Guideline Reference": env.get("guideline_reference") or "",
            }
        )
    return pd.DataFrame(rows, columns=COLUMNS)


def export_csv(payload: Mapping[str, Any], out_path: Optional[str] = None) -> bytes:
    """Render the export as CSV: a metadata block, a blank line, then one row per calculation."""

    header = [["Financial Calculation Results", ""], ["Analysis Date", payload.get("timestamp", "")]]
    header.append(["Calculation Type", payload.get("calculation_type", "")])
    for key, label in METADATA_LABELS:
        if payload.get(key):
            header.append([label, payload[key]])

    buf = io.StringIO()
    pd.DataFrame(header).to_csv(buf, index=False, header=False)
    buf.write("\n")
    calculations_to_frame(payload).to_csv(buf, index=False)
    data = buf.getvalue().encode("utf-8")
    if out_path:
        with open(out_path, "wb") as fh:
            fh.write(data)
    return data


def export_json(payload: Mapping[str, Any], out_path: Optional[str] = None) -> str:
    text = json.dumps(_plain(dict(payload)), indent=2)
    if out_path:
        with open(out_path, "w", encoding="utf-8") as fh:
            fh.write(text)
    return text
