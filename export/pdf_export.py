"""PDF rendering of calculation exports with reportlab."""
from __future__ import annotations

from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from export.csv_export import METADATA_LABELS, calculation_title
from lossmit.presets import DISCLAIMER, GUIDELINE_SOURCE

GRID = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("BOX", (0, 0), (-1, -1), 1, colors.black),
        ("INNERGRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]
)


def _text(value) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if value is None:
        return "-"
    if isinstance(value, list):
        return ", ".join(_text(v) for v in value) or "-"
    return str(value)


def _result_rows(result) -> list[list[str]]:
    if isinstance(result, dict):
        return [[k.replace("_", " "), _text(v)] for k, v in result.items() if not isinstance(v, dict)]
    return [["result", _text(result)]]


def build_calculation_pdf(out_path: str, payload: dict) -> str:
    """Write ``payload`` (see ``prepare_calculation_export``) to ``out_path``.

    One section per calculation: result table, details table, warnings and the
    guideline citation, followed by the disclaimer.  Returns ``out_path``.
    """

    styles = getSampleStyleSheet()
    cell = styles["BodyText"]
    doc = SimpleDocTemplate(out_path, pagesize=LETTER, leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=36)
    story = [Paragraph("<b>Financial Calculation Results</b>", styles["Title"]), Spacer(1, 6)]

    header = [["Report", ""], ["Analysis Date", payload.get("timestamp", "")]]
    header.append(["Calculation Type", payload.get("calculation_type", "")])
    header += [[label, payload[key]] for key, label in METADATA_LABELS if payload.get(key)]
    t = Table(header, hAlign="LEFT", colWidths=[160, 380])
    t.setStyle(GRID)
    story += [t, Spacer(1, 12)]

    for name, env in payload.get("calculations", {}).items():
        story += [Paragraph(f"<b>{escape(calculation_title(name))}</b>", styles["Heading3"]), Spacer(1, 4)]
        rows = [["Result", ""]] + _result_rows(env.get("result"))
        t = Table(rows, hAlign="LEFT", colWidths=[220, 320])
        t.setStyle(GRID)
        story += [t, Spacer(1, 6)]

        details = env.get("details") or {}
        if details:
            rows = [["Detail", "Value"]] + [
                [Paragraph(escape(k.replace("_", " ")), cell), Paragraph(escape(_text(v)), cell)]
                for k, v in details.items()
            ]
            t = Table(rows, hAlign="LEFT", colWidths=[220, 320])
            t.setStyle(GRID)
            story += [t, Spacer(1, 6)]

        for w in env.get("warnings") or []:
            story.append(Paragraph(f"<font color='darkred'>Warning: {escape(w)}</font>", cell))
        if env.get("guideline_reference"):
            story.append(Paragraph(f"<i>Guideline: {escape(env['guideline_reference'])}</i>", cell))
        story.append(Spacer(1, 12))

    story += [
        Paragraph(f"<font size=8>All calculations based on the {escape(GUIDELINE_SOURCE)}.</font>", styles["Normal"]),
        Paragraph(f"<font size=8>{escape(DISCLAIMER)}</font>", styles["Normal"]),
    ]
    doc.build(story)
    return out_path
