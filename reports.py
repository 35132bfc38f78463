# reports.py

import io
import logging
import re
import uuid

import pandas as pd
import plotly.io as pio
from pptx import Presentation
from pptx.util import Inches
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
# PDF export (with embedded chart images)
from reportlab.platypus import Image as RLImage
from reportlab.platypus import (ListFlowable, ListItem, Paragraph,
                                SimpleDocTemplate, Spacer, Table, TableStyle)

from config import REPORT_BASE_URL
from figures import control_results_figure
from models import OperationFailed

logger = logging.getLogger(__name__)

ROW_COLUMNS = ["control_id", "title", "category", "status", "implementation",
               "documentation", "evidence", "notes"]

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def build_report(result, framework, org="", assessor=""):
    """
    Build the report-data document for one assessment.

    Args:
        result (AssessmentResult): the scored assessment
        framework (Framework): the framework it was scored against
        org (str): organization name shown on the report
        assessor (str): assessor name shown on the report

    Returns:
        dict: plain, JSON-safe report document
    """
    by_question = {a.question_id: a for a in result.answers}
    rows = []
    for c in framework.controls:
        if c.id not in result.control_results:
            continue
        row = {
            "control_id": c.control_id,
            "title": c.title,
            "category": c.category,
            "status": result.control_results[c.id],
        }
        notes = []
        for suffix in ("implementation", "documentation", "evidence"):
            a = by_question.get(f"{c.id}-{suffix}")
            row[suffix] = (a.value if a else None) or ""
            if a and a.notes:
                notes.append(a.notes)
        row["notes"] = "; ".join(notes)
        rows.append(row)
    return {
        "org": org or "",
        "assessor": assessor or "",
        "framework_id": result.framework_id,
        "framework": result.framework_name,
        "version": framework.version,
        "date": result.date.strftime("%Y-%m-%d") if result.date else "",
        "score": result.score_pct,
        "status": result.status,
        "completed_controls": result.completed_controls,
        "total_controls": result.total_controls,
        "control_results": dict(result.control_results),
        "rows": rows,
    }


def report_frame(report):
    return pd.DataFrame(report.get("rows", []), columns=ROW_COLUMNS)


def write_csv(report):
    """Per-control rows as CSV text."""
    return report_frame(report).to_csv(index=False)


def _open_rows(report):
    return [r for r in report.get("rows", []) if r["status"] != "compliant"]


def _write_ppt_bytes(buf, report):
    """
    Write a PowerPoint presentation with the following slides to a bytes buffer.

    1. Title slide with framework, organization and assessor.
    2. Summary slide with score, status and controls found compliant.
    3. Control results table.
    4. Controls needing attention.

    Args:
        buf (BytesIO): A BytesIO object to write the presentation to.
        report (dict): The report document from build_report.

    Returns:
        None
    """
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[0])
    slide.shapes.title.text = f"{report.get('framework', '')} Compliance Assessment"
    slide.placeholders[1].text = (
        f"Organization: {report.get('org', '')}\n"
        f"Assessor: {report.get('assessor', '')}\n"
        f"Date: {report.get('date', '')}"
    )

    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = "Summary"
    body = slide.shapes.placeholders[1].text_frame
    body.clear()
    body.paragraphs[0].text = f"Overall Compliance Score: {report.get('score', 0):.1f}%"
    body.add_paragraph().text = f"Status: {report.get('status', '').replace('-', ' ')}"
    body.add_paragraph().text = (
        f"Controls compliant: {report.get('completed_controls', 0)} of "
        f"{report.get('total_controls', 0)}"
    )
    body.add_paragraph().text = "Method: compliant + 0.5 × partially compliant, over all controls."

    rows = report.get("rows", [])
    slide = prs.slides.add_slide(prs.slide_layouts[5])
    slide.shapes.title.text = "Control Results"
    n_rows = len(rows) + 1
    table = slide.shapes.add_table(
        n_rows, 3, Inches(0.5), Inches(1.4), Inches(9.0), Inches(0.4 + 0.3 * n_rows)
    ).table
    table.cell(0, 0).text, table.cell(0, 1).text, table.cell(0, 2).text = (
        "Control", "Title", "Status"
    )
    for i, r in enumerate(rows, start=1):
        table.cell(i, 0).text = str(r["control_id"])
        table.cell(i, 1).text = r["title"]
        table.cell(i, 2).text = r["status"]

    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = "Controls Needing Attention"
    tf = slide.placeholders[1].text_frame
    tf.clear()
    open_rows = _open_rows(report)
    if not open_rows:
        tf.paragraphs[0].text = "All assessed controls are compliant."
    for r in open_rows:
        tf.add_paragraph().text = f"[{r['control_id']}] {r['title']} ({r['status']})"
    prs.save(buf)


def write_pptx(report):
    buf = io.BytesIO()
    _write_ppt_bytes(buf, report)
    return buf.getvalue()


def _img_from_fig(fig, width=720, height=420, scale=2):
    # Requires kaleido installed
    """
    Convert a plotly figure to a PNG image bytes buffer.

    Args:
        fig (plotly.graph_objects.Figure): The figure to convert.
        width (int, optional): Image width in pixels. Defaults to 720.
        height (int, optional): Image height in pixels. Defaults to 420.
        scale (int, optional): Image resolution multiplier. Defaults to 2.

    Returns:
        io.BytesIO: A bytes buffer containing the PNG image data.
    """
    png_bytes = pio.to_image(fig, format="png", width=width, height=height, scale=scale)
    return io.BytesIO(png_bytes)


_TABLE_STYLE = [
    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#e9ebf3")),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor("#0b1020")),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
    ("TOPPADDING", (0, 0), (-1, 0), 6),
]


def _write_pdf_bytes(buf, report, theme="light", include_charts=True):
    doc = SimpleDocTemplate(
        buf, pagesize=A4, leftMargin=16, rightMargin=16, topMargin=16, bottomMargin=16
    )
    styles = getSampleStyleSheet()
    story = []

    story += [
        Paragraph(
            f"<b>{report.get('framework', '')} Compliance Assessment</b>", styles["Title"]
        ),
        Spacer(1, 8),
    ]
    story += [
        Paragraph(
            f"Organization: {report.get('org', '')}&nbsp;&nbsp;&nbsp; "
            f"Assessor: {report.get('assessor', '')}&nbsp;&nbsp;&nbsp; "
            f"Date: {report.get('date', '')}",
            styles["Normal"],
        ),
        Spacer(1, 10),
    ]
    story += [
        Paragraph(
            f"<b>Overall Compliance Score:</b> {report.get('score', 0):.1f}% "
            f"({report.get('status', '').replace('-', ' ')})",
            styles["Heading3"],
        ),
        Spacer(1, 8),
    ]

    avail = A4[0] - 72
    tbl_data = [["Control", "Title", "Category", "Status"]] + [
        [str(r["control_id"]), r["title"], r["category"], r["status"]]
        for r in report.get("rows", [])
    ]
    tbl = Table(
        tbl_data,
        colWidths=[70, avail - 70 - 120 - 110, 120, 110],
        hAlign="LEFT",
        repeatRows=1,
    )
    tbl.setStyle(TableStyle(_TABLE_STYLE))
    story += [
        Paragraph("<b>Control Results</b>", styles["Heading3"]),
        Spacer(1, 6),
        tbl,
        Spacer(1, 12),
    ]

    if include_charts:
        fig = control_results_figure(report.get("control_results", {}), theme)
        story += [Paragraph("<b>Status Breakdown</b>", styles["Heading3"]), Spacer(1, 6)]
        img_buf = _img_from_fig(fig, width=520, height=320, scale=2)
        story += [RLImage(img_buf, width=520, height=320), Spacer(1, 12)]

    open_rows = _open_rows(report)
    if open_rows:
        bullets = ListFlowable(
            [
                ListItem(
                    Paragraph(
                        f"[{r['control_id']}] {r['title']} ({r['status']})",
                        styles["Normal"],
                    )
                )
                for r in open_rows
            ],
            bulletType="bullet",
        )
        story += [
            Paragraph("<b>Controls Needing Attention</b>", styles["Heading3"]),
            Spacer(1, 6),
            bullets,
        ]

    doc.build(story)


def write_pdf(report, theme="light", include_charts=True):
    buf = io.BytesIO()
    _write_pdf_bytes(buf, report, theme, include_charts)
    return buf.getvalue()


class ReportService:
    """
    In-memory stand-in for the reporting engine: saves report documents
    under a URL and records who they were shared with.
    """

    def __init__(self, base_url=REPORT_BASE_URL):
        self.base_url = base_url.rstrip("/")
        self.reports = {}
        self.shares = {}

    def save(self, report):
        """Store `report` and return its URL. Raises OperationFailed."""
        if not report or not report.get("rows"):
            raise OperationFailed("Failed to save report: the report has no control results.")
        report_id = uuid.uuid4().hex[:12]
        self.reports[report_id] = dict(report)
        logger.info("report saved: id=%s framework=%s", report_id, report.get("framework_id"))
        return f"{self.base_url}/{report_id}"

    def share(self, url, recipients):
        """Share a saved report with e-mail recipients. Raises OperationFailed."""
        report_id = (url or "").rstrip("/").rsplit("/", 1)[-1]
        if report_id not in self.reports:
            raise OperationFailed("Failed to share report: save the report first.")
        recipients = [r.strip() for r in recipients or [] if r and r.strip()]
        if not recipients:
            raise OperationFailed("Failed to share report: add at least one recipient.")
        bad = [r for r in recipients if not EMAIL_RE.match(r)]
        if bad:
            raise OperationFailed(f"Failed to share report: invalid address {bad[0]}.")
        self.shares.setdefault(report_id, []).extend(recipients)
        logger.info("report shared: id=%s recipients=%d", report_id, len(recipients))
        return list(self.shares[report_id])
