import io
import json
import logging
from datetime import datetime, timezone
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import PageBreak, Paragraph, Preformatted, SimpleDocTemplate, Spacer

from rds_health_report.errors import RenderFailed
from rds_health_report.report import Report

logger = logging.getLogger(__name__)

TITLE = "RDS Health Report"
NOT_AVAILABLE = "N/A"
MARGIN = 40
# Courier 9pt: 5.4pt per column, wrapped lines plus indent stay inside the frame.
RAW_LINE_LENGTH = 88


def _or_na(value) -> str:
    return NOT_AVAILABLE if value is None else str(value)


def _iso(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# --------------------------
# Layout
# --------------------------

def summary_blocks(report: Report, generated_at: datetime) -> list[tuple[str, str]]:
    """
    Page one as (kind, text) pairs. kind is one of
    title / meta / heading / bullet / error.
    """
    blocks = [
        ("title", TITLE),
        ("meta", f"Generated at: {_iso(generated_at)}"),
        ("heading", "Summary"),
    ]
    lines = [
        f"DB Host: {_or_na(report.db_host)}",
        f"DB Name: {_or_na(report.db_name)}",
        f"Status: {report.status.value}",
        f"MySQL Version: {_or_na(report.version)}",
        f"Connected Threads: {_or_na(report.threads_connected)}",
        f"Commits Count: {_or_na(report.commits_count)}",
        f"Pulls Count: {_or_na(report.pulls_count)}",
        f"Duration (ms): {_or_na(report.duration_ms)}",
    ]
    blocks += [("bullet", line) for line in lines]

    if report.errors:
        blocks.append(("heading", "Errors"))
        blocks += [("error", e) for e in report.errors]
    return blocks


def raw_data(report: Report) -> str:
    return json.dumps(report.to_dict(), indent=2)


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    normal = base["Normal"]
    return {
        "title": ParagraphStyle("ReportTitle", parent=normal, fontSize=22, leading=28, alignment=TA_CENTER, spaceAfter=12),
        "meta": ParagraphStyle("ReportMeta", parent=normal, fontSize=11, leading=14, spaceAfter=18),
        "heading": ParagraphStyle("ReportHeading", parent=normal, fontSize=14, leading=18, spaceBefore=6, spaceAfter=4),
        "bullet": ParagraphStyle("ReportBullet", parent=normal, fontSize=10, leading=13, spaceAfter=1),
        "error": ParagraphStyle("ReportError", parent=normal, fontSize=10, leading=13),
        "raw_heading": ParagraphStyle("ReportRawHeading", parent=normal, fontSize=12, leading=15, spaceAfter=6),
        "raw": ParagraphStyle("ReportRaw", parent=base["Code"], fontSize=9, leading=11, leftIndent=0),
    }


def _flowables(report: Report, generated_at: datetime) -> list:
    styles = _styles()
    story = []
    for kind, text in summary_blocks(report, generated_at):
        text = escape(text)
        if kind == "heading":
            if text == "Errors":
                story.append(Spacer(1, 12))
            story.append(Paragraph(f"<u>{text}</u>", styles["heading"]))
        elif kind == "bullet":
            story.append(Paragraph(f"• {text}", styles["bullet"]))
        elif kind == "error":
            story.append(Paragraph(f"- {text}", styles["error"]))
        else:
            story.append(Paragraph(text, styles[kind]))

    story.append(PageBreak())
    story.append(Paragraph("<u>Raw Report Data</u>", styles["raw_heading"]))
    story.append(Preformatted(raw_data(report), styles["raw"], maxLineLength=RAW_LINE_LENGTH, splitChars=" ,/", newLineChars="  "))
    return story


# --------------------------
# Rendering
# --------------------------

def render_pdf(report: Report, generated_at: datetime | None = None) -> bytes:
    """Returns the complete PDF, or raises RenderFailed. Never a partial buffer."""
    generated_at = generated_at or datetime.now(timezone.utc)
    buf = io.BytesIO()
    try:
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=MARGIN,
            rightMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
            title=TITLE,
            invariant=1,
        )
        doc.build(_flowables(report, generated_at))
    except Exception as e:
        raise RenderFailed(f"PDF generation failed: {e}") from e

    body = buf.getvalue()
    logger.info("Rendered PDF report (%d bytes)", len(body))
    return body
