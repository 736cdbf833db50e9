import io
from datetime import datetime, timezone
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from xml.sax.saxutils import escape

from .models import MedicalReport
from .schemas import ProcessingResult

DISCLAIMER = (
    "This is an AI-generated draft for reference only. "
    "Please consult a licensed medical professional before proceeding with any treatment. "
    "All AI suggestions should be verified by qualified healthcare providers."
)


def _pct(value: float) -> int:
    return round(value * 100)


def _bullets(items: List[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def render_text_report(result: ProcessingResult, generated_at: Optional[datetime] = None) -> str:
    """Plain-text consultation report for download / printing."""
    generated_at = generated_at or datetime.now(timezone.utc)
    data = result.extracted_data
    plan = result.treatment_suggestions

    lines = [
        "MediAgent Medical Report",
        "==========================",
        "",
        f"Date: {generated_at.date().isoformat()}",
        f"Consultation ID: {result.consultation_id}",
        f"Patient: {data.patient_name or 'N/A'}",
        f"Language: {result.transcription.language.upper()}",
        f"Confidence: {_pct(result.overall_confidence)}%",
        "",
        "CONSULTATION TRANSCRIPT",
        "--------------------------",
        result.transcription.text,
        "",
    ]

    if result.translation:
        t = result.translation
        lines += [
            "TRANSLATION",
            "--------------",
            f"Original ({t.source_language.upper()}): {t.original_text}",
            f"Translated ({t.target_language.upper()}): {t.translated_text}",
            f"Translation Confidence: {_pct(t.confidence)}%",
            "",
        ]

    lines += [
        "EXTRACTED MEDICAL INFORMATION",
        "---------------------------------",
        f"Symptoms: {', '.join(data.symptoms)}",
        f"Diagnosed Conditions: {', '.join(data.diagnosed_conditions)}",
        f"Medical History: {', '.join(data.medical_history)}",
        f"Allergies: {', '.join(data.allergies)}",
        f"Current Medications: {', '.join(data.medications)}",
        f"Timeline: {data.timeline}",
        "",
    ]

    if data.vitals:
        v = data.vitals
        lines += ["VITAL SIGNS", "--------------"]
        if v.blood_pressure:
            lines.append(f"Blood Pressure: {v.blood_pressure}")
        if v.heart_rate:
            lines.append(f"Heart Rate: {v.heart_rate}")
        if v.temperature:
            lines.append(f"Temperature: {v.temperature}")
        if v.weight:
            lines.append(f"Weight: {v.weight}")
        lines.append("")

    lines += [
        "DOCTOR NOTES",
        "---------------",
        data.doctor_notes,
        "",
        "AI TREATMENT SUGGESTIONS",
        "----------------------------",
        "Recommended Medications:",
        _bullets(plan.medications),
        "",
        "Recommended Lab Tests:",
        _bullets(plan.lab_tests),
        "",
        f"Follow-up Duration: {plan.follow_up_duration}",
        "",
        "Lifestyle Advice:",
        _bullets(plan.lifestyle_advice),
        "",
        "MEDICAL DISCLAIMER",
        "---------------------",
        DISCLAIMER,
        "",
        "Generated by MediAgent AI Medical Assistant",
        f"Report ID: {result.consultation_id}",
        f"Generated on: {generated_at.isoformat()}",
        f"Confidence Score: {_pct(result.overall_confidence)}%",
    ]
    return "\n".join(lines)


def _cell(value) -> Paragraph:
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value)
    return Paragraph(escape(str(value if value is not None else "N/A")), getSampleStyleSheet()["BodyText"])


def build_pdf(report: MedicalReport) -> bytes:
    """Render a stored report to PDF bytes."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, title=f"Medical Report {report.consultation_id}")
    styles = getSampleStyleSheet()
    story = []

    story.append(Paragraph("<b>MediAgent Medical Report</b>", styles["Title"]))
    pinfo = (
        f"<b>Patient:</b> {escape(report.patient_name or 'N/A')} &nbsp;&nbsp; "
        f"<b>Consultation:</b> {escape(report.consultation_id)} &nbsp;&nbsp; "
        f"<b>Status:</b> {report.status.value} &nbsp;&nbsp; "
        f"<b>Confidence:</b> {_pct(report.confidence)}%"
    )
    story.append(Paragraph(pinfo, styles["Normal"]))
    story.append(Spacer(1, 8))

    story.append(Paragraph("<b>Transcript</b>", styles["Heading3"]))
    story.append(Paragraph(escape(report.transcription or "N/A"), styles["BodyText"]))
    story.append(Spacer(1, 8))

    for heading, section in (
        ("Extracted Information", report.extracted_data),
        ("Treatment Suggestions", report.treatment_suggestions),
    ):
        if not section:
            continue
        story.append(Paragraph(f"<b>{heading}</b>", styles["Heading3"]))
        tbl = Table(
            [["Field", "Value"]] + [[_cell(k), _cell(v)] for k, v in section.items()],
            hAlign="LEFT",
            colWidths=[130, 360],
        )
        tbl.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#eeeeee")),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]))
        story.append(tbl)
        story.append(Spacer(1, 10))

    story.append(Paragraph(f"<b>Disclaimer:</b> {DISCLAIMER}", styles["Italic"]))

    doc.build(story)
    return buf.getvalue()
