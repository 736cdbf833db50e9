from datetime import datetime, timezone

from mediagent.graph import ConsultationPipeline
from mediagent.models import MedicalReport
from mediagent.report import DISCLAIMER, build_pdf, render_text_report


def test_text_report_sections(pipeline, chest_pain_note):
    result = pipeline.process_text(chest_pain_note, "auto")
    text = render_text_report(result, generated_at=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))

    assert text.startswith("MediAgent Medical Report")
    assert "Date: 2024-03-01" in text
    assert f"Consultation ID: {result.consultation_id}" in text
    assert "Language: EN" in text
    assert "Symptoms: Pain, Shortness of breath, Chest pain" in text
    assert "• Nitroglycerin 0.4mg sublingual PRN" in text
    assert "TRANSLATION" not in text
    assert DISCLAIMER in text


def test_text_report_with_translation(pipeline):
    result = pipeline.process_text("Patient has fever", "ml")
    text = render_text_report(result)
    assert "Original (ML):" in text
    assert "Translated (EN): Patient has fever" in text


def test_text_report_without_vitals():
    result = ConsultationPipeline().process_text("Routine visit", "en")
    assert "VITAL SIGNS" not in render_text_report(result)


def test_pdf_is_rendered():
    report = MedicalReport(
        id="1",
        patient_name="Jane <Smith>",
        consultation_id="CONSULT-1",
        transcription="Cough & cold",
        extracted_data={"symptoms": ["Cough"]},
        treatment_suggestions={},
        confidence=0.9,
        created_at="2024-01-01T00:00:00Z",
        updated_at="2024-01-01T00:00:00Z",
    )
    pdf = build_pdf(report)
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 500
