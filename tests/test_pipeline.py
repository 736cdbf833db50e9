import random

from mediagent.confidence import ConfidenceProfile, MockConfidence
from mediagent.graph import ConsultationPipeline
from mediagent.nodes.language_node import MALAYALAM_AUDIO_SAMPLE, MALAYALAM_TEXT_SAMPLE
from mediagent.tools import CANNED_TRANSCRIPTS, assess_audio_quality, estimate_duration


class FixedTranscriber:
    def __init__(self, text):
        self.text = text
        self.calls = []

    def transcribe(self, path, language="auto"):
        self.calls.append((path, language))
        return self.text


def test_text_pipeline_fills_every_section(pipeline, chest_pain_note):
    result = pipeline.process_text(chest_pain_note)
    assert result.transcription.confidence == 0.95
    assert result.extracted_data.symptoms == ["Pain", "Shortness of breath", "Chest pain"]
    assert result.treatment_suggestions.follow_up_duration == "24-48 hours for cardiac evaluation"
    assert result.translation is None


def test_audio_pipeline_uses_transcriber():
    transcriber = FixedTranscriber(CANNED_TRANSCRIPTS[1])
    pipeline = ConsultationPipeline(transcriber=transcriber)

    result = pipeline.process_audio("/tmp/x.wav", 250_000, "ml")

    assert transcriber.calls == [("/tmp/x.wav", "ml")]
    assert result.transcription.duration == 250
    assert result.transcription.language == "ml"
    assert "Headache" in result.extracted_data.symptoms
    assert result.translation.original_text == MALAYALAM_AUDIO_SAMPLE
    assert result.translation.translated_text == CANNED_TRANSCRIPTS[1]
    assert 0.94 <= result.transcription.confidence <= 0.99
    assert 0.88 <= result.overall_confidence <= 0.98


def test_results_differ_only_in_confidence(chest_pain_note):
    pipeline = ConsultationPipeline(confidence=ConfidenceProfile(rng=random.Random(1)))
    first = pipeline.process_text(chest_pain_note)
    second = pipeline.process_text(chest_pain_note)
    assert first.extracted_data == second.extracted_data
    assert first.treatment_suggestions == second.treatment_suggestions


def test_mock_confidence_is_clamped():
    assert MockConfidence(0.99, 0.5, random.Random(0))() <= 1.0
    assert MockConfidence(-1.0)() == 0.0


def test_audio_helpers():
    assert estimate_duration(4999) == 4
    assert assess_audio_quality(200 * 1024).quality == "medium"
    assert assess_audio_quality(600 * 1024).quality == "high"


def test_malayalam_text_translation_uses_first_sentence():
    result = ConsultationPipeline().process_text("Patient has chest pain", "ml")
    assert result.translation.original_text == MALAYALAM_TEXT_SAMPLE
    assert MALAYALAM_AUDIO_SAMPLE.startswith(MALAYALAM_TEXT_SAMPLE + ". ")
