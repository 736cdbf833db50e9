import logging
import os
import random
import time
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Dict, List, Optional

import speech_recognition as sr

from .schemas import AudioQualityReport

logger = logging.getLogger(__name__)

CANNED_TRANSCRIPTS: List[str] = [
    "Patient presents with chest pain and shortness of breath. Symptoms started 2 hours ago. "
    "No known allergies to medications. Currently taking aspirin 81mg daily for cardiovascular "
    "protection. Patient appears anxious and reports pain level 7 out of 10. Blood pressure is "
    "elevated at 150/95. Heart rate is 95 beats per minute. Patient has a history of hypertension "
    "and diabetes. Temperature is 98.6°F.",
    "Patient complains of severe headache and nausea for the past 3 days. No fever reported. "
    "Taking ibuprofen 400mg every 6 hours with minimal relief. Patient has a history of migraines. "
    "Blood pressure is normal at 120/80. No visual disturbances reported. Patient appears "
    "uncomfortable but alert.",
    "Patient reports persistent cough and fatigue for 1 week. Low-grade fever of 100.2°F. No "
    "shortness of breath at rest. Currently taking over-the-counter cough suppressant. No known "
    "allergies. Patient is a non-smoker. Chest sounds clear on examination. Heart rate is 88 bpm.",
    "Patient presents for routine diabetes follow-up. Blood glucose levels have been elevated "
    "recently. Currently taking metformin 500mg twice daily. Patient reports good adherence to "
    "diabetic diet. Blood pressure is well controlled at 125/78. No diabetic complications noted. "
    "HbA1c due for update.",
]

# Google STT locale per language code
STT_LOCALES: Dict[str, str] = {
    "en": "en-US",
    "ml": "ml-IN",
    "hi": "hi-IN",
    "ta": "ta-IN",
    "te": "te-IN",
}


class MockTranscriber:
    """Returns one of the canned consultation transcripts."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def transcribe(self, path: str, language: str = "auto") -> str:
        return self.rng.choice(CANNED_TRANSCRIPTS)


class GoogleTranscriber:
    """Speech-to-text through the Google Web Speech API (SpeechRecognition)."""

    def transcribe(self, path: str, language: str = "auto") -> str:
        recognizer = sr.Recognizer()
        locale = STT_LOCALES.get(language, "en-US")

        try:
            with sr.AudioFile(path) as source:
                audio_data = recognizer.record(source)

            text = recognizer.recognize_google(audio_data, language=locale)
            logger.info("Google STT transcription: %d chars", len(text))
            return text.strip() or "Transcription empty (no speech detected)."

        except sr.UnknownValueError:
            # Audio was heard but not understandable
            logger.warning("Google STT could not understand audio.")
            return "STT could not understand the audio clearly."
        except sr.RequestError as e:
            logger.error("Google STT request error: %r", e)
            return "STT request failed due to a network or service error."
        except ValueError as e:
            # AudioFile rejects formats it cannot decode
            logger.error("Unreadable audio file %s: %r", path, e)
            return "Transcription failed due to an internal STT error."


def build_transcriber(kind: str):
    if kind == "google":
        return GoogleTranscriber()
    if kind == "mock":
        return MockTranscriber()
    raise ValueError(f"Unknown transcriber: {kind!r}")


def estimate_duration(size_bytes: int) -> int:
    """Crude seconds estimate from upload size."""
    return size_bytes // 1000


def assess_audio_quality(size_bytes: int) -> AudioQualityReport:
    size_kb = size_bytes / 1024

    if size_kb < 100:
        return AudioQualityReport(
            quality="low",
            recommendations=[
                "Audio file is very small, may affect transcription accuracy",
                "Consider recording in a quieter environment",
                "Speak closer to the microphone",
                "Ensure minimum 30 seconds of clear speech",
            ],
        )
    if size_kb < 500:
        return AudioQualityReport(
            quality="medium",
            recommendations=[
                "Audio quality is acceptable",
                "For better results, ensure minimal background noise",
                "Speak clearly and at moderate pace",
            ],
        )
    return AudioQualityReport(
        quality="high",
        recommendations=[
            "Excellent audio quality detected",
            "Optimal for AI processing",
            "Expected high transcription accuracy",
        ],
    )


UPLOAD_CHUNK_SIZE = 1024 * 1024


async def read_upload(upload, limit: int) -> Optional[bytes]:
    """
    Read an UploadFile without buffering more than `limit` bytes.
    Returns None when the upload is larger than `limit`.
    """
    if upload.size is not None and upload.size > limit:
        return None

    chunks: List[bytes] = []
    total = 0
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


def save_upload(file_bytes: bytes, filename: Optional[str]) -> str:
    """Write an uploaded file to a temp path and return it."""
    suffix = os.path.splitext(filename or "")[1] or ".wav"
    with NamedTemporaryFile(delete=False, suffix=suffix, prefix="audio-") as tmp:
        tmp.write(file_bytes)
        return tmp.name


def remove_upload(path: str, delay: float = 0.0) -> None:
    """Delete an uploaded temp file, optionally after `delay` seconds."""
    if delay > 0:
        time.sleep(delay)
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Error cleaning up file %s: %r", path, e)
