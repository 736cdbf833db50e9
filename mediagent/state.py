from typing import List, Optional
from pydantic import BaseModel, Field

from .schemas import (
    ExtractedMedicalData,
    Translation,
    TreatmentSuggestions,
)


class ConsultationState(BaseModel):
    """Shared state that flows through the processing nodes."""

    declared_language: str = "auto"
    raw_transcript: Optional[str] = None       # Output of STT / text input
    audio_size_bytes: Optional[int] = None     # set when input was audio
    source: str = "text"                       # "text" | "audio"

    language: Optional[str] = None             # resolved language code
    transcription_confidence: float = 0.0
    duration: int = 0
    translation: Optional[Translation] = None

    extracted: Optional[ExtractedMedicalData] = None
    suggestions: Optional[TreatmentSuggestions] = None

    audit_log: List[str] = Field(default_factory=list)
