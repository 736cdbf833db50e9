from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class TranscriptionResult(CamelModel):
    text: str
    language: str
    confidence: float = Field(ge=0.0, le=1.0)
    duration: int = 0                          # seconds, estimated


class Translation(CamelModel):
    original_text: str
    translated_text: str
    source_language: str
    target_language: str
    confidence: float = Field(ge=0.0, le=1.0)


class Vitals(CamelModel):
    blood_pressure: Optional[str] = None       # "150/95 mmHg"
    heart_rate: Optional[str] = None           # "95 bpm"
    temperature: Optional[str] = None          # "98.6°F"
    weight: Optional[str] = None

    def is_empty(self) -> bool:
        return not any((self.blood_pressure, self.heart_rate, self.temperature, self.weight))


class ExtractedMedicalData(CamelModel):
    patient_name: Optional[str] = None
    symptoms: List[str] = Field(default_factory=list)
    diagnosed_conditions: List[str] = Field(default_factory=list)
    medical_history: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    medications: List[str] = Field(default_factory=list)
    timeline: str = ""
    doctor_notes: str = ""
    vitals: Optional[Vitals] = None


class TreatmentSuggestions(CamelModel):
    medications: List[str] = Field(default_factory=list)
    lab_tests: List[str] = Field(default_factory=list)
    follow_up_duration: str = ""
    lifestyle_advice: List[str] = Field(default_factory=list)


class ProcessingResult(CamelModel):
    transcription: TranscriptionResult
    translation: Optional[Translation] = None
    extracted_data: ExtractedMedicalData
    treatment_suggestions: TreatmentSuggestions
    overall_confidence: float = Field(ge=0.0, le=1.0)
    consultation_id: str


# ---------- Request bodies ----------

class ProcessTextRequest(BaseModel):
    text: Optional[str] = None
    language: str = "auto"


class AudioQualityReport(CamelModel):
    quality: str                               # low | medium | high
    recommendations: List[str]


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str
    version: str
