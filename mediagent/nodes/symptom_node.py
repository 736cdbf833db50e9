# mediagent/nodes/symptom_node.py

import re
from typing import Dict, List, Optional

from ..schemas import ExtractedMedicalData, Vitals
from ..state import ConsultationState
from ..vocabulary import Vocabulary

"""
Entity Extraction

Reads state.raw_transcript and fills state.extracted with
symptoms / conditions / medications / allergies / timeline / vitals.

Plain substring matching against the vocabulary tables. There is no
negation handling: "no chest pain" still yields "Chest pain".
"""

NO_SYMPTOMS = "General consultation"
NO_CONDITIONS = "Assessment pending"
NO_HISTORY = "History to be reviewed"
NO_MEDICATIONS = "No medications mentioned"
NO_ALLERGIES = "No allergies mentioned"
NO_KNOWN_ALLERGIES = "No known allergies"
ALLERGIES_MENTIONED = "Drug allergies mentioned"
NO_TIMELINE = "Timeline not specified in consultation"
NO_PATIENT_NAME = "Patient Name Not Specified"

BP_PATTERN = re.compile(r"(\d{2,3})/(\d{2,3})")
HEART_RATE_PATTERN = re.compile(r"(\d{2,3})\s*bpm|heart rate.*?(\d{2,3})", re.IGNORECASE)
TEMPERATURE_PATTERN = re.compile(
    r"(\d{2,3}\.?\d?)\s*°?[fF]|temperature.*?(\d{2,3}\.?\d?)", re.IGNORECASE
)

NAME_PATTERNS = [
    re.compile(r"patient\s+(\w+\s+\w+)", re.IGNORECASE),
    re.compile(r"mr\.?\s+(\w+\s+\w+)", re.IGNORECASE),
    re.compile(r"mrs\.?\s+(\w+\s+\w+)", re.IGNORECASE),
    re.compile(r"ms\.?\s+(\w+\s+\w+)", re.IGNORECASE),
    re.compile(r"(\w+\s+\w+)\s+presents", re.IGNORECASE),
]


def match_keywords(text: str, table: Dict[str, str]) -> List[str]:
    """Labels of every table phrase found in `text` (already lowercased)."""
    return [label for phrase, label in table.items() if phrase in text]


def extract_allergies(lower_text: str, vocabulary: Vocabulary) -> List[str]:
    if any(p in lower_text for p in vocabulary.allergy_phrases):
        if "no known" in lower_text:
            return [NO_KNOWN_ALLERGIES]
        return [ALLERGIES_MENTIONED]
    return [NO_ALLERGIES]


def extract_timeline(lower_text: str, vocabulary: Vocabulary) -> str:
    for phrase in vocabulary.timeline_phrases:
        if phrase in lower_text:
            return f"Symptoms mentioned as starting {phrase}"
    return NO_TIMELINE


def extract_vitals(text: str) -> Optional[Vitals]:
    """
    Three independent regexes, first match each. The heart-rate and
    temperature fallbacks take the first number after the keyword.
    """
    vitals = Vitals()

    bp = BP_PATTERN.search(text)
    if bp:
        vitals.blood_pressure = f"{bp.group(0)} mmHg"

    hr = HEART_RATE_PATTERN.search(text)
    if hr:
        vitals.heart_rate = f"{hr.group(1) or hr.group(2)} bpm"

    temp = TEMPERATURE_PATTERN.search(text)
    if temp:
        vitals.temperature = f"{temp.group(1) or temp.group(2)}°F"

    return None if vitals.is_empty() else vitals


def extract_patient_name(text: str) -> str:
    for pattern in NAME_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(1)
    return NO_PATIENT_NAME


def doctor_notes_from(text: str) -> str:
    if len(text) > 100:
        return text[:200] + "..."
    return text


def extract_medical_data(text: str, vocabulary: Optional[Vocabulary] = None) -> ExtractedMedicalData:
    vocabulary = vocabulary or Vocabulary()
    text = text or ""
    lower_text = text.lower()

    symptoms = match_keywords(lower_text, vocabulary.symptoms)
    medications = match_keywords(lower_text, vocabulary.medications)
    conditions = match_keywords(lower_text, vocabulary.conditions)

    return ExtractedMedicalData(
        patient_name=extract_patient_name(text),
        symptoms=symptoms or [NO_SYMPTOMS],
        diagnosed_conditions=conditions or [NO_CONDITIONS],
        medical_history=list(conditions) or [NO_HISTORY],
        allergies=extract_allergies(lower_text, vocabulary),
        medications=medications or [NO_MEDICATIONS],
        timeline=extract_timeline(lower_text, vocabulary),
        doctor_notes=doctor_notes_from(text),
        vitals=extract_vitals(text),
    )


def symptom_node(state: ConsultationState, vocabulary: Optional[Vocabulary] = None) -> ConsultationState:
    extracted = extract_medical_data(state.raw_transcript or "", vocabulary)
    state.extracted = extracted
    state.audit_log.append(
        f"Symptom node: symptoms={extracted.symptoms}, conditions={extracted.diagnosed_conditions}."
    )
    return state
