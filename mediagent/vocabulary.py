# mediagent/vocabulary.py

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

"""
Keyword tables used by the entity extractor.

Each table maps a lowercase phrase (matched as a substring of the
lowercased consultation text) to the label reported back. Table order
is the order labels appear in the output.
"""

SYMPTOMS: Dict[str, str] = {
    "pain": "Pain",
    "ache": "Ache",
    "fever": "Fever",
    "cough": "Cough",
    "headache": "Headache",
    "nausea": "Nausea",
    "vomiting": "Vomiting",
    "diarrhea": "Diarrhea",
    "constipation": "Constipation",
    "fatigue": "Fatigue",
    "weakness": "Weakness",
    "dizziness": "Dizziness",
    "shortness of breath": "Shortness of breath",
    "chest pain": "Chest pain",
    "abdominal pain": "Abdominal pain",
    "back pain": "Back pain",
    "sore throat": "Sore throat",
    "runny nose": "Runny nose",
    "congestion": "Congestion",
    "muscle aches": "Muscle aches",
    "joint pain": "Joint pain",
}

MEDICATIONS: Dict[str, str] = {
    "aspirin": "Aspirin (as mentioned)",
    "ibuprofen": "Ibuprofen (as mentioned)",
    "acetaminophen": "Acetaminophen (as mentioned)",
    "metformin": "Metformin (as mentioned)",
    "lisinopril": "Lisinopril (as mentioned)",
    "atorvastatin": "Atorvastatin (as mentioned)",
    "omeprazole": "Omeprazole (as mentioned)",
    "levothyroxine": "Levothyroxine (as mentioned)",
    "amlodipine": "Amlodipine (as mentioned)",
    "metoprolol": "Metoprolol (as mentioned)",
    "insulin": "Insulin (as mentioned)",
    "warfarin": "Warfarin (as mentioned)",
    "prednisone": "Prednisone (as mentioned)",
    "albuterol": "Albuterol (as mentioned)",
    "hydrochlorothiazide": "Hydrochlorothiazide (as mentioned)",
}

CONDITIONS: Dict[str, str] = {
    "hypertension": "Hypertension",
    "diabetes": "Diabetes",
    "asthma": "Asthma",
    "arthritis": "Arthritis",
    "depression": "Depression",
    "anxiety": "Anxiety",
    "migraine": "Migraine",
    "allergies": "Allergies",
    "heart disease": "Heart disease",
    "kidney disease": "Kidney disease",
    "high blood pressure": "High blood pressure",
    "type 2 diabetes": "Type 2 diabetes",
    "coronary artery disease": "Coronary artery disease",
}

ALLERGY_PHRASES: List[str] = ["allergic to", "allergy", "allergies", "no known allergies"]

TIMELINE_PHRASES: List[str] = ["hours ago", "days ago", "weeks ago", "months ago", "years ago"]


class Vocabulary(BaseModel):
    symptoms: Dict[str, str] = Field(default_factory=lambda: dict(SYMPTOMS))
    medications: Dict[str, str] = Field(default_factory=lambda: dict(MEDICATIONS))
    conditions: Dict[str, str] = Field(default_factory=lambda: dict(CONDITIONS))
    allergy_phrases: List[str] = Field(default_factory=lambda: list(ALLERGY_PHRASES))
    timeline_phrases: List[str] = Field(default_factory=lambda: list(TIMELINE_PHRASES))


def load_vocabulary(path: Optional[str] = None) -> Vocabulary:
    """
    Default tables, with any tables present in the JSON file at `path`
    replacing the defaults (e.g. {"medications": {"paracetamol": "Paracetamol"}}).
    """
    if not path:
        return Vocabulary()

    with Path(path).open("r", encoding="utf-8") as f:
        overrides = json.load(f)

    vocab = Vocabulary(**overrides)
    logger.info("Loaded vocabulary overrides from %s: %s", path, sorted(overrides))
    return vocab
