# mediagent/nodes/planner_node.py

from typing import Dict, List

from ..schemas import TreatmentSuggestions
from ..state import ConsultationState

"""
Treatment Suggestion Planner

A lookup table, not a reasoning engine:
- start from the ROUTINE_PLAN
- chest pain swaps in the CARDIAC_PLAN wholesale
- each further finding appends its fixed lists
- duplicates dropped, first occurrence kept

No severity weighting, no contraindication checks.
"""

# -------------------------------
# Plans
# -------------------------------

ROUTINE_PLAN: Dict[str, object] = {
    "medications": ["Symptomatic treatment as appropriate"],
    "lab_tests": ["Basic metabolic panel", "Complete blood count"],
    "follow_up": "1-2 weeks for routine follow-up",
    "lifestyle": ["Maintain healthy diet", "Regular exercise as tolerated", "Adequate rest"],
}

CARDIAC_PLAN: Dict[str, object] = {
    "medications": [
        "Nitroglycerin 0.4mg sublingual PRN",
        "Aspirin 81mg daily (if not contraindicated)",
        "Beta-blocker as appropriate",
        "ACE inhibitor for cardioprotection",
    ],
    "lab_tests": [
        "12-lead ECG immediately",
        "Cardiac enzymes (Troponin I, CK-MB)",
        "Chest X-ray",
        "Lipid profile",
        "BNP or NT-proBNP",
    ],
    "follow_up": "24-48 hours for cardiac evaluation",
    "lifestyle": [
        "Avoid strenuous activity until cleared",
        "Monitor for worsening symptoms",
        "Seek immediate care if pain worsens",
        "Cardiac rehabilitation if indicated",
    ],
}

# finding -> where to look for it, and what it adds.
# Evaluated in this order.
ADD_ON_PLANS: Dict[str, Dict[str, object]] = {
    "headache": {
        "source": "symptoms",
        "medications": ["Acetaminophen 500mg PRN headache", "Ibuprofen 400mg PRN if no contraindications"],
        "lab_tests": ["Neurological assessment if severe", "CT head if red flags present"],
        "lifestyle": ["Adequate hydration", "Stress management techniques"],
    },
    "fever": {
        "source": "symptoms",
        "medications": ["Acetaminophen/Ibuprofen for fever", "Increase fluid intake"],
        "lab_tests": ["Blood cultures if indicated", "Urinalysis", "Chest X-ray if respiratory symptoms"],
        "lifestyle": ["Rest and isolation if infectious", "Monitor temperature regularly"],
    },
    "cough": {
        "source": "symptoms",
        "medications": ["Dextromethorphan for dry cough", "Guaifenesin for productive cough"],
        "lab_tests": ["Chest X-ray", "Sputum culture if purulent"],
        "lifestyle": ["Honey for cough relief", "Humidifier use", "Avoid irritants"],
    },
    "hypertension": {
        "source": "conditions",
        "medications": ["ACE inhibitor or ARB as appropriate", "Thiazide diuretic if needed"],
        "lab_tests": ["Renal function tests", "Urinalysis", "Echocardiogram"],
        "lifestyle": ["Low sodium diet (<2g/day)", "Blood pressure monitoring", "Weight management"],
    },
    "diabetes": {
        "source": "conditions",
        "medications": ["Continue diabetes medications as prescribed", "Metformin if appropriate"],
        "lab_tests": ["HbA1c", "Fasting glucose", "Lipid profile", "Microalbumin"],
        "lifestyle": ["Diabetic diet compliance", "Blood glucose monitoring", "Foot care"],
    },
}


def _mentions(labels: List[str], term: str) -> bool:
    return any(term in label.lower() for label in labels)


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))  # unique, ordered


def generate_treatment_suggestions(symptoms: List[str], conditions: List[str]) -> TreatmentSuggestions:
    base = CARDIAC_PLAN if _mentions(symptoms, "chest pain") else ROUTINE_PLAN

    medications: List[str] = list(base["medications"])
    lab_tests: List[str] = list(base["lab_tests"])
    lifestyle: List[str] = list(base["lifestyle"])
    follow_up: str = base["follow_up"]

    sources = {"symptoms": symptoms, "conditions": conditions}
    for term, plan in ADD_ON_PLANS.items():
        if _mentions(sources[plan["source"]], term):
            medications.extend(plan["medications"])
            lab_tests.extend(plan["lab_tests"])
            lifestyle.extend(plan["lifestyle"])

    return TreatmentSuggestions(
        medications=_unique(medications),
        lab_tests=_unique(lab_tests),
        follow_up_duration=follow_up,
        lifestyle_advice=_unique(lifestyle),
    )


def planner_node(state: ConsultationState) -> ConsultationState:
    extracted = state.extracted
    symptoms = extracted.symptoms if extracted else []
    conditions = extracted.diagnosed_conditions if extracted else []

    state.suggestions = generate_treatment_suggestions(symptoms, conditions)
    state.audit_log.append(
        "Planner node: "
        f"medications={len(state.suggestions.medications)}, "
        f"lab_tests={len(state.suggestions.lab_tests)}, "
        f"follow_up={state.suggestions.follow_up_duration!r}."
    )
    return state
