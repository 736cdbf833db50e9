import logging

from .models import MedicalReport, Patient
from .records import RecordsService

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Demo patients
# ---------------------------------------------------------------------

DEMO_PATIENTS = [
    {
        "id": "1",
        "firstName": "John",
        "lastName": "Doe",
        "dateOfBirth": "1985-03-15",
        "gender": "Male",
        "phone": "+1 (555) 123-4567",
        "email": "john.doe@email.com",
        "address": "123 Main St, City, State 12345",
        "bloodType": "A+",
        "allergies": ["Penicillin"],
        "medications": ["Aspirin 81mg daily", "Lisinopril 10mg daily"],
        "medicalHistory": ["Hypertension", "Type 2 Diabetes"],
        "insuranceProvider": "Blue Cross Blue Shield",
        "insuranceNumber": "BC123456789",
        "createdAt": "2024-01-15T10:30:00Z",
        "updatedAt": "2024-01-15T10:30:00Z",
    },
    {
        "id": "2",
        "firstName": "Jane",
        "lastName": "Smith",
        "dateOfBirth": "1992-07-22",
        "gender": "Female",
        "phone": "+1 (555) 987-6543",
        "email": "jane.smith@email.com",
        "address": "456 Oak Ave, City, State 12345",
        "bloodType": "O-",
        "allergies": ["Latex"],
        "medications": ["Birth Control"],
        "medicalHistory": ["Asthma"],
        "insuranceProvider": "Aetna",
        "insuranceNumber": "AET987654321",
        "createdAt": "2024-01-14T14:15:00Z",
        "updatedAt": "2024-01-14T14:15:00Z",
    },
    {
        "id": "3",
        "firstName": "Priya",
        "lastName": "Nair",
        "dateOfBirth": "1988-11-08",
        "gender": "Female",
        "phone": "+91 98765 43210",
        "email": "priya.nair@email.com",
        "address": "Kochi, Kerala, India",
        "bloodType": "B+",
        "allergies": ["No known allergies"],
        "medications": ["Vitamin D supplements"],
        "medicalHistory": ["Migraine"],
        "createdAt": "2024-01-13T09:20:00Z",
        "updatedAt": "2024-01-13T09:20:00Z",
    },
]

# ---------------------------------------------------------------------
# Demo reports
# ---------------------------------------------------------------------

DEMO_REPORTS = [
    {
        "id": "1",
        "patientId": "1",
        "patientName": "John Doe",
        "consultationId": "CONSULT-1737518234567",
        "transcription": "Patient presents with chest pain and shortness of breath...",
        "extractedData": {
            "symptoms": ["Chest pain", "Shortness of breath"],
            "diagnosedConditions": ["Acute chest pain"],
            "medications": ["Aspirin 81mg daily"],
        },
        "treatmentSuggestions": {
            "medications": ["Nitroglycerin PRN"],
            "labTests": ["ECG", "Cardiac enzymes"],
        },
        "confidence": 0.94,
        "language": "en",
        "status": "completed",
        "createdAt": "2024-01-15T10:30:00Z",
        "updatedAt": "2024-01-15T10:30:00Z",
    },
    {
        "id": "2",
        "patientId": "2",
        "patientName": "Jane Smith",
        "consultationId": "CONSULT-1737518234568",
        "transcription": "Patient reports worsening asthma symptoms...",
        "extractedData": {
            "symptoms": ["Wheezing", "Shortness of breath"],
            "diagnosedConditions": ["Asthma exacerbation"],
            "medications": ["Albuterol inhaler"],
        },
        "treatmentSuggestions": {
            "medications": ["Increase inhaler use"],
            "labTests": ["Peak flow measurement"],
        },
        "confidence": 0.91,
        "language": "en",
        "status": "completed",
        "createdAt": "2024-01-14T14:15:00Z",
        "updatedAt": "2024-01-14T14:15:00Z",
    },
]


def seed_defaults(records: RecordsService) -> bool:
    """Load the demo patients and reports into an empty store. Returns True if seeded."""
    if not records.is_empty():
        return False

    for data in DEMO_PATIENTS:
        records.patients.add(Patient.model_validate(data))
    for data in DEMO_REPORTS:
        records.reports.add(MedicalReport.model_validate(data))

    logger.info("Seeded %d demo patients and %d demo reports.", len(DEMO_PATIENTS), len(DEMO_REPORTS))
    return True
