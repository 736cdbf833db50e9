from datetime import datetime, timezone

import pytest

from mediagent.errors import InvalidRecordError, RecordNotFoundError
from mediagent.models import (
    MedicalReportCreate,
    MedicalReportUpdate,
    PatientCreate,
    PatientUpdate,
    ReportStatus,
)
from mediagent.seed_demo import DEMO_PATIENTS, DEMO_REPORTS, seed_defaults


def test_create_assigns_id_and_timestamps(records):
    patient = records.patients.create(PatientCreate(first_name="Asha", last_name="Menon"))
    assert patient.id
    assert patient.created_at == patient.updated_at
    assert patient.full_name == "Asha Menon"


def test_update_patches_only_given_fields(records):
    patient = records.patients.create(PatientCreate(first_name="Asha", last_name="Menon", phone="123"))
    updated = records.patients.update(patient.id, PatientUpdate(phone="456"))
    assert updated.phone == "456"
    assert updated.first_name == "Asha"


def test_missing_records_raise(records):
    with pytest.raises(RecordNotFoundError) as exc:
        records.patients.get("nope")
    assert str(exc.value) == "Patient not found"

    with pytest.raises(RecordNotFoundError):
        records.reports.update("nope", MedicalReportUpdate(status=ReportStatus.REVIEWED))


def test_seed_defaults_only_once(records):
    assert seed_defaults(records) is True
    assert seed_defaults(records) is False
    assert records.patients.count() == len(DEMO_PATIENTS)
    assert records.reports.count() == len(DEMO_REPORTS)
    assert records.patients.get("3").first_name == "Priya"


def test_patient_search(records):
    seed_defaults(records)
    assert [p.id for p in records.patients.search("smith")] == ["2"]
    assert [p.id for p in records.patients.search("+91")] == ["3"]


def test_statistics(records):
    seed_defaults(records)
    records.reports.create(
        MedicalReportCreate(patient_name="New", consultation_id="CONSULT-1", confidence=0.5)
    )

    stats = records.statistics(today=datetime(2024, 1, 15, tzinfo=timezone.utc))
    assert stats["totalPatients"] == 3
    assert stats["totalReports"] == 3
    assert stats["todayReports"] == 1
    assert stats["completedReports"] == 2
    assert stats["pendingReports"] == 1
    assert stats["averageConfidence"] == round((0.94 + 0.91) / 2 * 100)


def test_new_report_defaults(records):
    report = records.reports.create(MedicalReportCreate(patient_name="A", consultation_id="C"))
    assert report.status == ReportStatus.DRAFT
    assert records.reports.search("c")[0].id == report.id


def test_update_rejects_null_on_required_field(records):
    patient = records.patients.create(PatientCreate(first_name="Asha", last_name="Menon"))

    with pytest.raises(InvalidRecordError) as exc:
        records.patients.update(patient.id, PatientUpdate(first_name=None))
    assert str(exc.value) == "Invalid patient data"
    assert exc.value.errors[0]["loc"] == ("firstName",)

    # store untouched, list still readable
    assert records.patients.get(patient.id).first_name == "Asha"
    assert [p.id for p in records.patients.list()] == [patient.id]


def test_update_allows_null_on_optional_field(records):
    patient = records.patients.create(PatientCreate(first_name="Asha", last_name="Menon", address="Kochi"))
    updated = records.patients.update(patient.id, PatientUpdate(address=None))
    assert updated.address is None
