"""
Record services on top of a storage Repository.

One RecordsService per app; it owns typed access to every collection
(patients, reports, recordings, agents, workflows) regardless of which
backend is configured.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import InvalidRecordError, RecordNotFoundError
from .models import (
    Agent,
    AudioRecording,
    MedicalReport,
    Patient,
    ReportStatus,
    Workflow,
)
from .storage import Repository, generate_id, now_iso

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def _dump(model: BaseModel, **kwargs) -> Dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json", **kwargs)


class Collection(Generic[T]):
    """Typed CRUD + search over one repository collection."""

    def __init__(
        self,
        repo: Repository,
        name: str,
        model: Type[T],
        label: str,
        search_fields: List[str],
        exact_case_fields: Optional[List[str]] = None,
        track_updates: bool = True,
    ):
        self.repo = repo
        self.name = name
        self.model = model
        self.label = label
        self.search_fields = search_fields
        self.exact_case_fields = exact_case_fields or []
        self.track_updates = track_updates

    def create(self, data: BaseModel) -> T:
        now = now_iso()
        record = {**_dump(data), "id": generate_id(), "createdAt": now}
        if self.track_updates:
            record["updatedAt"] = now
        stored = self.repo.create(self.name, record)
        logger.info("Created %s %s", self.label.lower(), stored["id"])
        return self.model.model_validate(stored)

    def add(self, record: T) -> T:
        """Store a fully formed record as-is (ids and timestamps included)."""
        stored = self.repo.create(self.name, _dump(record))
        return self.model.model_validate(stored)

    def get(self, record_id: str) -> T:
        rec = self.repo.get(self.name, record_id)
        if rec is None:
            raise RecordNotFoundError(self.label, record_id)
        return self.model.model_validate(rec)

    def list(self) -> List[T]:
        return [self.model.model_validate(r) for r in self.repo.list(self.name)]

    def update(self, record_id: str, changes: BaseModel) -> T:
        current = self.repo.get(self.name, record_id)
        if current is None:
            raise RecordNotFoundError(self.label, record_id)

        patch = _dump(changes, exclude_unset=True)
        if self.track_updates:
            patch["updatedAt"] = now_iso()
        # an explicit null on a required field must not reach the store
        try:
            self.model.model_validate({**current, **patch})
        except ValidationError as e:
            raise InvalidRecordError(self.label, e.errors(include_url=False)) from e

        rec = self.repo.update(self.name, record_id, patch)
        if rec is None:
            raise RecordNotFoundError(self.label, record_id)
        return self.model.model_validate(rec)

    def delete(self, record_id: str) -> bool:
        deleted = self.repo.delete(self.name, record_id)
        if deleted:
            logger.info("Deleted %s %s", self.label.lower(), record_id)
        return deleted

    def search(self, query: str) -> List[T]:
        rows = self.repo.search(self.name, query, self.search_fields, self.exact_case_fields)
        return [self.model.model_validate(r) for r in rows]

    def count(self) -> int:
        return len(self.repo.list(self.name))

    def clear(self) -> None:
        self.repo.clear(self.name)


class RecordsService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.patients: Collection[Patient] = Collection(
            repo, "patients", Patient, "Patient",
            search_fields=["firstName", "lastName", "email"],
            exact_case_fields=["phone"],
        )
        self.reports: Collection[MedicalReport] = Collection(
            repo, "reports", MedicalReport, "Report",
            search_fields=["patientName", "consultationId", "transcription"],
        )
        self.recordings: Collection[AudioRecording] = Collection(
            repo, "recordings", AudioRecording, "Recording",
            search_fields=["fileName", "patientId"],
            track_updates=False,
        )
        self.agents: Collection[Agent] = Collection(
            repo, "agents", Agent, "Agent",
            search_fields=["name"],
        )
        self.workflows: Collection[Workflow] = Collection(
            repo, "workflows", Workflow, "Workflow",
            search_fields=["title", "promptText"],
        )

    def statistics(self, today: Optional[datetime] = None) -> Dict[str, Any]:
        today = (today or datetime.now(timezone.utc)).date()
        reports = self.reports.list()

        def _day(iso: str):
            return datetime.fromisoformat(iso.replace("Z", "+00:00")).date()

        today_reports = [r for r in reports if _day(r.created_at) == today]
        completed = [r for r in reports if r.status == ReportStatus.COMPLETED]
        avg_confidence = (
            sum(r.confidence for r in completed) / len(completed) if completed else 0.0
        )

        return {
            "totalPatients": self.patients.count(),
            "totalReports": len(reports),
            "todayReports": len(today_reports),
            "totalRecordings": self.recordings.count(),
            "averageConfidence": round(avg_confidence * 100),
            "completedReports": len(completed),
            "pendingReports": len([r for r in reports if r.status == ReportStatus.DRAFT]),
        }

    def is_empty(self) -> bool:
        return self.patients.count() == 0 and self.reports.count() == 0

    def clear_all(self) -> None:
        for collection in (self.patients, self.reports, self.recordings, self.agents, self.workflows):
            collection.clear()
