import random

import pytest
from fastapi.testclient import TestClient

from mediagent.app import create_app
from mediagent.autoflow.n8n_client import MockN8nClient
from mediagent.config import Settings
from mediagent.confidence import ConfidenceProfile
from mediagent.graph import ConsultationPipeline
from mediagent.records import RecordsService
from mediagent.storage import MemoryRepository
from mediagent.tools import MockTranscriber


@pytest.fixture
def settings():
    return Settings(
        STORAGE="memory",
        SEED_DEMO=False,
        TRANSCRIBER="mock",
        AUDIO_DELAY=0,
        TEXT_DELAY=0,
        UPLOAD_CLEANUP_DELAY=0,
        AGENT_STEP_DELAY=0,
        N8N_MOCK=True,
        EXPOSE_ERRORS=False,
    )


@pytest.fixture
def records():
    return RecordsService(MemoryRepository())


@pytest.fixture
def pipeline():
    rng = random.Random(7)
    return ConsultationPipeline(
        transcriber=MockTranscriber(rng=rng),
        confidence=ConfidenceProfile(rng=rng),
    )


@pytest.fixture
def app(settings, records, pipeline):
    return create_app(settings, records=records, pipeline=pipeline, n8n_client=MockN8nClient())


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


CHEST_PAIN_NOTE = (
    "Patient presents with chest pain and shortness of breath. Symptoms started 2 hours ago. "
    "No known allergies to medications. Currently taking aspirin 81mg daily. "
    "Blood pressure is elevated at 150/95. Heart rate is 95 beats per minute. "
    "Patient has a history of hypertension and diabetes. Temperature is 98.6°F."
)


@pytest.fixture
def chest_pain_note():
    return CHEST_PAIN_NOTE
