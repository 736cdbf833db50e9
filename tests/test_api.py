import asyncio
import io
import os

from fastapi import UploadFile
from fastapi.testclient import TestClient

from mediagent.app import create_app
from mediagent.config import Settings
from mediagent.nodes.language_node import MALAYALAM_TEXT_SAMPLE
from mediagent.tools import CANNED_TRANSCRIPTS, read_upload, save_upload


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "OK"
    assert body["version"] == "1.0.0"


def test_unknown_route(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"error": "Not found", "message": "Route GET /api/nothing-here not found"}


# ---------- processing ----------

def test_process_text(client, chest_pain_note):
    r = client.post("/api/process-text", json={"text": chest_pain_note, "language": "auto"})
    assert r.status_code == 200
    body = r.json()

    assert body["transcription"]["text"] == chest_pain_note
    assert body["transcription"]["language"] == "en"
    assert body["transcription"]["duration"] == 0
    assert "translation" not in body
    assert "Chest pain" in body["extractedData"]["symptoms"]
    assert body["extractedData"]["vitals"]["bloodPressure"] == "150/95 mmHg"
    assert "Nitroglycerin 0.4mg sublingual PRN" in body["treatmentSuggestions"]["medications"]
    assert body["treatmentSuggestions"]["followUpDuration"] == "24-48 hours for cardiac evaluation"
    assert body["consultationId"].startswith("CONSULT-")
    assert 0.85 <= body["overallConfidence"] <= 0.95


def test_process_text_requires_text(client):
    for payload in ({}, {"text": ""}, {"text": "   "}):
        r = client.post("/api/process-text", json=payload)
        assert r.status_code == 400
        assert r.json() == {"error": "No text provided"}


def test_process_text_malayalam_translation(client):
    r = client.post("/api/process-text", json={"text": "Patient has fever", "language": "ml"})
    body = r.json()
    assert body["transcription"]["language"] == "ml"
    assert body["translation"]["originalText"] == MALAYALAM_TEXT_SAMPLE
    assert body["translation"]["translatedText"] == "Patient has fever"
    assert body["translation"]["targetLanguage"] == "en"


def test_process_text_detects_script(client):
    r = client.post("/api/process-text", json={"text": "രോഗിക്ക് പനി"})
    assert r.json()["transcription"]["language"] == "ml"


def test_process_audio(client, records):
    audio = io.BytesIO(b"\x00" * 4000)
    r = client.post(
        "/api/process-audio",
        files={"audio": ("visit.wav", audio, "audio/wav")},
        data={"language": "auto"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["transcription"]["text"] in CANNED_TRANSCRIPTS
    assert body["transcription"]["duration"] == 4
    assert body["transcription"]["language"] == "en"

    recordings = records.recordings.list()
    assert len(recordings) == 1
    assert recordings[0].file_name == "visit.wav"
    assert recordings[0].file_size == 4000


def test_process_audio_rejects_non_audio(client):
    r = client.post("/api/process-audio", files={"audio": ("notes.txt", io.BytesIO(b"hi"), "text/plain")})
    assert r.status_code == 400
    assert r.json() == {"error": "Only audio files are allowed!"}


def test_process_audio_requires_file(client):
    r = client.post("/api/process-audio", data={"language": "en"})
    assert r.status_code == 400
    assert r.json() == {"error": "No audio file provided"}


def test_process_audio_size_limit(client, app):
    app.state.settings.MAX_UPLOAD_MB = 0
    r = client.post("/api/process-audio", files={"audio": ("a.wav", io.BytesIO(b"x" * 10), "audio/wav")})
    assert r.status_code == 413


def test_process_audio_removes_upload_when_pipeline_fails(client, app, monkeypatch):
    saved = []

    def recording_save(file_bytes, filename):
        path = save_upload(file_bytes, filename)
        saved.append(path)
        return path

    class Broken:
        def process_audio(self, audio_path, size_bytes, language):
            raise RuntimeError("decoder crashed")

    monkeypatch.setattr("mediagent.app.save_upload", recording_save)
    app.state.pipeline = Broken()

    r = client.post("/api/process-audio", files={"audio": ("a.wav", io.BytesIO(b"x" * 100), "audio/wav")})
    assert r.status_code == 500
    assert len(saved) == 1
    assert not os.path.exists(saved[0])


def test_read_upload_stops_past_limit():
    def upload(data):
        return UploadFile(file=io.BytesIO(data), filename="a.wav")

    assert asyncio.run(read_upload(upload(b"x" * 10), 10)) == b"x" * 10
    assert asyncio.run(read_upload(upload(b"x" * 11), 10)) is None
    assert asyncio.run(read_upload(upload(b""), 10)) == b""


def test_read_upload_trusts_declared_size():
    big = UploadFile(file=io.BytesIO(b"x"), filename="a.wav", size=5000)
    assert asyncio.run(read_upload(big, 100)) is None


def test_audio_quality(client):
    r = client.post("/api/audio-quality", files={"audio": ("a.wav", io.BytesIO(b"x" * 1024), "audio/wav")})
    assert r.json()["quality"] == "low"


def test_render_report(client, chest_pain_note):
    result = client.post("/api/process-text", json={"text": chest_pain_note}).json()
    r = client.post("/api/render-report", json=result)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert "MediAgent Medical Report" in r.text
    assert result["consultationId"] in r.text
    assert "Blood Pressure: 150/95 mmHg" in r.text


def test_unexpected_errors_are_hidden(client, app):
    class Broken:
        def process_text(self, text, language):
            raise RuntimeError("database password is hunter2")

    app.state.pipeline = Broken()
    r = client.post("/api/process-text", json={"text": "cough"})
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}

    app.state.settings.EXPOSE_ERRORS = True
    r = client.post("/api/process-text", json={"text": "cough"})
    assert r.json()["message"] == "database password is hunter2"


# ---------- records ----------

def test_patient_crud(client):
    r = client.post("/api/patients", json={"firstName": "Asha", "lastName": "Menon", "phone": "+91 555"})
    assert r.status_code == 200
    patient = r.json()
    pid = patient["id"]
    assert patient["createdAt"]

    assert client.get(f"/api/patients/{pid}").json()["firstName"] == "Asha"

    r = client.put(f"/api/patients/{pid}", json={"email": "asha@example.com"})
    assert r.json()["email"] == "asha@example.com"
    assert r.json()["lastName"] == "Menon"

    assert [p["id"] for p in client.get("/api/patients", params={"q": "asha@"}).json()] == [pid]

    assert client.delete(f"/api/patients/{pid}").json()["deleted"] is True
    r = client.get(f"/api/patients/{pid}")
    assert r.status_code == 404
    assert r.json() == {"error": "Patient not found"}


def test_patient_validation(client):
    r = client.post("/api/patients", json={"lastName": "NoFirst"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"


def test_patient_update_rejects_null_required_field(client):
    pid = client.post("/api/patients", json={"firstName": "Asha", "lastName": "Menon"}).json()["id"]

    r = client.put(f"/api/patients/{pid}", json={"firstName": None})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid patient data"

    r = client.get("/api/patients")
    assert r.status_code == 200
    assert r.json()[0]["firstName"] == "Asha"


def test_corrupt_store_returns_503(tmp_path, pipeline):
    (tmp_path / "patients.json").write_text("{broken", encoding="utf-8")
    settings = Settings(
        STORAGE="file",
        DATA_DIR=tmp_path,
        SEED_DEMO=False,
        TEXT_DELAY=0,
        AUDIO_DELAY=0,
        AGENT_STEP_DELAY=0,
        N8N_MOCK=True,
        EXPOSE_ERRORS=False,
    )
    with TestClient(create_app(settings, pipeline=pipeline), raise_server_exceptions=False) as c:
        r = c.get("/api/patients")
        assert r.status_code == 503
        assert r.json() == {"error": "Storage unavailable"}

        r = c.post("/api/patients", json={"firstName": "Asha", "lastName": "Menon"})
        assert r.status_code == 503
    assert (tmp_path / "patients.json").read_text(encoding="utf-8") == "{broken"


def test_reports_and_pdf(client):
    r = client.post(
        "/api/reports",
        json={
            "patientName": "Asha Menon",
            "consultationId": "CONSULT-42",
            "transcription": "Mild cough",
            "extractedData": {"symptoms": ["Cough"]},
            "treatmentSuggestions": {"labTests": ["Chest X-ray"]},
            "confidence": 0.9,
        },
    )
    report = r.json()
    assert report["status"] == "draft"

    r = client.put(f"/api/reports/{report['id']}", json={"status": "completed"})
    assert r.json()["status"] == "completed"

    assert len(client.get("/api/reports", params={"q": "consult-42"}).json()) == 1

    r = client.get(f"/api/reports/{report['id']}/pdf")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")

    assert client.get("/api/reports/missing/pdf").status_code == 404


def test_statistics(client):
    client.post("/api/reports", json={"patientName": "A", "consultationId": "C-1", "status": "completed", "confidence": 0.8})
    stats = client.get("/api/statistics").json()
    assert stats["totalReports"] == 1
    assert stats["todayReports"] == 1
    assert stats["averageConfidence"] == 80


def test_recordings(client):
    r = client.post("/api/recordings", json={"fileName": "x.webm", "fileSize": 10})
    assert r.json()["status"] == "uploaded"
    assert len(client.get("/api/recordings").json()) == 1
