import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import (
    BackgroundTasks,
    FastAPI,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
)
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .autoflow import api as autoflow_api
from .autoflow.agent_runner import AgentRunner
from .autoflow.n8n_client import WorkflowDeployer, build_n8n_client
from .config import Settings, configure_logging
from .errors import (
    AgentBusyError,
    InvalidRecordError,
    RecordNotFoundError,
    StorageError,
    WorkflowImportError,
)
from .graph import ConsultationPipeline
from .models import (
    AudioRecording,
    AudioRecordingCreate,
    MedicalReport,
    MedicalReportCreate,
    MedicalReportUpdate,
    Patient,
    PatientCreate,
    PatientUpdate,
    RecordingStatus,
)
from .records import RecordsService
from .report import build_pdf, render_text_report
from .schemas import (
    AudioQualityReport,
    HealthResponse,
    ProcessingResult,
    ProcessTextRequest,
)
from .seed_demo import seed_defaults
from .storage import build_repository
from .tools import (
    assess_audio_quality,
    build_transcriber,
    read_upload,
    remove_upload,
    save_upload,
)
from .vocabulary import load_vocabulary

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def _records(request: Request) -> RecordsService:
    return request.app.state.records


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _error(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    body = {"error": error}
    if message is not None:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return _error(404, "Not found", f"Route {request.method} {request.url.path} not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(RecordNotFoundError)
    async def not_found(request: Request, exc: RecordNotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(WorkflowImportError)
    async def bad_workflow(request: Request, exc: WorkflowImportError):
        return _error(400, str(exc))

    @app.exception_handler(InvalidRecordError)
    async def invalid_record(request: Request, exc: InvalidRecordError):
        return JSONResponse(
            status_code=400,
            content={"error": str(exc), "details": jsonable_encoder(exc.errors)},
        )

    @app.exception_handler(AgentBusyError)
    async def agent_busy(request: Request, exc: AgentBusyError):
        return _error(409, str(exc))

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return _error(503, "Storage unavailable", str(exc) if request.app.state.settings.EXPOSE_ERRORS else None)

    @app.exception_handler(Exception)
    async def server_error(request: Request, exc: Exception):
        logger.exception("Server error on %s %s", request.method, request.url.path)
        message = str(exc) if request.app.state.settings.EXPOSE_ERRORS else None
        return _error(500, "Internal server error", message)


def register_medical_routes(app: FastAPI) -> None:
    @app.get("/api/health", response_model=HealthResponse)
    def health():
        return {
            "status": "OK",
            "message": "MediAgent API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": API_VERSION,
        }

    @app.post("/api/process-audio", response_model=ProcessingResult, response_model_exclude_none=True)
    async def process_audio(
        request: Request,
        background: BackgroundTasks,
        audio: Optional[UploadFile] = File(None),
        language: str = Form("auto"),
    ):
        settings = _settings(request)
        if audio is None:
            raise HTTPException(status_code=400, detail="No audio file provided")
        if not (audio.content_type or "").startswith("audio/"):
            raise HTTPException(status_code=400, detail="Only audio files are allowed!")

        file_bytes = await read_upload(audio, settings.max_upload_bytes)
        if file_bytes is None:
            raise HTTPException(
                status_code=413,
                detail=f"Audio file exceeds {settings.MAX_UPLOAD_MB}MB limit",
            )

        tmp_path = save_upload(file_bytes, audio.filename)
        logger.info("Processing audio file: %s (%d bytes), language: %s", audio.filename, len(file_bytes), language)

        try:
            if settings.AUDIO_DELAY > 0:
                await asyncio.sleep(settings.AUDIO_DELAY)

            pipeline: ConsultationPipeline = request.app.state.pipeline
            result = await asyncio.to_thread(pipeline.process_audio, tmp_path, len(file_bytes), language)
        except BaseException:
            remove_upload(tmp_path)
            raise
        background.add_task(remove_upload, tmp_path, settings.UPLOAD_CLEANUP_DELAY)

        _records(request).recordings.create(
            AudioRecordingCreate(
                file_name=audio.filename or "consultation.wav",
                file_size=len(file_bytes),
                duration=result.transcription.duration,
                language=language,
                status=RecordingStatus.COMPLETED,
            )
        )
        return result

    @app.post("/api/process-text", response_model=ProcessingResult, response_model_exclude_none=True)
    async def process_text(req: ProcessTextRequest, request: Request):
        if not req.text or not req.text.strip():
            raise HTTPException(status_code=400, detail="No text provided")

        logger.info("Processing text input, language: %s", req.language)
        settings = _settings(request)
        if settings.TEXT_DELAY > 0:
            await asyncio.sleep(settings.TEXT_DELAY)

        return request.app.state.pipeline.process_text(req.text, req.language)

    @app.post("/api/audio-quality", response_model=AudioQualityReport)
    async def audio_quality(audio: UploadFile = File(...)):
        data = await audio.read()
        return assess_audio_quality(len(data))

    @app.post("/api/render-report", response_class=PlainTextResponse)
    def render_report(result: ProcessingResult):
        return render_text_report(result)

    # ---------- patients ----------

    @app.get("/api/patients", response_model=List[Patient])
    def list_patients(request: Request, q: Optional[str] = Query(None)):
        patients = _records(request).patients
        return patients.search(q) if q else patients.list()

    @app.post("/api/patients", response_model=Patient)
    def create_patient(data: PatientCreate, request: Request):
        return _records(request).patients.create(data)

    @app.get("/api/patients/{patient_id}", response_model=Patient)
    def get_patient(patient_id: str, request: Request):
        return _records(request).patients.get(patient_id)

    @app.put("/api/patients/{patient_id}", response_model=Patient)
    def update_patient(patient_id: str, changes: PatientUpdate, request: Request):
        return _records(request).patients.update(patient_id, changes)

    @app.delete("/api/patients/{patient_id}")
    def delete_patient(patient_id: str, request: Request):
        # deleting an unknown id is not an error
        deleted = _records(request).patients.delete(patient_id)
        return {"status": "ok", "deleted": deleted}

    # ---------- reports ----------

    @app.get("/api/reports", response_model=List[MedicalReport])
    def list_reports(request: Request, q: Optional[str] = Query(None)):
        reports = _records(request).reports
        return reports.search(q) if q else reports.list()

    @app.post("/api/reports", response_model=MedicalReport)
    def create_report(data: MedicalReportCreate, request: Request):
        return _records(request).reports.create(data)

    @app.get("/api/reports/{report_id}", response_model=MedicalReport)
    def get_report(report_id: str, request: Request):
        return _records(request).reports.get(report_id)

    @app.put("/api/reports/{report_id}", response_model=MedicalReport)
    def update_report(report_id: str, changes: MedicalReportUpdate, request: Request):
        return _records(request).reports.update(report_id, changes)

    @app.get("/api/reports/{report_id}/pdf")
    def report_pdf(report_id: str, request: Request):
        report = _records(request).reports.get(report_id)
        return Response(
            content=build_pdf(report),
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{report.consultation_id}.pdf"'},
        )

    # ---------- recordings / stats ----------

    @app.get("/api/recordings", response_model=List[AudioRecording])
    def list_recordings(request: Request):
        return _records(request).recordings.list()

    @app.post("/api/recordings", response_model=AudioRecording)
    def create_recording(data: AudioRecordingCreate, request: Request):
        return _records(request).recordings.create(data)

    @app.get("/api/statistics")
    def statistics(request: Request):
        return _records(request).statistics()


def create_app(
    settings: Optional[Settings] = None,
    records: Optional[RecordsService] = None,
    pipeline: Optional[ConsultationPipeline] = None,
    n8n_client=None,
) -> FastAPI:
    """
    Build the API. Every collaborator is constructed here (or passed in),
    never at import time.
    """
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    if records is None:
        records = RecordsService(build_repository(settings))
        if settings.SEED_DEMO:
            seed_defaults(records)

    if pipeline is None:
        pipeline = ConsultationPipeline(
            transcriber=build_transcriber(settings.TRANSCRIBER),
            vocabulary=load_vocabulary(settings.VOCABULARY_PATH),
        )

    app = FastAPI(title="MediAgent API", version=API_VERSION)
    app.state.settings = settings
    app.state.records = records
    app.state.pipeline = pipeline
    app.state.deployer = WorkflowDeployer(n8n_client or build_n8n_client(settings))
    app.state.agent_runner = AgentRunner(records, step_delay=settings.AGENT_STEP_DELAY)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    register_medical_routes(app)
    app.include_router(autoflow_api.router, prefix="/api/autoflow", tags=["AutoFlow"])

    logger.info("MediAgent API ready (storage=%s, transcriber=%s)", settings.STORAGE, settings.TRANSCRIBER)
    return app
