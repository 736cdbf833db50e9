"""
Record types kept in the store.

Medical side: Patient, MedicalReport, AudioRecording.
AutoFlow side: Agent, Workflow (never linked to the medical records).
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .schemas import CamelModel


class ReportStatus(str, Enum):
    DRAFT = "draft"
    COMPLETED = "completed"
    REVIEWED = "reviewed"


class RecordingStatus(str, Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class AgentStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    ERROR = "error"


class WorkflowStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    ERROR = "error"


# ---------- Medical records ----------

class PatientCreate(CamelModel):
    first_name: str
    last_name: str
    date_of_birth: str = ""
    gender: str = ""
    phone: str = ""
    email: str = ""
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: List[str] = Field(default_factory=list)
    medications: List[str] = Field(default_factory=list)
    medical_history: List[str] = Field(default_factory=list)
    insurance_provider: Optional[str] = None
    insurance_number: Optional[str] = None


class PatientUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: Optional[List[str]] = None
    medications: Optional[List[str]] = None
    medical_history: Optional[List[str]] = None
    insurance_provider: Optional[str] = None
    insurance_number: Optional[str] = None


class Patient(PatientCreate):
    id: str
    created_at: str
    updated_at: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class MedicalReportCreate(CamelModel):
    patient_id: Optional[str] = None
    patient_name: str
    consultation_id: str
    transcription: str = ""
    extracted_data: Dict[str, Any] = Field(default_factory=dict)
    treatment_suggestions: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = 0.0
    language: str = "en"
    status: ReportStatus = ReportStatus.DRAFT


class MedicalReportUpdate(CamelModel):
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    transcription: Optional[str] = None
    extracted_data: Optional[Dict[str, Any]] = None
    treatment_suggestions: Optional[Dict[str, Any]] = None
    confidence: Optional[float] = None
    language: Optional[str] = None
    status: Optional[ReportStatus] = None


class MedicalReport(MedicalReportCreate):
    id: str
    created_at: str
    updated_at: str


class AudioRecordingCreate(CamelModel):
    patient_id: Optional[str] = None
    file_name: str
    file_size: int
    duration: int = 0
    language: str = "auto"
    status: RecordingStatus = RecordingStatus.UPLOADED


class AudioRecording(AudioRecordingCreate):
    id: str
    created_at: str


# ---------- AutoFlow records ----------

class AgentCreate(CamelModel):
    name: str
    goals: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    memory_id: str = ""
    ethics: List[str] = Field(default_factory=list)
    status: AgentStatus = AgentStatus.IDLE
    user_id: Optional[str] = None


class AgentUpdate(CamelModel):
    name: Optional[str] = None
    goals: Optional[List[str]] = None
    tools: Optional[List[str]] = None
    ethics: Optional[List[str]] = None
    status: Optional[AgentStatus] = None


class Agent(AgentCreate):
    id: str
    created_at: str
    updated_at: str


class AgentConfig(CamelModel):
    goal: str
    tools: List[str] = Field(default_factory=list)
    schedule: Optional[str] = None
    triggers: Optional[List[str]] = None


class WorkflowCreate(CamelModel):
    user_id: str = "demo-user"
    title: str
    prompt_text: str = ""
    agent_config: AgentConfig
    # the generator would camelize these to "n8NJson"
    n8n_json: Dict[str, Any] = Field(default_factory=dict, alias="n8nJson")
    status: WorkflowStatus = WorkflowStatus.DRAFT
    last_run: Optional[str] = None
    n8n_workflow_id: Optional[str] = Field(default=None, alias="n8nWorkflowId")


class WorkflowUpdate(CamelModel):
    title: Optional[str] = None
    status: Optional[WorkflowStatus] = None
    n8n_json: Optional[Dict[str, Any]] = Field(default=None, alias="n8nJson")
    last_run: Optional[str] = None
    n8n_workflow_id: Optional[str] = Field(default=None, alias="n8nWorkflowId")


class Workflow(WorkflowCreate):
    id: str
    created_at: str
    updated_at: str
