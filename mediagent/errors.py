class MediAgentError(Exception):
    """Base class for errors raised by the mediagent package."""


class RecordNotFoundError(MediAgentError):
    def __init__(self, label: str, record_id: str):
        super().__init__(f"{label} not found")
        self.label = label
        self.record_id = record_id


class WorkflowImportError(MediAgentError):
    pass


class N8nError(MediAgentError):
    """An automation-runner call failed (network error or non-2xx reply)."""

    def __init__(self, message: str, status_code: int | None = None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class StorageError(MediAgentError):
    """The backing store could not be read; nothing was written."""


class InvalidRecordError(MediAgentError):
    def __init__(self, label: str, errors):
        super().__init__(f"Invalid {label.lower()} data")
        self.label = label
        self.errors = errors


class AgentBusyError(MediAgentError):
    pass
