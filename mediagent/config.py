import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


class Settings:
    """Runtime configuration, read from the environment (and .env if present)."""

    def __init__(self, **overrides):
        self.HOST = os.getenv("MEDIAGENT_HOST", "0.0.0.0")
        self.PORT = int(os.getenv("MEDIAGENT_PORT", "3001"))
        self.LOG_LEVEL = os.getenv("MEDIAGENT_LOG_LEVEL", "INFO")

        # storage: memory | file | sql
        self.STORAGE = os.getenv("MEDIAGENT_STORAGE", "memory")
        self.DATA_DIR = Path(os.getenv("MEDIAGENT_DATA_DIR", "data"))
        self.DATABASE_URL = os.getenv("MEDIAGENT_DATABASE_URL", "sqlite:///mediagent.db")
        self.SEED_DEMO = _env_bool("MEDIAGENT_SEED_DEMO", True)

        # speech-to-text: mock | google
        self.TRANSCRIBER = os.getenv("MEDIAGENT_TRANSCRIBER", "mock")
        self.VOCABULARY_PATH = os.getenv("MEDIAGENT_VOCABULARY_PATH", "")

        # simulated processing latency, in seconds
        self.AUDIO_DELAY = _env_float("MEDIAGENT_AUDIO_DELAY", 3.0)
        self.TEXT_DELAY = _env_float("MEDIAGENT_TEXT_DELAY", 2.0)
        self.UPLOAD_CLEANUP_DELAY = _env_float("MEDIAGENT_UPLOAD_CLEANUP_DELAY", 1.0)
        self.AGENT_STEP_DELAY = _env_float("MEDIAGENT_AGENT_STEP_DELAY", 1.0)
        self.MAX_UPLOAD_MB = int(os.getenv("MEDIAGENT_MAX_UPLOAD_MB", "50"))

        self.EXPOSE_ERRORS = _env_bool("MEDIAGENT_EXPOSE_ERRORS", False)

        self.N8N_BASE_URL = os.getenv("N8N_BASE_URL", "http://localhost:5678")
        self.N8N_API_KEY = os.getenv("N8N_API_KEY", "")
        self.N8N_EMAIL = os.getenv("N8N_EMAIL", "")
        self.N8N_PASSWORD = os.getenv("N8N_PASSWORD", "")
        self.N8N_MOCK = _env_bool("N8N_MOCK", True)

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level.upper())
    logging.getLogger("httpx").setLevel(logging.WARNING)
