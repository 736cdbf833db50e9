import uvicorn

from .app import create_app
from .config import Settings

app = create_app()


def run() -> None:
    settings = Settings()
    uvicorn.run("mediagent.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
