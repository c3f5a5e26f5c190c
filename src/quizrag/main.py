"""FastAPI application entry point."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from quizrag import __version__
from quizrag.api import chat_router, quiz_router
from quizrag.config import get_settings
from quizrag.logging_config import configure_logging
from quizrag.storage import URL_PREFIX

configure_logging(os.getenv("LOG_DIR", "logs"), os.getenv("LOG_LEVEL", "INFO"))

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Quiz RAG API", version=__version__)
app.include_router(quiz_router)
app.include_router(chat_router)
_upload_dir = Path(get_settings().upload_dir)
_upload_dir.mkdir(parents=True, exist_ok=True)
app.mount(
    URL_PREFIX,
    StaticFiles(directory=str(_upload_dir)),
    name="uploads",
)


@app.on_event("startup")
async def _log_startup() -> None:
    settings = get_settings()
    LOGGER.info(
        {
            "step": "app.startup",
            "version": __version__,
            "vector_store": settings.vector_store,
            "embedder": settings.embedder,
            "llm_provider": settings.llm_provider,
        }
    )


@app.get("/api/health")
def healthcheck() -> dict[str, str]:
    """Liveness probe used by container orchestrators."""
    return {"status": "ok", "version": __version__}
