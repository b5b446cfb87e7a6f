"""FastAPI application factory."""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from papertrail import __version__
from papertrail.config import Settings
from papertrail.server.errors import register_exception_handlers
from papertrail.server.routers import arxiv, chat, citations, papers, projects, upload
from papertrail.server.state import AppState
from papertrail.services.arxiv_service import ArxivService
from papertrail.services.llm_service import TextGenerator

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def health() -> dict:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    }


def create_app(
    settings: Optional[Settings] = None,
    generator: Optional[TextGenerator] = None,
    arxiv_service: Optional[ArxivService] = None,
) -> FastAPI:
    """Build the API app over the store in ``settings.data_dir``.

    Args:
        settings: Settings to use (defaults to ``Settings.load()``)
        generator: Text generator override
        arxiv_service: ArXiv client override

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings.load()

    app = FastAPI(title="PaperTrail API", version=__version__)
    app.state.papertrail = AppState(settings, generator=generator, arxiv=arxiv_service)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        logger.info("Request started: %s %s", request.method, request.url.path)
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Request completed: %s %s %d (%.0fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

    register_exception_handlers(app, settings)

    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route(f"{API_PREFIX}/health", health, methods=["GET"])
    for module in (papers, citations, chat, upload, projects, arxiv):
        app.include_router(module.router, prefix=API_PREFIX)

    return app
