"""FastAPI application factory."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from models.errors import OrchestrationError
from server.dependencies import get_config
from server.middleware import RequestIDMiddleware
from server.routes import backend, chat, health
from server.utils import error_response
from utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup/shutdown logic."""
    logger.info("FastAPI server starting up")
    settings = get_config()
    for line in settings.describe():
        logger.info(line)
    if not settings.validate():
        logger.warning("Completion backend is not usable until OLLAMA_API_KEY is fixed")

    yield

    logger.info("FastAPI server shutting down")


async def orchestration_error_handler(request: Request, exc: OrchestrationError):
    return error_response(exc)


def create_app() -> FastAPI:
    """Factory function to create FastAPI application."""
    app = FastAPI(
        title="Search-Gated Chat",
        description="Chat with Ollama models, grounded in web search when needed",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(OrchestrationError, orchestration_error_handler)

    # API routes are registered first so /api/* takes precedence over static files
    app.include_router(health.router)
    app.include_router(chat.router)
    app.include_router(backend.router)

    # Serve the browser UI from /public at the root path
    public_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "public")
    if os.path.isdir(public_dir):
        app.mount("/", StaticFiles(directory=public_dir, html=True), name="public")
    else:
        logger.warning(f"UI directory not found at {public_dir}; skipping static mount")

    return app
