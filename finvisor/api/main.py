"""
FastAPI Application
==================

Main FastAPI application for the Finvisor appeal service: provider-backed
REST endpoints under ``/api`` and the scripted wizard.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog
import uvicorn

from finvisor.api.responses import fail
from finvisor.api.routes import (
    analytics,
    appeal,
    chat,
    documents,
    health,
    payment,
    research,
    strategy,
    submit,
    wizard,
    zoom,
)
from finvisor.config.settings import get_settings
from finvisor.config.logging import get_logger
from finvisor.core.providers.anthropic_client import close_anthropic_client
from finvisor.core.providers.browserbase import close_browserbase_client
from finvisor.core.providers.decagon import close_decagon_client
from finvisor.core.providers.fetchai import close_fetchai_client
from finvisor.core.providers.modal import close_modal_client
from finvisor.core.providers.openai_client import close_openai_client
from finvisor.core.providers.perplexity import close_perplexity_client
from finvisor.core.providers.zoom import close_zoom_client
from finvisor.core.wizard.controller import get_wizard_store

logger = get_logger(__name__)

CLIENT_CLOSERS = [
    ("openai", close_openai_client),
    ("anthropic", close_anthropic_client),
    ("perplexity", close_perplexity_client),
    ("browserbase", close_browserbase_client),
    ("fetchai", close_fetchai_client),
    ("modal", close_modal_client),
    ("decagon", close_decagon_client),
    ("zoom", close_zoom_client),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    current = get_settings()
    logger.info(
        "Starting Finvisor",
        environment=current.environment,
        zoom_demo_mode=current.zoom_demo_mode,
        wizard_pace=current.wizard_pace,
    )

    try:
        yield
    finally:
        logger.info("Shutting down Finvisor")

        for name, close in CLIENT_CLOSERS:
            try:
                await close()
            except Exception as e:
                logger.error("Error closing provider client", provider=name, error=str(e))

        get_wizard_store().clear()


# Create FastAPI app
settings = get_settings()
app = FastAPI(
    title="Finvisor",
    description="AI financial aid appeal assistant",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_hosts,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

for module in (chat, documents, strategy, research, appeal, submit, payment, zoom, analytics, wizard, health):
    app.include_router(module.router)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> JSONResponse:  # type: ignore
    """Add request ID to all requests."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    response = await call_next(request)  # type: ignore
    response.headers["X-Request-ID"] = request_id  # type: ignore

    return response  # type: ignore


# Exception handlers
@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTP exceptions in the response envelope."""
    logger.error(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=getattr(request.state, "request_id", None),
    )
    return fail(str(exc.detail), exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and parameters are client errors."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")

    logger.warning(
        "Request validation failed",
        errors=len(errors),
        request_id=getattr(request.state, "request_id", None),
    )
    return fail(
        f"{location}: {message}" if location else message,
        status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """General exception handler for unexpected errors."""
    logger.error(
        "Unhandled exception",
        exception=str(exc),
        request_id=getattr(request.state, "request_id", None),
        exc_info=True,
    )
    return fail(
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        data={"exception": str(exc)} if settings.debug else None,
    )


@app.get("/", tags=["General"])
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "AI financial aid appeal assistant",
        "docs_url": "/docs" if settings.enable_docs else None,
        "health_check": "/health",
        "endpoints": {
            "chat": "POST|GET /api/chat",
            "documents": "POST|PUT /api/documents",
            "strategy": "POST /api/strategy",
            "research": "POST|GET /api/research",
            "appeal": "POST|PUT /api/appeal",
            "submit": "POST|GET|PUT /api/submit",
            "payment": "POST|GET|PUT /api/payment",
            "zoom": "POST|GET|PUT|PATCH /api/zoom",
            "zoom_recording": "GET /api/zoom?action=transcript|summary&meetingId=",
            "analytics": "GET|HEAD /api/analytics",
            "wizard_steps": "GET /api/wizard/steps",
            "wizard_sessions": "POST /api/wizard/sessions",
            "wizard_session": "GET|DELETE /api/wizard/sessions/{session_id}",
            "wizard_stream": "GET /api/wizard/sessions/{session_id}/stream",
            "wizard_next": "POST /api/wizard/sessions/{session_id}/next",
        },
    }


# Development server runner
def run_development_server() -> None:
    """Run development server with auto-reload."""
    uvicorn.run(
        "finvisor.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


def create_app() -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.
    Used by integration tests and external deployment scripts.

    Returns:
        FastAPI application instance
    """
    return app


if __name__ == "__main__":
    run_development_server()
