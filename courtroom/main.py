"""Virtual courtroom FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from courtroom.api.routes import router as api_router
from courtroom.config import get_settings
from courtroom.lib.exceptions import (
    CourtroomError,
    LLMError,
    ScenarioNotFoundError,
    SessionStateError,
    SpeechError,
    ThemeNotFoundError,
    ValidationError,
)
from courtroom.lib.llm import close_llm_client
from courtroom.lib.models import HealthResponse
from courtroom.orchestrator.session import close_courtroom, get_courtroom

VERSION = "0.1.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    settings = get_settings()

    # Startup
    logger.info("Starting virtual courtroom...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Courtroom model: {settings.model_for('courtroom')}")

    courtroom = get_courtroom()
    logger.info(f"Catalog loaded: {len(courtroom.catalog.list_scenarios())} scenarios")

    if not settings.has_any_key:
        logger.warning("No API keys configured - every AI turn will fall back to a recess")

    yield

    # Shutdown
    logger.info("Shutting down virtual courtroom...")
    await close_courtroom()
    await close_llm_client()
    logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Virtual Courtroom",
        description="Interactive deliberation engine for courtroom practice",
        version=VERSION,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    register_exception_handlers(app)

    # Routes
    app.include_router(api_router, prefix="/api")

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", version=VERSION)

    return app


# =============================================================================
# Exception Handlers
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(SessionStateError)
    async def session_state_handler(
        request: Request, exc: SessionStateError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={
                "detail": exc.message,
                "expected_status": exc.expected_status,
                "actual_status": exc.actual_status,
            },
        )

    @app.exception_handler(ScenarioNotFoundError)
    @app.exception_handler(ThemeNotFoundError)
    async def not_found_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": exc.message, "field": exc.field, "value": exc.value},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "detail": exc.message,
                "field": exc.field,
                "value": str(exc.value) if exc.value else None,
            },
        )

    @app.exception_handler(SpeechError)
    async def speech_error_handler(request: Request, exc: SpeechError) -> JSONResponse:
        logger.warning(f"Speech error: {exc.message}")
        return JSONResponse(status_code=503, content={"detail": exc.message})

    @app.exception_handler(LLMError)
    async def llm_error_handler(request: Request, exc: LLMError) -> JSONResponse:
        logger.error(f"LLM error: {exc.message}")
        return JSONResponse(
            status_code=503,
            content={"detail": "LLM service error", "error": exc.message},
        )

    @app.exception_handler(CourtroomError)
    async def courtroom_error_handler(
        request: Request, exc: CourtroomError
    ) -> JSONResponse:
        logger.error(f"Courtroom error: {exc.message}")
        return JSONResponse(
            status_code=500,
            content={"detail": exc.message, "details": exc.details},
        )


# =============================================================================
# Application Instance
# =============================================================================


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "courtroom.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
