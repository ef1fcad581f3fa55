"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

from typing import Optional

from fastapi import FastAPI

from app.api.v1.router import api_router
from app.core.config import Settings, settings
from app.core.exceptions import DataLoadError
from app.core.logging import get_logger, setup_logging
from app.repositories.goal import InMemoryGoalRepository
from app.services.data_loader import load_csv
from app.services.session_context import CoachContext

log = get_logger(__name__)


def build_context(config: Settings) -> CoachContext:
    """Session context sized from settings, preloaded from ``DATA_CSV_PATH`` if set."""
    context = CoachContext(
        window_days=config.DATA_WINDOW_DAYS,
        retrieval_max_results=config.RETRIEVAL_MAX_RESULTS,
        summary_max_results=config.SUMMARY_MAX_RESULTS,
        confidence_threshold=config.PREDICTION_CONFIDENCE_THRESHOLD,
    )
    if config.DATA_CSV_PATH:
        try:
            context.load(load_csv(config.DATA_CSV_PATH))
        except DataLoadError as exc:
            log.warning("startup_data_not_loaded", path=config.DATA_CSV_PATH, error=str(exc))
    return context


def create_app(config: Optional[Settings] = None) -> FastAPI:
    config = config or settings
    setup_logging(config.LOG_LEVEL, json_mode=config.LOG_JSON)

    application = FastAPI(
        title=config.PROJECT_NAME,
        version=config.VERSION,
        description="Grounded coaching over a personal biometric export.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json")

    application.state.settings = config
    application.state.coach_context = build_context(config)
    application.state.goal_repository = InMemoryGoalRepository()

    # Include API router
    application.include_router(api_router, prefix="/api/v1")

    @application.get("/")
    async def root():
        """Root endpoint - health check."""
        return {
            "message": "Pulse Coach API",
            "version": config.VERSION,
            "status": "healthy"
        }

    @application.get("/health")
    async def health_check():
        """Health check endpoint for monitoring."""
        return {
            "status": "healthy",
            "service": "pulse-coach-api",
            "version": config.VERSION,
            "data_loaded": application.state.coach_context.is_loaded,
        }

    @application.get("/info")
    async def info():
        return {
            "project name": config.PROJECT_NAME,
            "version": config.VERSION,
            "authors": config.AUTHORS,
            "project url": config.PROJECT_URL
        }

    return application


app = create_app()
