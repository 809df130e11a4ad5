"""
FastAPI Production Application

Main entry point for the Field Sales Reporting API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from fieldsales.config import get_settings
from fieldsales.config.logging import configure_logging
from fieldsales.database.connection import init_database, close_database
from fieldsales.serving.api.dependencies import build_report_service
from fieldsales.serving.api.main import create_api_app

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info("Starting Field Sales Reporting API", environment=settings.app_env)

    # Reports still work from the activity log without a database
    try:
        await init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.warning("Database init failed", error=str(e))

    app.state.report_service = build_report_service(settings)

    yield

    logger.info("Shutting down...")
    await close_database()


app = create_api_app(lifespan=lifespan)


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "fieldsales.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.monitoring.log_level.lower(),
    )


if __name__ == "__main__":
    run()
