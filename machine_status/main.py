"""
FastAPI application factory + lifespan.

This is the **report engine** of the machine-status dashboard:
- REST API for status reports, exports and the scoped status log.
- All machine data comes from the remote data service (see
  ``config/data_service.yml``); nothing is persisted here.
- CORS configured for the dashboard frontend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from machine_status.api.v1 import api_router
from machine_status.core.config import settings
from machine_status.core.log_setup import configure_logging
from machine_status.services.broker.api_config import api_config_loader
from machine_status.services.broker.data_service import data_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: load the endpoint catalog.
    Shutdown: drop cached catalog responses.
    """
    logger.info(f"Starting {settings.APP_NAME} ({settings.APP_ENV}) …")
    logger.info(
        f"Data service: {settings.DATA_SERVICE_URL} "
        f"({len(api_config_loader.list_ids())} endpoints)"
    )

    yield

    data_service.clear_cache()
    logger.info("Shutting down API …")


def create_fastapi_app() -> FastAPI:
    """Application factory for FastAPI."""
    configure_logging()

    app = FastAPI(
        title="Machine Status Reports API",
        description="Time-in-status reports for the machine status dashboard",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "app": settings.APP_NAME,
            "version": "1.0.0",
            "status": "running",
            "docs": "/api/docs" if settings.DEBUG else "disabled",
        }

    return app


# Module-level instance for ``uvicorn machine_status.main:app``
app = create_fastapi_app()
