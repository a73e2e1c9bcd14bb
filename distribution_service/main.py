"""
Distribution Service - main API
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from distribution_service.core.config import settings
from distribution_service.core.logging import setup_logging
from distribution_service.api.error_handlers import register_exception_handlers
from distribution_service.api.routes import fares, health
from distribution_service.services.fares.deps import get_fare_scheduler
from distribution_service.services.http_client import close_http_client

setup_logging(settings.ENVIRONMENT, settings.LOG_LEVEL)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown: the fare scheduler lives as long as the app."""
    logger.info(f"Starting {settings.APP_NAME}...")
    scheduler = None
    if settings.FARE_SCHEDULER_ENABLED:
        scheduler = get_fare_scheduler()
        scheduler.start()
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")
    if scheduler is not None:
        await scheduler.stop()
    await close_http_client()


app = FastAPI(
    title=settings.APP_NAME,
    description="Water distribution service - fares and their time-based lifecycle",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router, tags=["Health"])
app.include_router(fares.router)


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "status": "running",
        "docs": "/docs",
    }
