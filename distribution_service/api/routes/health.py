"""
Health endpoint.
"""
from fastapi import APIRouter

from distribution_service.core.config import settings
from distribution_service.core.tasks import get_task_failure_counts

router = APIRouter()


@router.get("/health")
async def health():
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "background_task_failures": get_task_failure_counts(),
    }
