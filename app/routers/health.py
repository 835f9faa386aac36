"""
routers/health.py
Kubernetes / Docker / load balancer health probe.
"""

from fastapi import APIRouter
from app.models.response import HealthResponse
from app.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        status="ok" if settings.relay_config.is_complete else "degraded",
        version=settings.APP_VERSION,
        assistant_configured=settings.relay_config.is_complete,
        stream_format=settings.STREAM_FORMAT,
    )
