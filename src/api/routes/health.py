"""Health check endpoints.

Provides:
- Basic health check (GET /health)
- Detailed health check with configuration status (GET /health/detailed)
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.websocket.chat_stream import session_registry
from src.config import Settings, get_settings

router = APIRouter()

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response."""

    status: str
    checks: dict[str, str]
    active_sessions: int
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint.

    Returns:
        Simple status indicating the API is running.
    """
    return HealthResponse(status="healthy")


@router.get("/health/detailed", response_model=DetailedHealthResponse)
async def detailed_health_check(
    settings: Settings = Depends(get_settings),
) -> DetailedHealthResponse:
    """Detailed health check including configuration status.

    The Gemini API itself is not called; a missing key marks the service
    degraded since every generation request would fail.
    """
    checks = {
        "gemini": "configured" if settings.has_api_key else "missing",
        "model": settings.gemini_model,
        "environment": settings.environment,
    }

    status = "healthy" if settings.has_api_key else "degraded"

    return DetailedHealthResponse(
        status=status,
        checks=checks,
        active_sessions=session_registry.active_count,
        version=VERSION,
    )
