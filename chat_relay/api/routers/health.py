"""
Health check API endpoints.

Routes: GET /health

Dependencies: chat_relay.api.deps
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chat_relay.api.deps.dependencies import get_session_registry
from chat_relay.core.session_registry import SessionRegistry


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str
    connections: int


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check(
    registry: SessionRegistry = Depends(get_session_registry),
) -> HealthResponse:
    """Basic health check with the live connection count."""
    return HealthResponse(
        status="healthy",
        message="Server Healthy",
        connections=registry.connection_count(),
    )
