"""
API routes module.

FastAPI routers for all HTTP endpoints. The realtime WebSocket router is
mounted separately at the application root.
"""

from fastapi import APIRouter

from .routers import auth_router, health_router

api_router = APIRouter()

# Include all routers
api_router.include_router(health_router)
api_router.include_router(auth_router)

__all__ = ["api_router"]
