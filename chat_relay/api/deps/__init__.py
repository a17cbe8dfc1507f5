"""FastAPI dependencies."""

from .dependencies import (
    ServiceCache,
    get_auth_service,
    get_connection_service,
    get_service_cache,
    get_session_registry,
    get_settings_dependency,
)

__all__ = [
    "ServiceCache",
    "get_auth_service",
    "get_connection_service",
    "get_service_cache",
    "get_session_registry",
    "get_settings_dependency",
]
