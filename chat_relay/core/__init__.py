"""
Core relay domain.

In-memory session registry, connection authentication and the exception
hierarchy shared by services and routers.
"""

from chat_relay.core.authenticator import ConnectionAuthenticator, SessionClaims
from chat_relay.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ChatRelayError,
    StorageError,
    ValidationError,
)
from chat_relay.core.session_registry import Connection, SessionRegistry

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ChatRelayError",
    "Connection",
    "ConnectionAuthenticator",
    "SessionClaims",
    "SessionRegistry",
    "StorageError",
    "ValidationError",
]
