"""
API and realtime protocol schemas.

Dependencies: pydantic
System role: Wire contracts for HTTP and WebSocket clients
"""

from chat_relay.models.auth import LogoutResponse
from chat_relay.models.events import (
    ClientEventType,
    RelayEvent,
    ServerEventType,
    iso_now,
    parse_payload,
)

__all__ = [
    "ClientEventType",
    "LogoutResponse",
    "RelayEvent",
    "ServerEventType",
    "iso_now",
    "parse_payload",
]
