"""
Realtime relay WebSocket endpoint.

One socket per device. The credential is checked before the socket is
accepted; after that every text frame is a ``{"event", "data"}`` envelope
routed through the connection orchestrator.

Routes: WS /ws

Dependencies: chat_relay.application.services.connection_service
System role: WebSocket transport for the relay
"""

import asyncio
import json
import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, WebSocket, WebSocketDisconnect, status

from chat_relay.api.deps.dependencies import get_connection_service, get_settings_dependency
from chat_relay.api.routers.auth import bearer_token
from chat_relay.application.services.connection_service import ConnectionService
from chat_relay.configs import Settings
from chat_relay.core.exceptions import AuthenticationError
from chat_relay.core.session_registry import Connection
from chat_relay.models.events import RelayEvent, ServerEventType
from chat_relay.observability.correlation import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])


class WebSocketConnection(Connection):
    """Registry connection handle backed by a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, user_id: UUID, session_id: str) -> None:
        super().__init__(user_id=user_id, session_id=session_id)
        self.websocket = websocket
        # Fan-out from other users' handlers may write concurrently.
        self._send_lock = asyncio.Lock()

    async def send(self, event: str, data: dict[str, Any]) -> None:
        async with self._send_lock:
            await self.websocket.send_json(RelayEvent(event=event, data=data).to_dict())


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: str | None = Query(default=None),
    authorization: str | None = Header(default=None),
    hub: ConnectionService = Depends(get_connection_service),
    settings: Settings = Depends(get_settings_dependency),
) -> None:
    """
    WebSocket endpoint for the chat relay.

    Client sends:
        {"event": "send_message", "data": {"receiverId": "...", "messageUuid": "...", "message": "..."}}
        {"event": "update_message_status", "data": {"messageUuid": "...", "status": "read", "senderId": "..."}}
        {"event": "typing_start" | "typing_stop", "data": {"receiverId": "..."}}
        {"event": "friend_request_sent", "data": {"receiverId": "...", "requestId": "..."}}
        {"event": "ping"}

    Server sends:
        {"event": "connected", "data": {"userId": "...", "sessionId": "..."}}
        {"event": "new_message" | "message_sent" | "message_error" | ..., "data": {...}}
        {"event": "error", "data": {"code": "...", "message": "..."}}

    Args:
        websocket: WebSocket connection
        token: Session token from the query string
        authorization: Bearer header, used when no query token is given
        hub: Connection orchestrator
        settings: Application settings
    """
    try:
        claims = await hub.authenticate(token or bearer_token(authorization))
    except AuthenticationError as e:
        logger.info(
            "WebSocket connection refused",
            extra={"client_host": str(websocket.client), "reason": e.message},
        )
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    await websocket.accept()

    connection = WebSocketConnection(websocket, claims.user_id, claims.session_id)
    set_correlation_id(connection.connection_id)
    logger.info(
        "WebSocket connection established",
        extra={"user_id": str(claims.user_id), "client_host": str(websocket.client)},
    )

    max_frame_bytes = settings.relay.max_frame_bytes

    try:
        await hub.open(connection)

        while True:
            raw_data = await websocket.receive_text()

            if len(raw_data.encode("utf-8")) > max_frame_bytes:
                logger.warning(
                    "Oversized frame rejected",
                    extra={"user_id": str(claims.user_id), "frame_length": len(raw_data)},
                )
                await connection.send(
                    ServerEventType.ERROR.value,
                    {"code": "FRAME_TOO_LARGE", "message": "Frame exceeds size limit"},
                )
                continue

            try:
                frame = json.loads(raw_data)
            except json.JSONDecodeError as e:
                logger.warning(
                    "Failed to parse JSON",
                    extra={
                        "user_id": str(claims.user_id),
                        "error_msg": str(e),
                        "raw_data_preview": raw_data[:50],
                    },
                )
                await connection.send(
                    ServerEventType.ERROR.value,
                    {"code": "INVALID_JSON", "message": "Invalid JSON format"},
                )
                continue

            if not isinstance(frame, dict):
                await connection.send(
                    ServerEventType.ERROR.value,
                    {"code": "INVALID_FRAME", "message": "Frame must be a JSON object"},
                )
                continue

            await hub.dispatch(connection, frame.get("event"), frame.get("data", {}))

    except WebSocketDisconnect:
        logger.info(
            "WebSocket client disconnected",
            extra={"user_id": str(claims.user_id)},
        )
    except Exception as e:
        logger.exception(
            "WebSocket connection error",
            extra={
                "user_id": str(claims.user_id),
                "error_type": type(e).__name__,
                "error_msg": str(e),
            },
        )
    finally:
        await hub.close(connection)
        clear_correlation_id()
