"""
Connection service orchestrator.

Drives one realtime connection through its lifecycle:

    authenticate -> join channel -> presence online -> drain mailbox
    -> dispatch events ... -> leave channel -> presence offline

Dependencies: chat_relay.core, chat_relay.application.services
System role: Realtime connection lifecycle and event routing
"""

import logging
from typing import Any

from chat_relay.application.services.mailbox_service import MailboxService
from chat_relay.application.services.presence_service import PresenceService
from chat_relay.application.services.relay_service import RelayService
from chat_relay.application.services.signal_service import SignalService
from chat_relay.core.authenticator import ConnectionAuthenticator, SessionClaims
from chat_relay.core.exceptions import AuthenticationError
from chat_relay.core.session_registry import Connection, SessionRegistry
from chat_relay.models.events import ClientEventType, ServerEventType

logger = logging.getLogger(__name__)


class ConnectionService:
    """Realtime connection lifecycle orchestrator."""

    def __init__(
        self,
        registry: SessionRegistry,
        authenticator: ConnectionAuthenticator,
        relay: RelayService,
        mailbox: MailboxService,
        presence: PresenceService,
        signals: SignalService,
    ) -> None:
        self.registry = registry
        self.authenticator = authenticator
        self.relay = relay
        self.mailbox = mailbox
        self.presence = presence
        self.signals = signals

    async def authenticate(self, token: str | None) -> SessionClaims:
        """
        Validate a handshake credential.

        Any failure, including an unreachable session store, refuses the
        connection.

        Raises:
            AuthenticationError: Connection must be refused
        """
        try:
            return await self.authenticator.authenticate(token)
        except AuthenticationError:
            raise
        except Exception as e:
            logger.exception("Socket authentication error")
            raise AuthenticationError("Authentication failed") from e

    async def open(self, connection: Connection) -> None:
        """
        Register an authenticated connection and bring it up to date.

        Args:
            connection: Connection bound to an authenticated session
        """
        user_id = connection.user_id
        first_connection = self.registry.join(user_id, connection)

        logger.info(
            "User connected",
            extra={
                "user_id": str(user_id),
                "connection_id": connection.connection_id,
                "first_connection": first_connection,
            },
        )

        await connection.send(
            ServerEventType.CONNECTED.value,
            {"userId": str(user_id), "sessionId": connection.session_id},
        )
        await self.presence.on_connect(user_id, first_connection)
        await self.mailbox.deliver_pending(user_id)

    async def dispatch(self, connection: Connection, event: Any, data: Any) -> None:
        """
        Route one inbound event to its handler.

        Never raises: unexpected failures are logged and reported to the
        connection as an ``error`` event.

        Args:
            connection: Originating connection
            event: Event name from the frame
            data: Event payload from the frame
        """
        try:
            if event == ClientEventType.SEND_MESSAGE.value:
                await self.relay.handle_send_message(connection, data)
            elif event == ClientEventType.UPDATE_MESSAGE_STATUS.value:
                await self.relay.handle_update_message_status(connection, data)
            elif event == ClientEventType.TYPING_START.value:
                await self.signals.handle_typing(connection, data, is_typing=True)
            elif event == ClientEventType.TYPING_STOP.value:
                await self.signals.handle_typing(connection, data, is_typing=False)
            elif event == ClientEventType.FRIEND_REQUEST_SENT.value:
                await self.signals.handle_friend_request(connection, data)
            elif event == ClientEventType.PING.value:
                await connection.send(ServerEventType.PONG.value, {})
            else:
                logger.warning(
                    "Unknown event type received",
                    extra={
                        "user_id": str(connection.user_id),
                        "event_type": str(event),
                    },
                )
                await connection.send(
                    ServerEventType.ERROR.value,
                    {"code": "UNKNOWN_EVENT", "message": f"Unknown event type: {event}"},
                )
        except Exception as e:
            logger.exception(
                "Unexpected error handling event",
                extra={
                    "user_id": str(connection.user_id),
                    "event_type": str(event),
                    "error_type": type(e).__name__,
                },
            )
            await self._send_quietly(
                connection,
                ServerEventType.ERROR.value,
                {"code": "INTERNAL_ERROR", "message": "Event could not be processed"},
            )

    async def close(self, connection: Connection) -> None:
        """
        Remove a connection and publish offline if it was the user's last.

        Args:
            connection: Connection that disconnected
        """
        user_id = connection.user_id
        channel_emptied = self.registry.leave(connection)

        logger.info(
            "User disconnected",
            extra={
                "user_id": str(user_id),
                "connection_id": connection.connection_id,
                "channel_emptied": channel_emptied,
            },
        )
        await self.presence.on_disconnect(user_id, channel_emptied)

    @staticmethod
    async def _send_quietly(connection: Connection, event: str, data: dict) -> None:
        try:
            await connection.send(event, data)
        except Exception as e:
            logger.debug(
                "Could not report error to connection",
                extra={"connection_id": connection.connection_id, "error_msg": str(e)},
            )
