"""
Message relay service.

Per-message state machine:

    received -> authorized -> {delivered-live | queued-offline} -> acknowledged

Every inbound ``send_message`` ends with exactly one reply to the sending
connection: ``message_sent`` on acceptance or ``message_error`` carrying the
original messageUuid on any failure.

Dependencies: sqlalchemy, chat_relay.boundary.db.CRUD, chat_relay.core
System role: Live-vs-offline delivery decision for direct messages
"""

import logging
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from chat_relay.application.services.friendship_service import FriendshipService
from chat_relay.application.services.mailbox_service import MailboxService
from chat_relay.boundary.db.CRUD.message_status_crud import message_status_crud
from chat_relay.boundary.db.models.message_status_model import MessageStatus
from chat_relay.core.exceptions import (
    AuthorizationError,
    ChatRelayError,
    StorageError,
    ValidationError,
)
from chat_relay.core.session_registry import Connection, SessionRegistry
from chat_relay.models.events import (
    ErrorEvent,
    MessageSentEvent,
    MessageStatusUpdateEvent,
    NewMessageEvent,
    SendMessagePayload,
    ServerEventType,
    UpdateMessageStatusPayload,
    iso_now,
    parse_payload,
)
from chat_relay.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

UPDATABLE_STATUSES = {MessageStatus.DELIVERED.value, MessageStatus.READ.value}


class DeliveryState(str, Enum):
    """States a relayed message passes through."""

    RECEIVED = "received"
    AUTHORIZED = "authorized"
    DELIVERED_LIVE = "delivered-live"
    QUEUED_OFFLINE = "queued-offline"
    ACKNOWLEDGED = "acknowledged"


class RelayService:
    """
    Direct message relay between friends.

    Attributes:
        session_factory: Async session factory for status tracking
        registry: Session registry (reachability and fan-out)
        friendships: Friendship oracle
        mailbox: Offline mailbox
        default_message_type: messageType used when the client omits it
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        registry: SessionRegistry,
        friendships: FriendshipService,
        mailbox: MailboxService,
        default_message_type: str = "text",
    ) -> None:
        self.session_factory = session_factory
        self.registry = registry
        self.friendships = friendships
        self.mailbox = mailbox
        self.default_message_type = default_message_type

    async def send(
        self,
        sender_id: UUID,
        receiver_id: UUID | None,
        message_uuid: str | None,
        content: str | None,
        message_type: str | None = None,
        client_timestamp: Any = None,
    ) -> DeliveryState:
        """
        Relay one message, delivering live or queueing for later.

        Args:
            sender_id: Authenticated sender
            receiver_id: Target user
            message_uuid: Client-assigned message identifier
            content: Message body (empty string allowed, None is not)
            message_type: Client type tag (defaults to the configured type)
            client_timestamp: Sender-supplied timestamp, echoed to the receiver

        Returns:
            DeliveryState: DELIVERED_LIVE or QUEUED_OFFLINE

        Raises:
            ValidationError: A required field is missing
            AuthorizationError: Sender and receiver are not friends
            StorageError: Friendship lookup or mailbox write failed
        """
        if receiver_id is None or not message_uuid or content is None:
            raise ValidationError("Missing required fields for send_message")

        logger.debug(
            "Relay state transition",
            extra={"message_uuid": message_uuid, "state": DeliveryState.RECEIVED.value},
        )

        if not await self.friendships.are_friends(sender_id, receiver_id):
            raise AuthorizationError(
                "Message blocked: Users are not friends.",
                sender_id=str(sender_id),
                receiver_id=str(receiver_id),
            )

        logger.debug(
            "Relay state transition",
            extra={"message_uuid": message_uuid, "state": DeliveryState.AUTHORIZED.value},
        )

        message_type = message_type or self.default_message_type
        timestamp = client_timestamp if client_timestamp is not None else iso_now()
        payload = NewMessageEvent(
            message_uuid=message_uuid,
            sender_id=sender_id,
            receiver_id=receiver_id,
            message=content,
            message_type=message_type,
            timestamp=timestamp,
            status="delivered",
        )

        # Emission to an empty channel is a no-op with no failure signal, so
        # the decision below is taken from reachability, not from the emit.
        await self.registry.emit(
            receiver_id, ServerEventType.NEW_MESSAGE.value, payload.to_wire()
        )

        if self.registry.is_reachable(receiver_id):
            state = DeliveryState.DELIVERED_LIVE
        else:
            logger.info(
                "Receiver offline, storing message",
                extra={"message_uuid": message_uuid, "receiver_id": str(receiver_id)},
            )
            await self.mailbox.store(
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                message_uuid=message_uuid,
                message_type=message_type,
                client_timestamp=timestamp,
            )
            state = DeliveryState.QUEUED_OFFLINE

            # A connect that landed while the row was being written has
            # already drained an empty mailbox.
            if self.registry.is_reachable(receiver_id):
                await self.mailbox.deliver_pending(receiver_id)

        await self._track_sent(message_uuid, sender_id, receiver_id)

        logger.info(
            "Message relayed",
            extra={
                "message_uuid": message_uuid,
                "sender_id": str(sender_id),
                "receiver_id": str(receiver_id),
                "state": state.value,
            },
        )
        return state

    async def handle_send_message(self, connection: Connection, data: Any) -> None:
        """
        Handle an inbound ``send_message`` frame end to end.

        Always answers the sending connection, never raises.

        Args:
            connection: Sender's connection
            data: Raw event payload
        """
        message_uuid = data.get("messageUuid") if isinstance(data, dict) else None

        try:
            payload = parse_payload(SendMessagePayload, data, "send_message")
            await self.send(
                sender_id=connection.user_id,
                receiver_id=payload.receiver_id,
                message_uuid=payload.message_uuid,
                content=payload.message,
                message_type=payload.message_type,
                client_timestamp=payload.timestamp,
            )
        except ChatRelayError as e:
            self._log_rejection("send_message", connection, message_uuid, e)
            await connection.send(
                ServerEventType.MESSAGE_ERROR.value,
                ErrorEvent(error=e.message, message_uuid=_as_str(message_uuid)).to_wire(),
            )
            return

        await connection.send(
            ServerEventType.MESSAGE_SENT.value,
            MessageSentEvent(message_uuid=payload.message_uuid).to_wire(),
        )
        logger.debug(
            "Relay state transition",
            extra={
                "message_uuid": payload.message_uuid,
                "state": DeliveryState.ACKNOWLEDGED.value,
            },
        )

    async def update_message_status(
        self,
        updater_id: UUID,
        message_uuid: str,
        status: str,
        sender_id: UUID,
    ) -> None:
        """
        Forward a delivered/read receipt to the original sender.

        Args:
            updater_id: User reporting the status (the receiver)
            message_uuid: Message being acknowledged
            status: "delivered" or "read"
            sender_id: Original sender to notify

        Raises:
            ValidationError: Unknown status value
            AuthorizationError: Updater and sender are not friends
            StorageError: Friendship lookup failed
        """
        if status not in UPDATABLE_STATUSES:
            raise ValidationError(
                f"Unsupported message status: {status}",
                field="status",
            )

        if not await self.friendships.are_friends(updater_id, sender_id):
            raise AuthorizationError(
                "Status update blocked: Users are not friends.",
                sender_id=str(updater_id),
                receiver_id=str(sender_id),
            )

        await self.registry.emit(
            sender_id,
            ServerEventType.MESSAGE_STATUS_UPDATE.value,
            MessageStatusUpdateEvent(
                message_uuid=message_uuid,
                status=status,
                updated_by=updater_id,
            ).to_wire(),
        )

        try:
            async with self.session_factory() as db:
                await message_status_crud.advance_status(
                    db, message_uuid, MessageStatus(status), updater_id
                )
                await db.commit()
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                "DB update for message status failed",
                e,
                message_uuid=message_uuid,
                status=status,
            )

    async def handle_update_message_status(self, connection: Connection, data: Any) -> None:
        """
        Handle an inbound ``update_message_status`` frame.

        Failures are reported to the updater as ``status_error``.
        """
        message_uuid = data.get("messageUuid") if isinstance(data, dict) else None

        try:
            payload = parse_payload(
                UpdateMessageStatusPayload, data, "update_message_status"
            )
            await self.update_message_status(
                updater_id=connection.user_id,
                message_uuid=payload.message_uuid,
                status=payload.status,
                sender_id=payload.sender_id,
            )
        except ChatRelayError as e:
            self._log_rejection("update_message_status", connection, message_uuid, e)
            await connection.send(
                ServerEventType.STATUS_ERROR.value,
                ErrorEvent(error=e.message, message_uuid=_as_str(message_uuid)).to_wire(),
            )

    async def _track_sent(self, message_uuid: str, sender_id: UUID, receiver_id: UUID) -> None:
        try:
            async with self.session_factory() as db:
                await message_status_crud.track_sent(db, message_uuid, sender_id, receiver_id)
                await db.commit()
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                "Failed to record sent status",
                e,
                message_uuid=message_uuid,
            )

    @staticmethod
    def _log_rejection(
        event: str,
        connection: Connection,
        message_uuid: Any,
        error: ChatRelayError,
    ) -> None:
        extra = {
            "event_name": event,
            "user_id": str(connection.user_id),
            "message_uuid": _as_str(message_uuid),
            "error_type": type(error).__name__,
            "error_msg": error.message,
        }
        if isinstance(error, StorageError):
            logger.error("Relay event failed on storage", exc_info=error, extra=extra)
        else:
            logger.warning("Relay event rejected", extra=extra)


def _as_str(value: Any) -> str | None:
    return None if value is None else str(value)
