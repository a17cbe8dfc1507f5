"""
Ephemeral signal router.

Relays typing indicators and friend-request notices to a recipient who is
currently reachable. Nothing is persisted or queued; a signal with no live
recipient is dropped.

Dependencies: chat_relay.core, chat_relay.models
System role: Best-effort transient notifications
"""

import logging
from typing import Any
from uuid import UUID

from chat_relay.application.services.friendship_service import FriendshipService
from chat_relay.core.exceptions import ChatRelayError
from chat_relay.core.session_registry import Connection, SessionRegistry
from chat_relay.models.events import (
    FriendRequestPayload,
    FriendRequestReceivedEvent,
    ServerEventType,
    TypingPayload,
    UserTypingEvent,
    parse_payload,
)

logger = logging.getLogger(__name__)


class SignalService:
    """Typing and friend-request notice relay."""

    def __init__(self, registry: SessionRegistry, friendships: FriendshipService) -> None:
        self.registry = registry
        self.friendships = friendships

    async def relay_typing(self, sender_id: UUID, receiver_id: UUID, is_typing: bool) -> bool:
        """
        Forward a typing indicator to a friend.

        Returns:
            bool: True if the indicator was emitted

        Raises:
            StorageError: If the friendship lookup fails
        """
        if not await self.friendships.are_friends(sender_id, receiver_id):
            return False
        if not self.registry.is_reachable(receiver_id):
            return False
        await self.registry.emit(
            receiver_id,
            ServerEventType.USER_TYPING.value,
            UserTypingEvent(user_id=sender_id, is_typing=is_typing).to_wire(),
        )
        return True

    async def relay_friend_request(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        request_id: str,
    ) -> bool:
        """
        Notify a user that a friend request arrived.

        No friendship precondition: the relationship does not exist yet.

        Returns:
            bool: True if the notice was emitted
        """
        if not self.registry.is_reachable(receiver_id):
            logger.info(
                "Friend request receiver offline, notice dropped",
                extra={"receiver_id": str(receiver_id), "request_id": request_id},
            )
            return False
        await self.registry.emit(
            receiver_id,
            ServerEventType.FRIEND_REQUEST_RECEIVED.value,
            FriendRequestReceivedEvent(request_id=request_id, sender_id=sender_id).to_wire(),
        )
        return True

    async def handle_typing(self, connection: Connection, data: Any, is_typing: bool) -> None:
        """Handle ``typing_start`` / ``typing_stop``; errors are logged and dropped."""
        event = "typing_start" if is_typing else "typing_stop"
        try:
            payload = parse_payload(TypingPayload, data, event)
            await self.relay_typing(connection.user_id, payload.receiver_id, is_typing)
        except ChatRelayError as e:
            logger.warning(
                "Typing signal dropped",
                extra={
                    "event_name": event,
                    "user_id": str(connection.user_id),
                    "error_type": type(e).__name__,
                    "error_msg": e.message,
                },
            )

    async def handle_friend_request(self, connection: Connection, data: Any) -> None:
        """Handle ``friend_request_sent``; errors are logged and dropped."""
        try:
            payload = parse_payload(FriendRequestPayload, data, "friend_request_sent")
            await self.relay_friend_request(
                connection.user_id, payload.receiver_id, payload.request_id
            )
        except ChatRelayError as e:
            logger.warning(
                "Friend request notification dropped",
                extra={
                    "user_id": str(connection.user_id),
                    "error_type": type(e).__name__,
                    "error_msg": e.message,
                },
            )
