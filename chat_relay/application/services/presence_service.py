"""
Presence broadcaster.

Publishes online/offline transitions to a user's friends and mirrors them
into the durable ``users.is_online`` flag.

Presence is derived from registry reachability. The offline transition fires
only when the user's last connection leaves, and each step re-checks
reachability after awaiting storage so a reconnect that lands mid-transition
suppresses the now-stale event.

Dependencies: sqlalchemy, chat_relay.boundary.db.CRUD, chat_relay.core
System role: Presence fan-out and durable status updates
"""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from chat_relay.application.services.friendship_service import FriendshipService
from chat_relay.boundary.db.CRUD.user_crud import user_crud
from chat_relay.core.exceptions import StorageError
from chat_relay.core.session_registry import SessionRegistry
from chat_relay.models.events import FriendStatusUpdateEvent, ServerEventType
from chat_relay.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class PresenceService:
    """
    Presence broadcaster.

    Attributes:
        session_factory: Async session factory for the users table
        registry: Session registry (ground truth for online state)
        friendships: Friendship oracle for fan-out targets
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        registry: SessionRegistry,
        friendships: FriendshipService,
    ) -> None:
        self.session_factory = session_factory
        self.registry = registry
        self.friendships = friendships

    async def on_connect(self, user_id: UUID, first_connection: bool) -> int:
        """
        Publish the online transition.

        Args:
            user_id: User who connected
            first_connection: Whether this connection made the channel non-empty

        Returns:
            int: Number of friends notified
        """
        if not first_connection:
            return 0
        return await self._transition(user_id, is_online=True)

    async def on_disconnect(self, user_id: UUID, channel_emptied: bool) -> int:
        """
        Publish the offline transition.

        A disconnect that leaves other connections of the same user alive
        publishes nothing.

        Args:
            user_id: User who disconnected
            channel_emptied: Whether this disconnect emptied the channel

        Returns:
            int: Number of friends notified
        """
        if not channel_emptied:
            return 0
        return await self._transition(user_id, is_online=False)

    async def set_online(self, user_id: UUID, is_online: bool) -> None:
        """
        Persist the durable online flag (and last_seen when going offline).

        Raises:
            StorageError: If the write fails
        """
        try:
            async with self.session_factory() as db:
                await user_crud.set_online_status(db, user_id, is_online)
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to update online status",
                operation="set_online",
                details={"user_id": str(user_id), "is_online": is_online},
            ) from e

    async def notify_friends(self, user_id: UUID, is_online: bool) -> int:
        """
        Emit ``friend_status_update`` to every reachable friend.

        Returns:
            int: Number of friends notified

        Raises:
            StorageError: If the friend list cannot be read
        """
        friend_ids = await self.friendships.list_friends(user_id)
        if self._is_stale(user_id, is_online):
            return 0

        payload = FriendStatusUpdateEvent(friend_id=user_id, is_online=is_online).to_wire()
        notified = 0
        for friend_id in friend_ids:
            if not self.registry.is_reachable(friend_id):
                continue
            await self.registry.emit(
                friend_id, ServerEventType.FRIEND_STATUS_UPDATE.value, payload
            )
            notified += 1
        return notified

    async def _transition(self, user_id: UUID, is_online: bool) -> int:
        if self._is_stale(user_id, is_online):
            return 0

        try:
            await self.set_online(user_id, is_online)
        except StorageError as e:
            log_exception_with_context(
                logger, "Error updating online status", e, user_id=str(user_id)
            )

        if self._is_stale(user_id, is_online):
            # The opposing transition may have committed before this write.
            await self._persist_current(user_id)
            return 0

        try:
            notified = await self.notify_friends(user_id, is_online)
        except StorageError as e:
            log_exception_with_context(
                logger,
                "Error notifying friends about status change",
                e,
                user_id=str(user_id),
            )
            return 0

        logger.info(
            "Presence changed",
            extra={"user_id": str(user_id), "is_online": is_online, "notified": notified},
        )
        return notified

    async def _persist_current(self, user_id: UUID) -> None:
        is_online = self.registry.is_reachable(user_id)
        try:
            await self.set_online(user_id, is_online)
        except StorageError as e:
            log_exception_with_context(
                logger,
                "Error restoring online status",
                e,
                user_id=str(user_id),
                is_online=is_online,
            )

    def _is_stale(self, user_id: UUID, is_online: bool) -> bool:
        return self.registry.is_reachable(user_id) != is_online
