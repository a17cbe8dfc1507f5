"""
Session registry.

Tracks live connections grouped into one channel per user. Channel membership
is the only record of who is online: a user is reachable exactly when their
channel holds at least one connection. Relay, mailbox and presence logic all
ask the registry rather than keeping their own online flags.

The registry is in-memory and owned by a single event loop. Mutations
(join/leave) never await, so they cannot interleave with one another.

Dependencies: asyncio, logging
System role: Single source of truth for reachability and channel fan-out
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

logger = logging.getLogger(__name__)


class Connection(ABC):
    """
    One live transport channel bound to a single authenticated session.

    Attributes:
        user_id: Authenticated user owning this connection
        session_id: Session token identifier presented at handshake
        connection_id: Unique handle for this connection
    """

    def __init__(
        self,
        user_id: UUID,
        session_id: str,
        connection_id: str | None = None,
    ) -> None:
        self.user_id = user_id
        self.session_id = session_id
        self.connection_id = connection_id or uuid.uuid4().hex

    @abstractmethod
    async def send(self, event: str, data: dict[str, Any]) -> None:
        """Deliver one named event to the remote peer."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(user_id={self.user_id}, "
            f"connection_id={self.connection_id})"
        )


class SessionRegistry:
    """
    Per-user channel membership for live connections.

    Each user maps to a set of connection handles. Multiple devices or tabs
    of the same user simply add more members to the same channel.
    """

    def __init__(self) -> None:
        self._channels: dict[UUID, dict[str, Connection]] = {}
        self._owners: dict[str, UUID] = {}

    def join(self, user_id: UUID, connection: Connection) -> bool:
        """
        Add a connection to a user's channel.

        Idempotent: joining the same handle twice leaves one membership.

        Args:
            user_id: Channel owner
            connection: Live connection handle

        Returns:
            bool: True if the channel was empty before this join
        """
        previous_owner = self._owners.get(connection.connection_id)
        if previous_owner is not None and previous_owner != user_id:
            self.leave(connection)

        members = self._channels.setdefault(user_id, {})
        was_empty = not members
        members[connection.connection_id] = connection
        self._owners[connection.connection_id] = user_id

        logger.debug(
            "Connection joined channel",
            extra={
                "user_id": str(user_id),
                "connection_id": connection.connection_id,
                "member_count": len(members),
            },
        )
        return was_empty

    def leave(self, connection: Connection) -> bool:
        """
        Remove a connection from whichever channel it belongs to.

        Unknown handles are ignored.

        Args:
            connection: Connection handle to remove

        Returns:
            bool: True if this removal left the owner's channel empty
        """
        user_id = self._owners.pop(connection.connection_id, None)
        if user_id is None:
            return False

        members = self._channels.get(user_id)
        if members is None:
            return False

        members.pop(connection.connection_id, None)
        logger.debug(
            "Connection left channel",
            extra={
                "user_id": str(user_id),
                "connection_id": connection.connection_id,
                "member_count": len(members),
            },
        )
        if members:
            return False

        del self._channels[user_id]
        return True

    def is_reachable(self, user_id: UUID) -> bool:
        """Return True iff the user's channel has at least one member."""
        return bool(self._channels.get(user_id))

    def members(self, user_id: UUID) -> list[Connection]:
        """Snapshot of the user's live connections."""
        return list(self._channels.get(user_id, {}).values())

    def connection_count(self) -> int:
        """Total number of live connections across all channels."""
        return len(self._owners)

    async def emit(self, user_id: UUID, event: str, data: dict[str, Any]) -> int:
        """
        Send an event to every live connection in a user's channel.

        An empty channel is a silent no-op. A failed send on one connection is
        logged and does not affect the others; the broken connection is left
        for its own disconnect handling to remove.

        Args:
            user_id: Channel owner
            event: Outbound event name
            data: Event payload

        Returns:
            int: Number of connections the event was written to
        """
        targets = self.members(user_id)
        if not targets:
            return 0

        results = await asyncio.gather(
            *(connection.send(event, data) for connection in targets),
            return_exceptions=True,
        )

        delivered = 0
        for connection, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Failed to emit event to connection",
                    extra={
                        "event_name": event,
                        "user_id": str(user_id),
                        "connection_id": connection.connection_id,
                        "error_type": type(result).__name__,
                        "error_msg": str(result),
                    },
                )
            else:
                delivered += 1
        return delivered
