"""
Friendship oracle.

Read-only view of the friendship relation used to authorize relays and to
choose presence fan-out targets.

Dependencies: sqlalchemy, chat_relay.boundary.db.CRUD
System role: Authorization lookups for relay, presence and signals
"""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from chat_relay.boundary.db.CRUD.friendship_crud import friendship_crud
from chat_relay.core.exceptions import StorageError


class FriendshipService:
    """Friendship lookups backed by the friendships table."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        """
        Initialize friendship service.

        Args:
            session_factory: Async session factory for database access
        """
        self.session_factory = session_factory

    async def are_friends(self, user_a: UUID, user_b: UUID) -> bool:
        """
        Check whether two users are friends.

        Raises:
            StorageError: If the lookup fails
        """
        try:
            async with self.session_factory() as db:
                return await friendship_crud.are_friends(db, user_a, user_b)
        except SQLAlchemyError as e:
            raise StorageError(
                "Friendship lookup failed",
                operation="are_friends",
                details={"user_a": str(user_a), "user_b": str(user_b)},
            ) from e

    async def list_friends(self, user_id: UUID) -> list[UUID]:
        """
        List a user's friends.

        Raises:
            StorageError: If the lookup fails
        """
        try:
            async with self.session_factory() as db:
                return await friendship_crud.list_friend_ids(db, user_id)
        except SQLAlchemyError as e:
            raise StorageError(
                "Friend list lookup failed",
                operation="list_friends",
                details={"user_id": str(user_id)},
            ) from e
