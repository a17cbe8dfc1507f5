"""
Friendship CRUD operations.

Read side of the friendship relation used to authorize relays and to pick
presence fan-out targets.

Dependencies: sqlalchemy, chat_relay.boundary.db.models
System role: Friendship lookups
"""

from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chat_relay.boundary.db.CRUD.base_crud import BaseCRUD
from chat_relay.boundary.db.models.friendship_model import FriendshipModel


class FriendshipCRUD(BaseCRUD[FriendshipModel]):
    """
    CRUD operations for FriendshipModel.

    Rows are stored once per pair; every query checks both column orders.
    """

    def __init__(self) -> None:
        """Initialize FriendshipCRUD with FriendshipModel."""
        super().__init__(FriendshipModel)

    @staticmethod
    def _pair_clause(user_a: UUID, user_b: UUID):
        return or_(
            and_(FriendshipModel.user1_id == user_a, FriendshipModel.user2_id == user_b),
            and_(FriendshipModel.user1_id == user_b, FriendshipModel.user2_id == user_a),
        )

    async def are_friends(
        self,
        session: AsyncSession,
        user_a: UUID,
        user_b: UUID,
    ) -> bool:
        """
        Check whether two users are friends.

        Args:
            session: Async database session
            user_a: First user UUID
            user_b: Second user UUID

        Returns:
            True if a friendship row links the two users
        """
        if user_a == user_b:
            return False
        stmt = select(FriendshipModel.id).where(self._pair_clause(user_a, user_b)).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_friend_ids(
        self,
        session: AsyncSession,
        user_id: UUID,
    ) -> list[UUID]:
        """
        List the user IDs of everyone the user is friends with.

        Args:
            session: Async database session
            user_id: User UUID

        Returns:
            Friend UUIDs, most recent friendships first
        """
        stmt = (
            select(FriendshipModel.user1_id, FriendshipModel.user2_id)
            .where(
                or_(
                    FriendshipModel.user1_id == user_id,
                    FriendshipModel.user2_id == user_id,
                )
            )
            .order_by(FriendshipModel.created_at.desc())
        )
        result = await session.execute(stmt)
        return [
            user2_id if user1_id == user_id else user1_id
            for user1_id, user2_id in result.all()
        ]

    async def add_friendship(
        self,
        session: AsyncSession,
        user_a: UUID,
        user_b: UUID,
    ) -> FriendshipModel:
        """
        Link two users as friends, returning the existing row if already linked.

        Args:
            session: Async database session
            user_a: First user UUID
            user_b: Second user UUID

        Returns:
            FriendshipModel for the pair
        """
        stmt = select(FriendshipModel).where(self._pair_clause(user_a, user_b))
        result = await session.execute(stmt)
        existing = result.scalars().first()
        if existing is not None:
            return existing
        return await self.create(session, user1_id=user_a, user2_id=user_b)


friendship_crud = FriendshipCRUD()
