"""
User session CRUD operations.

Active-session table used by the connection authenticator. Every lookup hits
storage so a revoked session is rejected on the very next handshake.

Dependencies: sqlalchemy, chat_relay.boundary.db.models
System role: Session validity persistence
"""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chat_relay.boundary.db.base import utcnow
from chat_relay.boundary.db.CRUD.base_crud import BaseCRUD
from chat_relay.boundary.db.models.user_session_model import UserSessionModel


class UserSessionCRUD(BaseCRUD[UserSessionModel]):
    """CRUD operations for UserSessionModel."""

    def __init__(self) -> None:
        """Initialize UserSessionCRUD with UserSessionModel."""
        super().__init__(UserSessionModel)

    async def open_session(
        self,
        session: AsyncSession,
        user_id: UUID,
        session_id: str,
    ) -> UserSessionModel:
        """
        Record a newly issued session.

        Args:
            session: Async database session
            user_id: Session owner
            session_id: Identifier embedded in the issued token

        Returns:
            Created UserSessionModel
        """
        return await self.create(session, user_id=user_id, session_id=session_id)

    async def is_active(
        self,
        session: AsyncSession,
        user_id: UUID,
        session_id: str,
    ) -> bool:
        """
        Check that (user_id, session_id) is a live, unrevoked session.

        Args:
            session: Async database session
            user_id: Claimed owner
            session_id: Claimed session identifier

        Returns:
            True if the session exists for that user and is not revoked
        """
        stmt = select(UserSessionModel.id).where(
            UserSessionModel.user_id == user_id,
            UserSessionModel.session_id == session_id,
            UserSessionModel.revoked_at.is_(None),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def revoke(
        self,
        session: AsyncSession,
        user_id: UUID,
        session_id: str,
    ) -> bool:
        """
        Revoke a single session.

        Args:
            session: Async database session
            user_id: Session owner
            session_id: Session identifier to revoke

        Returns:
            True if an active session was revoked, False if none matched
        """
        stmt = (
            update(UserSessionModel)
            .where(
                UserSessionModel.user_id == user_id,
                UserSessionModel.session_id == session_id,
                UserSessionModel.revoked_at.is_(None),
            )
            .values(revoked_at=utcnow(), updated_at=utcnow())
        )
        result = await session.execute(stmt)
        return result.rowcount > 0


user_session_crud = UserSessionCRUD()
