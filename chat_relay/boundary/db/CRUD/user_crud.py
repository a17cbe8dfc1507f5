"""
User CRUD operations.

Durable presence updates for the presence broadcaster.

Dependencies: sqlalchemy, chat_relay.boundary.db.models
System role: User presence persistence
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from chat_relay.boundary.db.base import utcnow
from chat_relay.boundary.db.CRUD.base_crud import BaseCRUD
from chat_relay.boundary.db.models.user_model import UserModel


class UserCRUD(BaseCRUD[UserModel]):
    """CRUD operations for UserModel."""

    def __init__(self) -> None:
        """Initialize UserCRUD with UserModel."""
        super().__init__(UserModel)

    async def set_online_status(
        self,
        session: AsyncSession,
        user_id: UUID,
        is_online: bool,
    ) -> UserModel | None:
        """
        Update a user's durable online flag.

        Going offline also stamps last_seen.

        Args:
            session: Async database session
            user_id: User UUID
            is_online: New online state

        Returns:
            Updated UserModel if found, None otherwise
        """
        values: dict = {"is_online": is_online, "updated_at": utcnow()}
        if not is_online:
            values["last_seen"] = utcnow()
        return await self.update_by_id(session, user_id, **values)


user_crud = UserCRUD()
