"""
Message status CRUD operations.

Tracks sent/delivered/read flags with forward-only transitions.

Dependencies: sqlalchemy, chat_relay.boundary.db.models
System role: Delivery status persistence
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chat_relay.boundary.db.base import utcnow
from chat_relay.boundary.db.CRUD.base_crud import BaseCRUD
from chat_relay.boundary.db.models.message_status_model import (
    MessageStatus,
    MessageStatusModel,
)


class MessageStatusCRUD(BaseCRUD[MessageStatusModel]):
    """CRUD operations for MessageStatusModel."""

    def __init__(self) -> None:
        """Initialize MessageStatusCRUD with MessageStatusModel."""
        super().__init__(MessageStatusModel)

    async def get_by_message_uuid(
        self,
        session: AsyncSession,
        message_uuid: str,
    ) -> MessageStatusModel | None:
        """
        Retrieve the status row for a message.

        Args:
            session: Async database session
            message_uuid: Client message identifier

        Returns:
            MessageStatusModel if tracked, None otherwise
        """
        stmt = select(MessageStatusModel).where(
            MessageStatusModel.message_uuid == message_uuid
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def track_sent(
        self,
        session: AsyncSession,
        message_uuid: str,
        sender_id: UUID,
        receiver_id: UUID,
    ) -> MessageStatusModel:
        """
        Start tracking a message in the SENT state.

        Re-sending a message that is already tracked leaves its status as is.

        Args:
            session: Async database session
            message_uuid: Client message identifier
            sender_id: Originating user
            receiver_id: Target user

        Returns:
            Tracked MessageStatusModel
        """
        existing = await self.get_by_message_uuid(session, message_uuid)
        if existing is not None:
            return existing
        return await self.create(
            session,
            message_uuid=message_uuid,
            sender_id=sender_id,
            receiver_id=receiver_id,
            status=MessageStatus.SENT,
        )

    async def advance_status(
        self,
        session: AsyncSession,
        message_uuid: str,
        status: MessageStatus,
        updated_by: UUID,
    ) -> bool:
        """
        Move a message's status forward.

        Backward or repeated transitions (read -> delivered, read -> read) are
        ignored.

        Args:
            session: Async database session
            message_uuid: Client message identifier
            status: Target status
            updated_by: Reporting user

        Returns:
            True if the stored status changed
        """
        row = await self.get_by_message_uuid(session, message_uuid)
        if row is None or status.rank <= row.status.rank:
            return False
        row.status = status
        row.updated_by = updated_by
        row.updated_at = utcnow()
        await session.flush()
        return True


message_status_crud = MessageStatusCRUD()
