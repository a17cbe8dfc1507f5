"""
Offline message CRUD operations.

Durable side of the offline mailbox: append, FIFO read per receiver and
idempotent bulk delete.

Dependencies: sqlalchemy, chat_relay.boundary.db.models
System role: Offline mailbox persistence
"""

from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chat_relay.boundary.db.CRUD.base_crud import BaseCRUD
from chat_relay.boundary.db.models.offline_message_model import OfflineMessageModel


class OfflineMessageCRUD(BaseCRUD[OfflineMessageModel]):
    """CRUD operations for OfflineMessageModel."""

    def __init__(self) -> None:
        """Initialize OfflineMessageCRUD with OfflineMessageModel."""
        super().__init__(OfflineMessageModel)

    async def get_by_message_uuid(
        self,
        session: AsyncSession,
        message_uuid: str,
    ) -> OfflineMessageModel | None:
        """
        Retrieve a queued message by its client-assigned identifier.

        Args:
            session: Async database session
            message_uuid: Client message identifier

        Returns:
            OfflineMessageModel if queued, None otherwise
        """
        stmt = select(OfflineMessageModel).where(
            OfflineMessageModel.message_uuid == message_uuid
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def enqueue(
        self,
        session: AsyncSession,
        sender_id: UUID,
        receiver_id: UUID,
        content: str,
        message_uuid: str,
        message_type: str,
        client_timestamp: str | None = None,
    ) -> OfflineMessageModel:
        """
        Append a message to the receiver's queue.

        A message_uuid that is already queued is not stored twice; the
        existing row is returned instead.

        Args:
            session: Async database session
            sender_id: Originating user
            receiver_id: Offline receiver
            content: Message body
            message_uuid: Client message identifier
            message_type: Client message type tag
            client_timestamp: Sender-supplied timestamp

        Returns:
            The queued OfflineMessageModel
        """
        existing = await self.get_by_message_uuid(session, message_uuid)
        if existing is not None:
            return existing
        return await self.create(
            session,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            message_uuid=message_uuid,
            message_type=message_type,
            client_timestamp=client_timestamp,
        )

    async def get_pending(
        self,
        session: AsyncSession,
        receiver_id: UUID,
    ) -> Sequence[OfflineMessageModel]:
        """
        Retrieve all queued messages for a receiver in storage order.

        Ordered by created_at then id, so messages from different senders
        interleave exactly as they were stored.

        Args:
            session: Async database session
            receiver_id: Receiver UUID

        Returns:
            Sequence of OfflineMessageModels, oldest first
        """
        stmt = (
            select(OfflineMessageModel)
            .where(OfflineMessageModel.receiver_id == receiver_id)
            .order_by(OfflineMessageModel.created_at.asc(), OfflineMessageModel.id.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def delete_many(self, session: AsyncSession, ids: Iterable[int]) -> int:
        """
        Delete queued messages by primary key.

        Safe with an empty list and with IDs that were already deleted.

        Args:
            session: Async database session
            ids: Primary keys to delete

        Returns:
            Number of rows actually removed
        """
        id_list = list(ids)
        if not id_list:
            return 0
        stmt = delete(OfflineMessageModel).where(OfflineMessageModel.id.in_(id_list))
        result = await session.execute(stmt)
        return result.rowcount


offline_message_crud = OfflineMessageCRUD()
