"""
Offline mailbox service.

Durable store-and-forward queue for messages whose receiver had no live
connection at send time. On the receiver's next connection the queue is
drained oldest-first, emitted to the receiver's channel and then deleted.

Dependencies: sqlalchemy, tenacity, chat_relay.boundary.db.CRUD, chat_relay.core
System role: Offline delivery guarantees
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from chat_relay.boundary.db.CRUD.offline_message_crud import offline_message_crud
from chat_relay.boundary.db.models.offline_message_model import OfflineMessageModel
from chat_relay.core.exceptions import StorageError
from chat_relay.core.session_registry import SessionRegistry
from chat_relay.models.events import ClientTimestamp, NewMessageEvent, ServerEventType
from chat_relay.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedMessage:
    """A message waiting in a receiver's offline queue."""

    id: int
    sender_id: UUID
    receiver_id: UUID
    message_uuid: str
    content: str
    message_type: str
    client_timestamp: ClientTimestamp | None
    created_at: datetime

    @classmethod
    def from_model(cls, row: OfflineMessageModel) -> "QueuedMessage":
        return cls(
            id=row.id,
            sender_id=row.sender_id,
            receiver_id=row.receiver_id,
            message_uuid=row.message_uuid,
            content=row.content,
            message_type=row.message_type,
            client_timestamp=_decode_timestamp(row.client_timestamp),
            created_at=row.created_at,
        )

    def to_event(self) -> NewMessageEvent:
        """Build the ``new_message`` payload used for redelivery."""
        return NewMessageEvent(
            message_uuid=self.message_uuid,
            sender_id=self.sender_id,
            receiver_id=self.receiver_id,
            message=self.content,
            message_type=self.message_type,
            timestamp=(
                self.client_timestamp
                if self.client_timestamp is not None
                else self.created_at.isoformat()
            ),
            status="delivered",
        )


class MailboxService:
    """
    Offline mailbox.

    Attributes:
        session_factory: Async session factory for the mailbox table
        registry: Session registry used for redelivery fan-out
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        registry: SessionRegistry,
    ) -> None:
        self.session_factory = session_factory
        self.registry = registry
        self._draining: set[UUID] = set()
        self._redrain: set[UUID] = set()

    async def store(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        content: str,
        message_uuid: str,
        message_type: str,
        client_timestamp: ClientTimestamp | None = None,
    ) -> QueuedMessage:
        """
        Durably queue a message for an offline receiver.

        Storing a message_uuid that is already queued returns the existing
        entry without creating a second one.

        Returns:
            QueuedMessage: The queued entry

        Raises:
            StorageError: If the write fails; the caller must surface this
        """
        try:
            queued = await self._enqueue_with_retry(
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                message_uuid=message_uuid,
                message_type=message_type,
                client_timestamp=_encode_timestamp(client_timestamp),
            )
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to queue message for offline delivery",
                operation="store",
                details={"message_uuid": message_uuid, "receiver_id": str(receiver_id)},
            ) from e

        logger.info(
            "Queued offline message",
            extra={"message_uuid": message_uuid, "receiver_id": str(receiver_id)},
        )
        return queued

    @retry(
        retry=retry_if_exception_type(OperationalError),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=0.05, max=1, jitter=0.05),
        before_sleep=lambda retry_state: logger.warning(
            f"{__name__}:store - Retry {retry_state.attempt_number}/3 after transient DB error"
        ),
        reraise=True,
    )
    async def _enqueue_with_retry(self, **fields) -> QueuedMessage:
        """Write one mailbox row; safe to repeat since enqueue is idempotent."""
        async with self.session_factory() as db:
            row = await offline_message_crud.enqueue(db, **fields)
            queued = QueuedMessage.from_model(row)
            await db.commit()
            return queued

    async def drain(self, user_id: UUID) -> list[QueuedMessage]:
        """
        Read all pending messages for a user, oldest first.

        Does not delete; the caller deletes what it managed to emit.

        Raises:
            StorageError: If the read fails
        """
        try:
            async with self.session_factory() as db:
                rows = await offline_message_crud.get_pending(db, user_id)
                return [QueuedMessage.from_model(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to read offline messages",
                operation="drain",
                details={"user_id": str(user_id)},
            ) from e

    async def delete(self, ids: Iterable[int]) -> int:
        """
        Delete queued messages by ID.

        Empty and already-deleted ID lists are accepted.

        Returns:
            int: Number of rows removed

        Raises:
            StorageError: If the delete fails
        """
        id_list = list(ids)
        if not id_list:
            return 0
        try:
            async with self.session_factory() as db:
                removed = await offline_message_crud.delete_many(db, id_list)
                await db.commit()
                return removed
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to delete offline messages",
                operation="delete",
                details={"ids": id_list},
            ) from e

    async def deliver_pending(self, user_id: UUID) -> int:
        """
        Redeliver a user's queued messages to their channel.

        Messages are emitted in storage order. Only the messages that reached
        at least one live connection are deleted; if the user disconnects
        mid-drain the remainder stays queued for next time. A call for the
        same user while a drain is in flight marks that drain to read the
        queue once more before finishing, so a message stored mid-drain is
        not left behind.

        Args:
            user_id: Receiver whose queue should be flushed

        Returns:
            int: Number of messages emitted by this call
        """
        if user_id in self._draining:
            logger.debug("Offline drain already in progress", extra={"user_id": str(user_id)})
            self._redrain.add(user_id)
            return 0

        self._draining.add(user_id)
        try:
            emitted = 0
            while True:
                self._redrain.discard(user_id)
                delivered, complete = await self._drain_once(user_id)
                emitted += delivered
                if not complete or user_id not in self._redrain:
                    return emitted
        finally:
            self._draining.discard(user_id)
            self._redrain.discard(user_id)

    async def _drain_once(self, user_id: UUID) -> tuple[int, bool]:
        """One read-emit-delete pass; returns (emitted, channel stayed live)."""
        try:
            pending = await self.drain(user_id)
        except StorageError as e:
            log_exception_with_context(
                logger, "Offline message drain failed", e, user_id=str(user_id)
            )
            return 0, False

        if not pending:
            return 0, True

        logger.info(
            "Delivering offline messages",
            extra={"user_id": str(user_id), "count": len(pending)},
        )

        delivered_ids: list[int] = []
        for queued in pending:
            written = await self.registry.emit(
                user_id,
                ServerEventType.NEW_MESSAGE.value,
                queued.to_event().to_wire(),
            )
            if written == 0:
                break
            delivered_ids.append(queued.id)

        try:
            await self.delete(delivered_ids)
        except StorageError as e:
            # Rows stay queued and are re-sent on next connect; clients
            # de-duplicate by messageUuid.
            log_exception_with_context(
                logger,
                "Failed to delete delivered offline messages",
                e,
                user_id=str(user_id),
                count=len(delivered_ids),
            )
            return len(delivered_ids), False

        return len(delivered_ids), len(delivered_ids) == len(pending)


def _encode_timestamp(value: ClientTimestamp | None) -> str | None:
    # JSON keeps numeric client timestamps numeric on redelivery
    return None if value is None else json.dumps(value)


def _decode_timestamp(stored: str | None) -> ClientTimestamp | None:
    return None if stored is None else json.loads(stored)
