"""
Message status ORM model.

Delivered/read flags for relayed messages. Status only moves forward:
sent -> delivered -> read.

Dependencies: sqlalchemy, chat_relay.boundary.db.base
System role: Delivery status persistence
"""

import enum
from uuid import UUID

from sqlalchemy import Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from chat_relay.boundary.db.base import Base, TimestampMixin, UUIDMixin


class MessageStatus(str, enum.Enum):
    """
    Delivery states of a relayed message.

    SENT: Accepted by the relay
    DELIVERED: Receiver's client acknowledged receipt
    READ: Receiver opened the message
    """

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"

    @property
    def rank(self) -> int:
        """Position in the forward-only progression."""
        return _STATUS_ORDER[self]


_STATUS_ORDER = {
    MessageStatus.SENT: 0,
    MessageStatus.DELIVERED: 1,
    MessageStatus.READ: 2,
}


class MessageStatusModel(Base, UUIDMixin, TimestampMixin):
    """
    Message status ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        message_uuid: Client-assigned message identifier (unique)
        sender_id: Originating user
        receiver_id: Target user
        status: Current delivery state
        updated_by: User whose client reported the latest state
    """

    __tablename__ = "message_statuses"

    message_uuid: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    sender_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    receiver_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    status: Mapped[MessageStatus] = mapped_column(
        Enum(MessageStatus, native_enum=False),
        nullable=False,
        default=MessageStatus.SENT,
    )
    updated_by: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
