"""
Offline message ORM model.

Store-and-forward queue for messages whose receiver had no live connection at
send time. Rows are drained in (created_at, id) order on the receiver's next
connection and deleted once emitted.

Dependencies: sqlalchemy, chat_relay.boundary.db.base
System role: Durable offline mailbox
"""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from chat_relay.boundary.db.base import Base, TimestampMixin


class OfflineMessageModel(Base, TimestampMixin):
    """
    Queued message ORM model.

    Uses an integer primary key so that insertion order is a stable
    tie-breaker when two rows share a created_at value.

    Attributes:
        id: Monotonic integer primary key
        sender_id: Originating user
        receiver_id: User the message is waiting for
        message_uuid: Client-assigned message identifier (unique)
        content: Message body
        message_type: Client message type tag (text, image, ...)
        client_timestamp: JSON-encoded timestamp supplied by the sender, if any
        created_at: Queue insertion time (UTC)
    """

    __tablename__ = "offline_messages"
    __table_args__ = (
        Index("ix_offline_messages_receiver_created", "receiver_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    receiver_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    message_uuid: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    message_type: Mapped[str] = mapped_column(String(32), nullable=False, default="text")
    client_timestamp: Mapped[str | None] = mapped_column(String(64), nullable=True)
