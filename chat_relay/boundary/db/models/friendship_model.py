"""
Friendship ORM model.

Symmetric relation between two users. A single row (user1, user2) means the
two are friends regardless of column order.

Dependencies: sqlalchemy, chat_relay.boundary.db.base
System role: Authorization source for relay and presence fan-out
"""

from uuid import UUID

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from chat_relay.boundary.db.base import Base, TimestampMixin, UUIDMixin


class FriendshipModel(Base, UUIDMixin, TimestampMixin):
    """
    Friendship ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        user1_id: One side of the friendship
        user2_id: Other side of the friendship
        created_at: Friends-since timestamp (UTC)
    """

    __tablename__ = "friendships"
    __table_args__ = (UniqueConstraint("user1_id", "user2_id", name="uq_friendship_pair"),)

    user1_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user2_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
