"""
User ORM model.

Minimal user record the relay reads and writes: identity, display fields and
the durable online/last-seen flags maintained by the presence broadcaster.

Dependencies: sqlalchemy, chat_relay.boundary.db.base
System role: User persistence for presence tracking
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from chat_relay.boundary.db.base import Base, TimestampMixin, UUIDMixin


class UserModel(Base, UUIDMixin, TimestampMixin):
    """
    User ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        username: Unique handle
        display_name: Human readable name
        is_online: Durable presence flag (eventually consistent with the registry)
        last_seen: Timestamp of the last transition to offline
        created_at: Row creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_seen: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )
