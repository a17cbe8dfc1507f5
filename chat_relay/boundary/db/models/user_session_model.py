"""
User session ORM model.

Active-session table consulted at every WebSocket handshake. A user may hold
several concurrent sessions (devices, tabs); logout revokes one row only.

Dependencies: sqlalchemy, chat_relay.boundary.db.base
System role: Session validity lookup for connection authentication
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from chat_relay.boundary.db.base import Base, TimestampMixin, UUIDMixin


class UserSessionModel(Base, UUIDMixin, TimestampMixin):
    """
    User session ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        user_id: Session owner
        session_id: Opaque session identifier embedded in the signed token
        revoked_at: Set on logout; a non-null value makes the session inactive
    """

    __tablename__ = "user_sessions"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )
