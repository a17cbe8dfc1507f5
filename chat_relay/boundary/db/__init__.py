"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(): Connection management
  - UserModel, FriendshipModel, UserSessionModel, OfflineMessageModel,
    MessageStatusModel: Domain entities
  - CRUD singletons for each model

Dependencies: sqlalchemy, chat_relay.configs
System role: Durable storage for sessions, friendships, presence flags,
the offline mailbox and delivery status.
"""

from chat_relay.boundary.db.base import Base, TimestampMixin, UUIDMixin
from chat_relay.boundary.db.connection import (
    get_async_engine,
    get_async_session_factory,
)
from chat_relay.boundary.db.models import (
    FriendshipModel,
    MessageStatus,
    MessageStatusModel,
    OfflineMessageModel,
    UserModel,
    UserSessionModel,
)
from chat_relay.boundary.db.CRUD import (
    BaseCRUD,
    friendship_crud,
    message_status_crud,
    offline_message_crud,
    user_crud,
    user_session_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "UserModel",
    "FriendshipModel",
    "UserSessionModel",
    "OfflineMessageModel",
    "MessageStatus",
    "MessageStatusModel",
    # CRUD
    "BaseCRUD",
    "friendship_crud",
    "message_status_crud",
    "offline_message_crud",
    "user_crud",
    "user_session_crud",
]
