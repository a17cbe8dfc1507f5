"""
Database models package.

Exports:
  - UserModel: User identity and durable presence flags
  - FriendshipModel: Symmetric friendship relation
  - UserSessionModel: Active-session table for handshake validation
  - OfflineMessageModel: Offline mailbox rows
  - MessageStatusModel, MessageStatus: Delivery status tracking

Dependencies: sqlalchemy, chat_relay.boundary.db.base
System role: Database model definitions for domain entities
"""

from chat_relay.boundary.db.models.user_model import UserModel
from chat_relay.boundary.db.models.friendship_model import FriendshipModel
from chat_relay.boundary.db.models.user_session_model import UserSessionModel
from chat_relay.boundary.db.models.offline_message_model import OfflineMessageModel
from chat_relay.boundary.db.models.message_status_model import (
    MessageStatus,
    MessageStatusModel,
)

__all__ = [
    "UserModel",
    "FriendshipModel",
    "UserSessionModel",
    "OfflineMessageModel",
    "MessageStatus",
    "MessageStatusModel",
]
