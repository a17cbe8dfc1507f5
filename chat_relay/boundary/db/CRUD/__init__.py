"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from chat_relay.boundary.db.CRUD import friendship_crud, offline_message_crud

    # Use singleton instances
    friends = await friendship_crud.are_friends(db, user_a, user_b)

    # Or instantiate classes directly for custom behavior
    from chat_relay.boundary.db.CRUD import OfflineMessageCRUD
    custom_crud = OfflineMessageCRUD()
"""

from chat_relay.boundary.db.CRUD.base_crud import BaseCRUD
from chat_relay.boundary.db.CRUD.friendship_crud import FriendshipCRUD, friendship_crud
from chat_relay.boundary.db.CRUD.message_status_crud import (
    MessageStatusCRUD,
    message_status_crud,
)
from chat_relay.boundary.db.CRUD.offline_message_crud import (
    OfflineMessageCRUD,
    offline_message_crud,
)
from chat_relay.boundary.db.CRUD.user_crud import UserCRUD, user_crud
from chat_relay.boundary.db.CRUD.user_session_crud import (
    UserSessionCRUD,
    user_session_crud,
)

__all__ = [
    "BaseCRUD",
    "FriendshipCRUD",
    "friendship_crud",
    "MessageStatusCRUD",
    "message_status_crud",
    "OfflineMessageCRUD",
    "offline_message_crud",
    "UserCRUD",
    "user_crud",
    "UserSessionCRUD",
    "user_session_crud",
]
