"""Service orchestrators."""

from .auth_service import AuthService
from .connection_service import ConnectionService
from .friendship_service import FriendshipService
from .mailbox_service import MailboxService, QueuedMessage
from .presence_service import PresenceService
from .relay_service import DeliveryState, RelayService
from .signal_service import SignalService

__all__ = [
    "AuthService",
    "ConnectionService",
    "DeliveryState",
    "FriendshipService",
    "MailboxService",
    "PresenceService",
    "QueuedMessage",
    "RelayService",
    "SignalService",
]
