"""
Realtime event schemas.

Defines the WebSocket envelope, event names and payload shapes exchanged with
chat clients. Field names on the wire are camelCase; Python attributes are
snake_case with aliases.

Dependencies: pydantic
System role: Realtime relay protocol schemas
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from chat_relay.core.exceptions import ValidationError

ClientTimestamp = str | int | float


def iso_now() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class ClientEventType(str, Enum):
    """Client-to-server event types."""

    SEND_MESSAGE = "send_message"
    UPDATE_MESSAGE_STATUS = "update_message_status"
    TYPING_START = "typing_start"
    TYPING_STOP = "typing_stop"
    FRIEND_REQUEST_SENT = "friend_request_sent"
    PING = "ping"


class ServerEventType(str, Enum):
    """Server-to-client event types."""

    CONNECTED = "connected"
    NEW_MESSAGE = "new_message"
    MESSAGE_SENT = "message_sent"
    MESSAGE_ERROR = "message_error"
    MESSAGE_STATUS_UPDATE = "message_status_update"
    STATUS_ERROR = "status_error"
    USER_TYPING = "user_typing"
    FRIEND_STATUS_UPDATE = "friend_status_update"
    FRIEND_REQUEST_RECEIVED = "friend_request_received"
    ERROR = "error"
    PONG = "pong"


class RelayEvent(BaseModel):
    """
    WebSocket frame envelope.

    Attributes:
        event: Event type identifier
        data: Event-specific payload
    """

    event: str
    data: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {"event": self.event, "data": self.data}


class WireModel(BaseModel):
    """Base for payloads that travel with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire aliases and JSON-safe values."""
        return self.model_dump(by_alias=True, mode="json")


# Inbound payloads


class SendMessagePayload(WireModel):
    """Payload of ``send_message``."""

    receiver_id: UUID = Field(alias="receiverId")
    message_uuid: str = Field(alias="messageUuid", min_length=1)
    message: str
    message_type: str | None = Field(default=None, alias="messageType")
    timestamp: ClientTimestamp | None = None


class UpdateMessageStatusPayload(WireModel):
    """Payload of ``update_message_status``."""

    message_uuid: str = Field(alias="messageUuid", min_length=1)
    status: str = Field(min_length=1)
    sender_id: UUID = Field(alias="senderId")


class TypingPayload(WireModel):
    """Payload of ``typing_start`` and ``typing_stop``."""

    receiver_id: UUID = Field(alias="receiverId")


class FriendRequestPayload(WireModel):
    """Payload of ``friend_request_sent``."""

    receiver_id: UUID = Field(alias="receiverId")
    request_id: str = Field(alias="requestId", min_length=1)


# Outbound payloads


class NewMessageEvent(WireModel):
    """Payload of ``new_message``."""

    message_uuid: str = Field(alias="messageUuid")
    sender_id: UUID = Field(alias="senderId")
    receiver_id: UUID = Field(alias="receiverId")
    message: str
    message_type: str = Field(alias="messageType")
    timestamp: ClientTimestamp
    status: str = "delivered"


class MessageSentEvent(WireModel):
    """Payload of ``message_sent``."""

    message_uuid: str = Field(alias="messageUuid")
    status: str = "sent"
    timestamp: str = Field(default_factory=iso_now)


class ErrorEvent(WireModel):
    """Payload of ``message_error`` and ``status_error``."""

    error: str
    message_uuid: str | None = Field(default=None, alias="messageUuid")


class MessageStatusUpdateEvent(WireModel):
    """Payload of ``message_status_update``."""

    message_uuid: str = Field(alias="messageUuid")
    status: str
    updated_by: UUID = Field(alias="updatedBy")
    timestamp: str = Field(default_factory=iso_now)


class UserTypingEvent(WireModel):
    """Payload of ``user_typing``."""

    user_id: UUID = Field(alias="userId")
    is_typing: bool = Field(alias="isTyping")


class FriendStatusUpdateEvent(WireModel):
    """Payload of ``friend_status_update``."""

    friend_id: UUID = Field(alias="friendId")
    is_online: bool = Field(alias="isOnline")
    timestamp: str = Field(default_factory=iso_now)


class FriendRequestReceivedEvent(WireModel):
    """Payload of ``friend_request_received``."""

    request_id: str = Field(alias="requestId")
    sender_id: UUID = Field(alias="senderId")
    timestamp: str = Field(default_factory=iso_now)


PayloadT = TypeVar("PayloadT", bound=WireModel)


def parse_payload(model: type[PayloadT], data: Any, event: str) -> PayloadT:
    """
    Validate an inbound payload.

    Args:
        model: Payload schema
        data: Raw ``data`` object from the frame
        event: Event name, used in the error message

    Returns:
        Parsed payload

    Raises:
        ValidationError: If data is not an object, a required field is
            missing, or a field has the wrong type
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Payload for {event} must be an object")
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        if first.get("type") == "missing":
            message = f"Missing required fields for {event}"
        else:
            message = f"Invalid field '{field}' for {event}"
        raise ValidationError(message, field=field or None) from e
