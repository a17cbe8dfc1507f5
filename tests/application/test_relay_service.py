"""
Test suite for RelayService live-vs-offline delivery.

System role: Verification of the direct message relay
"""

from unittest.mock import AsyncMock

import pytest

from chat_relay.application.services.relay_service import DeliveryState
from chat_relay.boundary.db.CRUD.message_status_crud import message_status_crud
from chat_relay.boundary.db.CRUD.offline_message_crud import offline_message_crud
from chat_relay.boundary.db.models.message_status_model import MessageStatus
from chat_relay.core.exceptions import AuthorizationError, StorageError, ValidationError


async def _pending(session_factory, receiver_id):
    async with session_factory() as db:
        return list(await offline_message_crud.get_pending(db, receiver_id))


class TestSend:
    """Test suite for RelayService.send()."""

    @pytest.mark.asyncio
    async def test_online_receiver_gets_message_live(
        self, relay_app, people, make_connection, session_factory
    ) -> None:
        # Arrange
        bob = make_connection(people["bob"])
        relay_app.registry.join(people["bob"], bob)

        # Act
        state = await relay_app.relay.send(
            people["alice"], people["bob"], "m1", "hi", client_timestamp="2024-01-01T00:00:00Z"
        )

        # Assert
        assert state == DeliveryState.DELIVERED_LIVE
        assert bob.events("new_message") == [
            {
                "messageUuid": "m1",
                "senderId": str(people["alice"]),
                "receiverId": str(people["bob"]),
                "message": "hi",
                "messageType": "text",
                "timestamp": "2024-01-01T00:00:00Z",
                "status": "delivered",
            }
        ]
        assert await _pending(session_factory, people["bob"]) == []

    @pytest.mark.asyncio
    async def test_offline_receiver_gets_message_queued(
        self, relay_app, people, session_factory
    ) -> None:
        state = await relay_app.relay.send(
            people["alice"], people["bob"], "m1", "hi", message_type="image"
        )

        assert state == DeliveryState.QUEUED_OFFLINE
        pending = await _pending(session_factory, people["bob"])
        assert [(row.message_uuid, row.message_type) for row in pending] == [("m1", "image")]

    @pytest.mark.asyncio
    async def test_non_friend_is_rejected_without_side_effects(
        self, relay_app, people, make_connection, session_factory
    ) -> None:
        victim = make_connection(people["alice"])
        relay_app.registry.join(people["alice"], victim)

        with pytest.raises(AuthorizationError, match="not friends"):
            await relay_app.relay.send(people["mallory"], people["alice"], "m1", "spam")

        assert victim.sent == []
        assert await _pending(session_factory, people["alice"]) == []

    @pytest.mark.parametrize(
        "receiver_key, message_uuid, content",
        [(None, "m1", "hi"), ("bob", "", "hi"), ("bob", "m1", None)],
    )
    @pytest.mark.asyncio
    async def test_missing_fields_rejected(
        self, relay_app, people, receiver_key, message_uuid, content
    ) -> None:
        receiver = people[receiver_key] if receiver_key else None

        with pytest.raises(ValidationError):
            await relay_app.relay.send(people["alice"], receiver, message_uuid, content)

    @pytest.mark.asyncio
    async def test_empty_content_is_relayed(self, relay_app, people, make_connection) -> None:
        bob = make_connection(people["bob"])
        relay_app.registry.join(people["bob"], bob)

        await relay_app.relay.send(people["alice"], people["bob"], "m1", "")

        assert bob.events("new_message")[0]["message"] == ""

    @pytest.mark.asyncio
    async def test_accepted_message_is_tracked_as_sent(
        self, relay_app, people, session_factory
    ) -> None:
        await relay_app.relay.send(people["alice"], people["bob"], "m1", "hi")

        async with session_factory() as db:
            row = await message_status_crud.get_by_message_uuid(db, "m1")
        assert row.status == MessageStatus.SENT


class TestHandleSendMessage:
    """Test suite for RelayService.handle_send_message() acknowledgements."""

    @pytest.mark.asyncio
    async def test_sender_gets_message_sent(self, relay_app, people, make_connection) -> None:
        alice = make_connection(people["alice"])

        await relay_app.relay.handle_send_message(
            alice,
            {"receiverId": str(people["bob"]), "messageUuid": "m1", "message": "hi"},
        )

        assert alice.names() == ["message_sent"]
        ack = alice.events("message_sent")[0]
        assert ack["messageUuid"] == "m1"
        assert ack["status"] == "sent"
        assert ack["timestamp"].endswith("Z")

    @pytest.mark.asyncio
    async def test_non_friend_gets_message_error(self, relay_app, people, make_connection) -> None:
        mallory = make_connection(people["mallory"])

        await relay_app.relay.handle_send_message(
            mallory,
            {"receiverId": str(people["alice"]), "messageUuid": "m9", "message": "spam"},
        )

        assert mallory.events("message_error") == [
            {"error": "Message blocked: Users are not friends.", "messageUuid": "m9"}
        ]

    @pytest.mark.asyncio
    async def test_missing_receiver_gets_message_error(
        self, relay_app, people, make_connection
    ) -> None:
        alice = make_connection(people["alice"])

        await relay_app.relay.handle_send_message(alice, {"messageUuid": "m1", "message": "hi"})

        assert alice.events("message_error") == [
            {"error": "Missing required fields for send_message", "messageUuid": "m1"}
        ]

    @pytest.mark.asyncio
    async def test_mailbox_failure_is_reported_instead_of_ack(
        self, relay_app, people, make_connection
    ) -> None:
        """A message that could not be queued must never be acknowledged."""
        # Arrange
        relay_app.mailbox.store = AsyncMock(
            side_effect=StorageError("Failed to queue message for offline delivery")
        )
        alice = make_connection(people["alice"])

        # Act
        await relay_app.relay.handle_send_message(
            alice,
            {"receiverId": str(people["bob"]), "messageUuid": "m1", "message": "hi"},
        )

        # Assert
        assert alice.names() == ["message_error"]
        assert alice.events("message_error")[0]["messageUuid"] == "m1"


class TestUpdateMessageStatus:
    """Test suite for delivered/read receipts."""

    @pytest.mark.asyncio
    async def test_receipt_forwarded_to_sender(
        self, relay_app, people, make_connection, session_factory
    ) -> None:
        # Arrange
        alice = make_connection(people["alice"])
        bob = make_connection(people["bob"])
        relay_app.registry.join(people["alice"], alice)
        relay_app.registry.join(people["bob"], bob)
        await relay_app.relay.send(people["alice"], people["bob"], "m1", "hi")

        # Act
        await relay_app.relay.handle_update_message_status(
            bob, {"messageUuid": "m1", "status": "read", "senderId": str(people["alice"])}
        )

        # Assert
        update = alice.events("message_status_update")[0]
        assert update["messageUuid"] == "m1"
        assert update["status"] == "read"
        assert update["updatedBy"] == str(people["bob"])
        async with session_factory() as db:
            row = await message_status_crud.get_by_message_uuid(db, "m1")
        assert row.status == MessageStatus.READ

    @pytest.mark.asyncio
    async def test_unknown_status_gets_status_error(
        self, relay_app, people, make_connection
    ) -> None:
        bob = make_connection(people["bob"])

        await relay_app.relay.handle_update_message_status(
            bob, {"messageUuid": "m1", "status": "sent", "senderId": str(people["alice"])}
        )

        assert bob.events("status_error")[0]["messageUuid"] == "m1"

    @pytest.mark.asyncio
    async def test_non_friend_receipt_rejected(self, relay_app, people, make_connection) -> None:
        alice = make_connection(people["alice"])
        relay_app.registry.join(people["alice"], alice)
        mallory = make_connection(people["mallory"])

        await relay_app.relay.handle_update_message_status(
            mallory, {"messageUuid": "m1", "status": "read", "senderId": str(people["alice"])}
        )

        assert alice.sent == []
        assert mallory.events("status_error")[0]["error"] == (
            "Status update blocked: Users are not friends."
        )
