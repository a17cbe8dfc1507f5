"""
End-to-end relay scenarios through the connection orchestrator.

Each test drives ConnectionService the way the WebSocket router does:
authenticate, open, dispatch frames, close.

System role: Verification of delivery, mailbox and presence guarantees
"""

import asyncio

import pytest

from chat_relay.boundary.db.CRUD.offline_message_crud import offline_message_crud


@pytest.fixture
def connect(relay_app, make_connection):
    """Authenticate with a fresh session and open a connection."""

    async def _connect(user_id):
        token = await relay_app.auth.issue_session(user_id)
        claims = await relay_app.hub.authenticate(token)
        conn = make_connection(claims.user_id, session_id=claims.session_id)
        await relay_app.hub.open(conn)
        return conn

    return _connect


async def _queued_uuids(session_factory, receiver_id) -> list[str]:
    async with session_factory() as db:
        return [row.message_uuid for row in await offline_message_crud.get_pending(db, receiver_id)]


def _send_frame(receiver_id, message_uuid, message="hi") -> dict:
    return {"receiverId": str(receiver_id), "messageUuid": message_uuid, "message": message}


class TestOfflineRoundTrip:
    """Send to an offline friend, then the friend connects."""

    @pytest.mark.asyncio
    async def test_offline_send_is_acked_and_queued(
        self, relay_app, people, connect, session_factory
    ) -> None:
        # Arrange
        alice = await connect(people["alice"])

        # Act
        await relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "m1"))

        # Assert
        ack = alice.events("message_sent")
        assert [(a["messageUuid"], a["status"]) for a in ack] == [("m1", "sent")]
        assert await _queued_uuids(session_factory, people["bob"]) == ["m1"]

    @pytest.mark.asyncio
    async def test_reconnect_drains_mailbox(
        self, relay_app, people, connect, session_factory
    ) -> None:
        # Arrange
        alice = await connect(people["alice"])
        await relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "m1"))

        # Act
        bob = await connect(people["bob"])

        # Assert
        delivered = bob.events("new_message")
        assert len(delivered) == 1
        assert delivered[0]["messageUuid"] == "m1"
        assert delivered[0]["senderId"] == str(people["alice"])
        assert delivered[0]["status"] == "delivered"
        assert await _queued_uuids(session_factory, people["bob"]) == []

    @pytest.mark.asyncio
    async def test_drain_preserves_order_across_senders(
        self, relay_app, people, connect
    ) -> None:
        alice = await connect(people["alice"])
        carol = await connect(people["carol"])
        await relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "a1"))
        await relay_app.hub.dispatch(carol, "send_message", _send_frame(people["bob"], "c1"))
        await relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "a2"))

        bob = await connect(people["bob"])

        assert [m["messageUuid"] for m in bob.events("new_message")] == ["a1", "c1", "a2"]

    @pytest.mark.asyncio
    async def test_resend_of_same_message_queued_once(
        self, relay_app, people, connect, session_factory
    ) -> None:
        alice = await connect(people["alice"])

        await relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "m1"))
        await relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "m1"))

        assert await _queued_uuids(session_factory, people["bob"]) == ["m1"]

    @pytest.mark.asyncio
    async def test_connect_during_mailbox_write_still_delivers(
        self, relay_app, people, connect, session_factory
    ) -> None:
        """A receiver whose connect-time drain ran before the row landed still gets it."""
        # Arrange
        alice = await connect(people["alice"])
        real_enqueue = relay_app.mailbox._enqueue_with_retry
        writing = asyncio.Event()
        release = asyncio.Event()

        async def held_enqueue(**fields):
            writing.set()
            await release.wait()
            return await real_enqueue(**fields)

        relay_app.mailbox._enqueue_with_retry = held_enqueue
        send = asyncio.create_task(
            relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "m1"))
        )
        await writing.wait()

        # Act
        bob = await connect(people["bob"])
        assert bob.events("new_message") == []
        release.set()
        await send

        # Assert
        assert [m["messageUuid"] for m in bob.events("new_message")] == ["m1"]
        assert await _queued_uuids(session_factory, people["bob"]) == []
        assert alice.events("message_sent")[0]["messageUuid"] == "m1"

    @pytest.mark.asyncio
    async def test_numeric_timestamp_survives_the_mailbox(
        self, relay_app, people, connect
    ) -> None:
        alice = await connect(people["alice"])
        carol = await connect(people["carol"])
        for receiver, message_uuid in ((people["bob"], "m1"), (people["carol"], "m2")):
            frame = {**_send_frame(receiver, message_uuid), "timestamp": 1700000000000}
            await relay_app.hub.dispatch(alice, "send_message", frame)

        bob = await connect(people["bob"])

        assert bob.events("new_message")[0]["timestamp"] == 1700000000000
        assert carol.events("new_message")[0]["timestamp"] == 1700000000000


class TestLiveDelivery:
    """Send to a reachable friend."""

    @pytest.mark.asyncio
    async def test_every_device_gets_the_message_and_nothing_is_queued(
        self, relay_app, people, connect, session_factory
    ) -> None:
        alice = await connect(people["alice"])
        bob_phone = await connect(people["bob"])
        bob_laptop = await connect(people["bob"])

        await relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "m1"))

        assert len(bob_phone.events("new_message")) == 1
        assert len(bob_laptop.events("new_message")) == 1
        assert alice.events("message_sent")[0]["messageUuid"] == "m1"
        assert await _queued_uuids(session_factory, people["bob"]) == []

    @pytest.mark.asyncio
    async def test_read_receipt_round_trip(self, relay_app, people, connect) -> None:
        alice = await connect(people["alice"])
        bob = await connect(people["bob"])
        await relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "m1"))

        await relay_app.hub.dispatch(
            bob,
            "update_message_status",
            {"messageUuid": "m1", "status": "read", "senderId": str(people["alice"])},
        )

        update = alice.events("message_status_update")[0]
        assert (update["messageUuid"], update["status"]) == ("m1", "read")


class TestAuthorization:
    """Relays between non-friends."""

    @pytest.mark.asyncio
    async def test_non_friend_message_never_delivered_or_queued(
        self, relay_app, people, connect, session_factory
    ) -> None:
        mallory = await connect(people["mallory"])
        alice = await connect(people["alice"])

        await relay_app.hub.dispatch(mallory, "send_message", _send_frame(people["alice"], "x1"))

        error = mallory.events("message_error")[0]
        assert error["messageUuid"] == "x1"
        assert error["error"]
        assert alice.events("new_message") == []
        assert await _queued_uuids(session_factory, people["alice"]) == []


class TestPresence:
    """Presence transitions across devices."""

    @pytest.mark.asyncio
    async def test_friends_see_online_once(self, relay_app, people, connect) -> None:
        bob = await connect(people["bob"])

        await connect(people["alice"])
        await connect(people["alice"])

        updates = bob.events("friend_status_update")
        assert [(u["friendId"], u["isOnline"]) for u in updates] == [
            (str(people["alice"]), True)
        ]

    @pytest.mark.asyncio
    async def test_dropping_one_of_two_devices_keeps_user_online(
        self, relay_app, people, connect
    ) -> None:
        bob = await connect(people["bob"])
        phone = await connect(people["alice"])
        laptop = await connect(people["alice"])

        await relay_app.hub.close(phone)

        offline = [u for u in bob.events("friend_status_update") if u["isOnline"] is False]
        assert offline == []
        assert relay_app.registry.is_reachable(people["alice"])

        await relay_app.hub.close(laptop)

        offline = [u for u in bob.events("friend_status_update") if u["isOnline"] is False]
        assert [u["friendId"] for u in offline] == [str(people["alice"])]

    @pytest.mark.asyncio
    async def test_disconnect_then_send_queues(
        self, relay_app, people, connect, session_factory
    ) -> None:
        alice = await connect(people["alice"])
        bob = await connect(people["bob"])
        await relay_app.hub.close(bob)

        await relay_app.hub.dispatch(alice, "send_message", _send_frame(people["bob"], "m2"))

        assert await _queued_uuids(session_factory, people["bob"]) == ["m2"]


class TestSessionInvalidation:
    """Logout takes effect on the next handshake."""

    @pytest.mark.asyncio
    async def test_logged_out_token_cannot_reconnect(self, relay_app, people) -> None:
        from chat_relay.core.exceptions import AuthenticationError

        token = await relay_app.auth.issue_session(people["alice"])
        await relay_app.hub.authenticate(token)

        await relay_app.auth.revoke_session(token)

        with pytest.raises(AuthenticationError):
            await relay_app.hub.authenticate(token)
