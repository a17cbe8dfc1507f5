"""
Test suite for ConnectionService lifecycle and event routing.

System role: Verification of the realtime connection orchestrator
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chat_relay.application.services.connection_service import ConnectionService
from chat_relay.core.exceptions import AuthenticationError


@pytest.fixture
def mocked_hub(registry) -> ConnectionService:
    """Orchestrator with every collaborator mocked."""
    return ConnectionService(
        registry=registry,
        authenticator=MagicMock(authenticate=AsyncMock()),
        relay=AsyncMock(),
        mailbox=AsyncMock(),
        presence=AsyncMock(),
        signals=AsyncMock(),
    )


class TestAuthenticate:
    """Test suite for authenticate()."""

    @pytest.mark.asyncio
    async def test_store_outage_refuses_connection(self, mocked_hub) -> None:
        mocked_hub.authenticator.authenticate.side_effect = RuntimeError("db down")

        with pytest.raises(AuthenticationError, match="Authentication failed"):
            await mocked_hub.authenticate("token")

    @pytest.mark.asyncio
    async def test_authentication_errors_propagate(self, mocked_hub) -> None:
        mocked_hub.authenticator.authenticate.side_effect = AuthenticationError("expired")

        with pytest.raises(AuthenticationError, match="expired"):
            await mocked_hub.authenticate("token")


class TestLifecycle:
    """Test suite for open() and close()."""

    @pytest.mark.asyncio
    async def test_open_joins_then_publishes_then_drains(
        self, mocked_hub, registry, make_connection, people
    ) -> None:
        # Arrange
        conn = make_connection(people["alice"], session_id="s1")
        order = []
        mocked_hub.presence.on_connect.side_effect = lambda *a: order.append("presence")
        mocked_hub.mailbox.deliver_pending.side_effect = lambda *a: order.append("drain")

        # Act
        await mocked_hub.open(conn)

        # Assert
        assert registry.is_reachable(people["alice"])
        assert conn.events("connected") == [
            {"userId": str(people["alice"]), "sessionId": "s1"}
        ]
        mocked_hub.presence.on_connect.assert_awaited_once_with(people["alice"], True)
        assert order == ["presence", "drain"]

    @pytest.mark.asyncio
    async def test_second_device_is_not_a_transition(
        self, mocked_hub, make_connection, people
    ) -> None:
        await mocked_hub.open(make_connection(people["alice"]))

        await mocked_hub.open(make_connection(people["alice"]))

        assert mocked_hub.presence.on_connect.await_args_list[1].args == (
            people["alice"],
            False,
        )

    @pytest.mark.asyncio
    async def test_close_reports_channel_emptied(
        self, mocked_hub, registry, make_connection, people
    ) -> None:
        phone = make_connection(people["alice"])
        laptop = make_connection(people["alice"])
        await mocked_hub.open(phone)
        await mocked_hub.open(laptop)

        await mocked_hub.close(phone)
        await mocked_hub.close(laptop)

        calls = [c.args for c in mocked_hub.presence.on_disconnect.await_args_list]
        assert calls == [(people["alice"], False), (people["alice"], True)]
        assert not registry.is_reachable(people["alice"])


class TestDispatch:
    """Test suite for dispatch() routing."""

    @pytest.mark.parametrize(
        "event, handler",
        [
            ("send_message", "handle_send_message"),
            ("update_message_status", "handle_update_message_status"),
        ],
    )
    @pytest.mark.asyncio
    async def test_relay_events_routed(
        self, mocked_hub, make_connection, people, event, handler
    ) -> None:
        conn = make_connection(people["alice"])

        await mocked_hub.dispatch(conn, event, {"k": "v"})

        getattr(mocked_hub.relay, handler).assert_awaited_once_with(conn, {"k": "v"})

    @pytest.mark.asyncio
    async def test_typing_events_routed(self, mocked_hub, make_connection, people) -> None:
        conn = make_connection(people["alice"])

        await mocked_hub.dispatch(conn, "typing_start", {})
        await mocked_hub.dispatch(conn, "typing_stop", {})

        assert [c.kwargs["is_typing"] for c in mocked_hub.signals.handle_typing.await_args_list] == [
            True,
            False,
        ]

    @pytest.mark.asyncio
    async def test_friend_request_routed(self, mocked_hub, make_connection, people) -> None:
        conn = make_connection(people["alice"])

        await mocked_hub.dispatch(conn, "friend_request_sent", {"requestId": "r"})

        mocked_hub.signals.handle_friend_request.assert_awaited_once_with(conn, {"requestId": "r"})

    @pytest.mark.asyncio
    async def test_ping_answered_with_pong(self, mocked_hub, make_connection, people) -> None:
        conn = make_connection(people["alice"])

        await mocked_hub.dispatch(conn, "ping", None)

        assert conn.names() == ["pong"]

    @pytest.mark.asyncio
    async def test_unknown_event_reported(self, mocked_hub, make_connection, people) -> None:
        conn = make_connection(people["alice"])

        await mocked_hub.dispatch(conn, "launch_rockets", {})

        assert conn.events("error")[0]["code"] == "UNKNOWN_EVENT"

    @pytest.mark.asyncio
    async def test_handler_crash_does_not_escape(self, mocked_hub, make_connection, people) -> None:
        conn = make_connection(people["alice"])
        mocked_hub.relay.handle_send_message.side_effect = RuntimeError("boom")

        await mocked_hub.dispatch(conn, "send_message", {})

        assert conn.events("error")[0]["code"] == "INTERNAL_ERROR"
