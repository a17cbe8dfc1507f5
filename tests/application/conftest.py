"""
Application-layer fixtures.

Wires the real services over the in-memory database and a fresh registry.
"""

from dataclasses import dataclass
import uuid

import pytest

from chat_relay.application.services import (
    AuthService,
    ConnectionService,
    FriendshipService,
    MailboxService,
    PresenceService,
    RelayService,
    SignalService,
)
from chat_relay.configs.auth import AuthSettings
from chat_relay.core.session_registry import SessionRegistry


@dataclass
class Relay:
    """Bundle of wired services sharing one registry and database."""

    registry: SessionRegistry
    friendships: FriendshipService
    mailbox: MailboxService
    relay: RelayService
    presence: PresenceService
    signals: SignalService
    auth: AuthService
    hub: ConnectionService


@pytest.fixture
def relay_app(session_factory, registry) -> Relay:
    friendships = FriendshipService(session_factory)
    mailbox = MailboxService(session_factory, registry)
    relay = RelayService(session_factory, registry, friendships, mailbox)
    presence = PresenceService(session_factory, registry, friendships)
    signals = SignalService(registry, friendships)
    auth = AuthService(
        session_factory,
        AuthSettings(jwt_secret="scenario-secret-that-is-long-enough-32b"),
    )
    hub = ConnectionService(
        registry=registry,
        authenticator=auth.authenticator,
        relay=relay,
        mailbox=mailbox,
        presence=presence,
        signals=signals,
    )
    return Relay(registry, friendships, mailbox, relay, presence, signals, auth, hub)


@pytest.fixture
async def people(make_user, befriend) -> dict[str, uuid.UUID]:
    """alice, bob and carol are mutual friends; mallory is a stranger."""
    ids = {name: await make_user(name) for name in ("alice", "bob", "carol", "mallory")}
    await befriend(ids["alice"], ids["bob"])
    await befriend(ids["alice"], ids["carol"])
    await befriend(ids["bob"], ids["carol"])
    return ids
