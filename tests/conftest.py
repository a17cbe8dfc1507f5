"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory database, recording connections, user/friendship helpers
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

from typing import Any
import uuid

import pytest

from chat_relay.core.session_registry import Connection, SessionRegistry


class FakeConnection(Connection):
    """Connection handle that records every event written to it."""

    def __init__(
        self,
        user_id: uuid.UUID,
        session_id: str = "test-session",
        fail_sends: bool = False,
    ) -> None:
        super().__init__(user_id=user_id, session_id=session_id)
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.fail_sends = fail_sends

    async def send(self, event: str, data: dict[str, Any]) -> None:
        if self.fail_sends:
            raise ConnectionError("socket closed")
        self.sent.append((event, data))

    def events(self, name: str) -> list[dict[str, Any]]:
        """Payloads of every recorded event with the given name."""
        return [data for event, data in self.sent if event == name]

    def names(self) -> list[str]:
        """Recorded event names in order."""
        return [event for event, _ in self.sent]


@pytest.fixture
def registry() -> SessionRegistry:
    """Provide an empty session registry."""
    return SessionRegistry()


@pytest.fixture
def make_connection():
    """Factory for recording connections."""

    def _make(user_id: uuid.UUID, **kwargs) -> FakeConnection:
        return FakeConnection(user_id, **kwargs)

    return _make


@pytest.fixture
async def session_factory():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        async_sessionmaker: Session factory bound to a fresh schema
    """
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
    from sqlalchemy.pool import StaticPool
    from chat_relay.boundary.db import Base

    # Use SQLite in-memory database for tests
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    yield factory

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_async_db(session_factory):
    """
    Provide a single database session for CRUD tests.

    Yields:
        AsyncSession: Test database session, rolled back afterwards
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_user(session_factory):
    """Factory that persists a user and returns its UUID."""
    from chat_relay.boundary.db.CRUD.user_crud import user_crud

    async def _make(username: str | None = None) -> uuid.UUID:
        async with session_factory() as db:
            user = await user_crud.create(
                db,
                username=username or f"u{uuid.uuid4().hex[:12]}",
                display_name=username or "",
            )
            await db.commit()
            return user.id

    return _make


@pytest.fixture
def befriend(session_factory):
    """Factory that links two users as friends."""
    from chat_relay.boundary.db.CRUD.friendship_crud import friendship_crud

    async def _befriend(user_a: uuid.UUID, user_b: uuid.UUID) -> None:
        async with session_factory() as db:
            await friendship_crud.add_friendship(db, user_a, user_b)
            await db.commit()

    return _befriend
