"""
Test suite for UserSessionCRUD and UserCRUD presence writes.

System role: Verification of session validity and durable presence
"""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from chat_relay.boundary.db.CRUD.user_crud import user_crud
from chat_relay.boundary.db.CRUD.user_session_crud import user_session_crud


@pytest.fixture
async def user_id(test_async_db: AsyncSession) -> uuid.UUID:
    user = await user_crud.create(test_async_db, username="alice")
    return user.id


class TestUserSessionCRUD:
    """Test suite for the active-session table."""

    @pytest.mark.asyncio
    async def test_opened_session_is_active(self, test_async_db, user_id) -> None:
        await user_session_crud.open_session(test_async_db, user_id, "s1")

        assert await user_session_crud.is_active(test_async_db, user_id, "s1")

    @pytest.mark.asyncio
    async def test_session_bound_to_its_owner(self, test_async_db, user_id) -> None:
        await user_session_crud.open_session(test_async_db, user_id, "s1")

        assert not await user_session_crud.is_active(test_async_db, uuid.uuid4(), "s1")

    @pytest.mark.asyncio
    async def test_revoke_only_affects_one_session(self, test_async_db, user_id) -> None:
        await user_session_crud.open_session(test_async_db, user_id, "phone")
        await user_session_crud.open_session(test_async_db, user_id, "laptop")

        revoked = await user_session_crud.revoke(test_async_db, user_id, "phone")

        assert revoked is True
        assert not await user_session_crud.is_active(test_async_db, user_id, "phone")
        assert await user_session_crud.is_active(test_async_db, user_id, "laptop")

    @pytest.mark.asyncio
    async def test_revoke_twice_reports_nothing_to_revoke(self, test_async_db, user_id) -> None:
        await user_session_crud.open_session(test_async_db, user_id, "s1")
        await user_session_crud.revoke(test_async_db, user_id, "s1")

        assert await user_session_crud.revoke(test_async_db, user_id, "s1") is False


class TestUserPresence:
    """Test suite for UserCRUD.set_online_status()."""

    @pytest.mark.asyncio
    async def test_going_online_keeps_last_seen_empty(self, test_async_db, user_id) -> None:
        user = await user_crud.set_online_status(test_async_db, user_id, True)

        assert user.is_online is True
        assert user.last_seen is None

    @pytest.mark.asyncio
    async def test_going_offline_stamps_last_seen(self, test_async_db, user_id) -> None:
        await user_crud.set_online_status(test_async_db, user_id, True)

        user = await user_crud.set_online_status(test_async_db, user_id, False)

        assert user.is_online is False
        assert user.last_seen is not None

    @pytest.mark.asyncio
    async def test_unknown_user_returns_none(self, test_async_db) -> None:
        assert await user_crud.set_online_status(test_async_db, uuid.uuid4(), True) is None
