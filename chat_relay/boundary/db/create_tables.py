"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy, chat_relay.configs
System role: Database schema initialization

Usage:
    python -m chat_relay.boundary.db.create_tables
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from chat_relay.boundary.db.base import Base
from chat_relay.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
from chat_relay.boundary.db.models import (  # noqa: F401
    FriendshipModel,
    MessageStatusModel,
    OfflineMessageModel,
    UserModel,
    UserSessionModel,
)

logger = logging.getLogger(__name__)


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: calls CREATE TABLE IF NOT EXISTS for each model, so safe
    to run multiple times. Existing tables remain unchanged.

    Args:
        engine: Target engine (defaults to the configured database)

    Raises:
        SQLAlchemyError: If database connection fails or table creation fails
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created", extra={"tables": sorted(Base.metadata.tables)})


async def drop_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Drop all database tables and their data.

    WARNING: Irreversible data loss. Only use in development environments.

    Args:
        engine: Target engine (defaults to the configured database)
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Database tables dropped")


if __name__ == "__main__":
    from chat_relay.observability.logger import configure_logging

    configure_logging()
    asyncio.run(create_all_tables())
