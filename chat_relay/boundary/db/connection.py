"""
Database connection management.

Provides the async SQLAlchemy engine and session factory.

Dependencies: sqlalchemy, chat_relay.configs
System role: Database connection lifecycle management
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from chat_relay.configs import get_settings
from chat_relay.configs.database import DatabaseSettings


def get_async_engine(db_config: DatabaseSettings | None = None) -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    Uses the default async-adapted queue pool for PostgreSQL. pool_pre_ping=True
    verifies connections before use to detect stale/broken connections early.
    SQLite URLs skip pool sizing, which that dialect does not accept.

    Args:
        db_config: Database settings (defaults to application settings)

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid or engine creation fails

    Usage:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    db_config = db_config or get_settings().database

    if db_config.is_sqlite:
        return create_async_engine(
            db_config.async_database_url,
            echo=db_config.echo_sql,
        )

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def get_async_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker:
    """
    Create async session factory for database operations.

    Returns async_sessionmaker bound to engine with autoflush=False for
    explicit transaction control and predictable behavior.

    Args:
        engine: Engine to bind (a new one is created when omitted)

    Returns:
        async_sessionmaker: Async session factory configured for manual transaction control

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine or get_async_engine(),
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
