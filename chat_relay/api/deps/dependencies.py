"""
Dependency injection container.

Process-wide service singletons and the FastAPI dependency functions that
hand them to routers.

Dependencies: chat_relay.configs, chat_relay.application, chat_relay.boundary
System role: DI container for service injection
"""

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from chat_relay.application.services import (
    AuthService,
    ConnectionService,
    FriendshipService,
    MailboxService,
    PresenceService,
    RelayService,
    SignalService,
)
from chat_relay.boundary.db.connection import get_async_engine, get_async_session_factory
from chat_relay.configs import Settings, get_settings
from chat_relay.core.session_registry import SessionRegistry


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self):
        self._engine = None
        self._session_factory = None
        self._registry = None
        self._auth_service = None
        self._connection_service = None

    @property
    def engine(self) -> AsyncEngine:
        """Get cached async engine."""
        if self._engine is None:
            self._engine = get_async_engine(get_settings().database)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        """Get cached session factory bound to the shared engine."""
        if self._session_factory is None:
            self._session_factory = get_async_session_factory(self.engine)
        return self._session_factory

    @property
    def registry(self) -> SessionRegistry:
        """Get the process-wide session registry."""
        if self._registry is None:
            self._registry = SessionRegistry()
        return self._registry

    @property
    def auth_service(self) -> AuthService:
        """Get cached auth service."""
        if self._auth_service is None:
            self._auth_service = AuthService(
                session_factory=self.session_factory,
                settings=get_settings().auth,
            )
        return self._auth_service

    @property
    def connection_service(self) -> ConnectionService:
        """Get cached realtime connection orchestrator."""
        if self._connection_service is None:
            settings = get_settings()
            friendships = FriendshipService(self.session_factory)
            mailbox = MailboxService(self.session_factory, self.registry)
            self._connection_service = ConnectionService(
                registry=self.registry,
                authenticator=self.auth_service.authenticator,
                relay=RelayService(
                    session_factory=self.session_factory,
                    registry=self.registry,
                    friendships=friendships,
                    mailbox=mailbox,
                    default_message_type=settings.relay.default_message_type,
                ),
                mailbox=mailbox,
                presence=PresenceService(self.session_factory, self.registry, friendships),
                signals=SignalService(self.registry, friendships),
            )
        return self._connection_service

    async def dispose(self) -> None:
        """Dispose the engine's pool and drop all cached instances."""
        if self._engine is not None:
            await self._engine.dispose()
        self.clear()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._engine = None
        self._session_factory = None
        self._registry = None
        self._auth_service = None
        self._connection_service = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_auth_service() -> AuthService:
    """
    Get auth service instance.

    Returns:
        AuthService: Shared auth service
    """
    return get_service_cache().auth_service


def get_connection_service() -> ConnectionService:
    """
    Get realtime connection orchestrator.

    Returns:
        ConnectionService: Shared orchestrator bound to the process registry
    """
    return get_service_cache().connection_service


def get_session_registry() -> SessionRegistry:
    """Get the process-wide session registry."""
    return get_service_cache().registry
