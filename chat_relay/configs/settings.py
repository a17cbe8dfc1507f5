"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from chat_relay.configs.auth import AuthSettings
from chat_relay.configs.base import BaseSettings
from chat_relay.configs.database import DatabaseSettings
from chat_relay.configs.relay import RelaySettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    auth: AuthSettings = AuthSettings()
    relay: RelaySettings = RelaySettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from chat_relay.configs import get_settings
        settings = get_settings()
    """
    return Settings()
