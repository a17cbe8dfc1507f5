"""
Relay configuration settings.

Limits and defaults for the realtime WebSocket relay.

Dependencies: pydantic, pydantic_settings
System role: Realtime relay configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from chat_relay.configs.base import BaseSettings


class RelaySettings(BaseSettings):
    """Realtime relay configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RELAY_",
        case_sensitive=False,
        extra="ignore",
    )

    max_frame_bytes: int = Field(
        default=65536,
        description="Largest inbound WebSocket text frame accepted",
    )
    default_message_type: str = Field(
        default="text",
        description="messageType applied when the client omits it",
    )
    create_tables: bool = Field(
        default=False,
        description="Create database tables on application startup",
    )
