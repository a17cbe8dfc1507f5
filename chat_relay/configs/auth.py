"""
Authentication configuration settings.

Signing parameters for the session tokens presented at WebSocket handshake.

Dependencies: pydantic, pydantic_settings
System role: Connection credential configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from chat_relay.configs.base import BaseSettings


class AuthSettings(BaseSettings):
    """JWT signing configuration for session tokens."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AUTH_",
        case_sensitive=False,
        extra="ignore",
    )

    jwt_secret: str = Field(
        default="change-me-in-production",
        description="HMAC secret used to sign and verify session tokens",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    token_ttl_seconds: int = Field(
        default=0,
        description="Token lifetime in seconds; 0 issues tokens without exp claim",
    )
