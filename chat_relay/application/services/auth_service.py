"""
Auth service orchestrator.

Issues and revokes session tokens and answers the active-session check used
at every WebSocket handshake.

Dependencies: sqlalchemy, chat_relay.boundary.db.CRUD, chat_relay.core.authenticator
System role: Session lifecycle use cases
"""

import logging
import secrets
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from chat_relay.boundary.db.CRUD.user_session_crud import user_session_crud
from chat_relay.configs.auth import AuthSettings
from chat_relay.core.authenticator import ConnectionAuthenticator, SessionClaims
from chat_relay.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class AuthService:
    """
    Session lifecycle over the user_sessions table.

    Attributes:
        session_factory: Async session factory
        authenticator: Token signer/verifier bound to is_session_active
        token_ttl_seconds: Lifetime of issued tokens (0 = no expiry)
    """

    def __init__(self, session_factory: async_sessionmaker, settings: AuthSettings) -> None:
        self.session_factory = session_factory
        self.token_ttl_seconds = settings.token_ttl_seconds
        self.authenticator = ConnectionAuthenticator(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            session_validator=self.is_session_active,
        )

    async def is_session_active(self, user_id: UUID, session_id: str) -> bool:
        """Check the active-session table; always reads through to storage."""
        async with self.session_factory() as db:
            return await user_session_crud.is_active(db, user_id, session_id)

    async def issue_session(self, user_id: UUID) -> str:
        """
        Open a new session for a user and return its signed token.

        Args:
            user_id: User who signed in

        Returns:
            str: Token to present at WebSocket handshake
        """
        session_id = secrets.token_hex(16)
        async with self.session_factory() as db:
            await user_session_crud.open_session(db, user_id, session_id)
            await db.commit()

        logger.info(
            "Session issued",
            extra={"user_id": str(user_id), "session_id": session_id},
        )
        return self.authenticator.issue_token(user_id, session_id, self.token_ttl_seconds)

    async def revoke_session(self, token: str | None) -> SessionClaims:
        """
        Revoke the single session a token belongs to.

        Expired tokens may still be used to log out. Other sessions of the
        same user are unaffected.

        Args:
            token: Session token

        Returns:
            SessionClaims: The revoked session

        Raises:
            AuthenticationError: Token is missing or its signature is invalid
            StorageError: If the revocation cannot be written
        """
        claims = self.authenticator.decode(token, verify_exp=False)
        try:
            async with self.session_factory() as db:
                revoked = await user_session_crud.revoke(db, claims.user_id, claims.session_id)
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to revoke session",
                operation="revoke_session",
                details={"user_id": str(claims.user_id)},
            ) from e

        logger.info(
            "Session revoked",
            extra={
                "user_id": str(claims.user_id),
                "session_id": claims.session_id,
                "was_active": revoked,
            },
        )
        return claims
