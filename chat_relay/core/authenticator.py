"""
Connection authenticator.

Validates the signed session token presented at WebSocket handshake. A token
is accepted only when its signature and expiry check out AND its
(userId, sessionId) pair is still present in the active-session table, so a
token from a session that has since logged out is rejected even if it has not
expired.

Dependencies: PyJWT
System role: Gatekeeper for every new realtime connection
"""

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable
from uuid import UUID

import jwt

from chat_relay.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

SessionValidator = Callable[[UUID, str], Awaitable[bool]]


@dataclass(frozen=True)
class SessionClaims:
    """Identity bound to a connection after successful authentication."""

    user_id: UUID
    session_id: str


class ConnectionAuthenticator:
    """
    Verifies handshake credentials.

    Attributes:
        secret: HMAC signing secret
        algorithm: JWT algorithm name
        session_validator: Async callable answering "is this session active"
    """

    def __init__(
        self,
        secret: str,
        session_validator: SessionValidator,
        algorithm: str = "HS256",
    ) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.session_validator = session_validator

    def issue_token(self, user_id: UUID, session_id: str, ttl_seconds: int = 0) -> str:
        """
        Sign a session token.

        Args:
            user_id: Session owner
            session_id: Session identifier (must already be recorded as active)
            ttl_seconds: Lifetime; 0 omits the exp claim

        Returns:
            str: Encoded JWT
        """
        issued_at = int(time.time())
        payload: dict = {
            "userId": str(user_id),
            "sessionId": session_id,
            "iat": issued_at,
        }
        if ttl_seconds > 0:
            payload["exp"] = issued_at + ttl_seconds
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str | None, verify_exp: bool = True) -> SessionClaims:
        """
        Verify signature and expiry and extract the session claims.

        Args:
            token: Encoded JWT
            verify_exp: Whether an expired token is rejected

        Returns:
            SessionClaims: Decoded identity

        Raises:
            AuthenticationError: Missing, malformed, expired or badly signed token
        """
        if not token:
            raise AuthenticationError("Authentication token required")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": verify_exp},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Authentication token expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError("Authentication failed") from e

        raw_user_id = payload.get("userId")
        session_id = payload.get("sessionId")
        if not raw_user_id or not session_id:
            raise AuthenticationError("Authentication token is missing session claims")

        try:
            user_id = UUID(str(raw_user_id))
        except ValueError as e:
            raise AuthenticationError("Authentication token has an invalid user id") from e

        return SessionClaims(user_id=user_id, session_id=str(session_id))

    async def authenticate(self, token: str | None) -> SessionClaims:
        """
        Fully authenticate a handshake credential.

        Args:
            token: Encoded JWT presented by the client

        Returns:
            SessionClaims: Identity to bind to the connection

        Raises:
            AuthenticationError: Invalid token or session no longer active
        """
        claims = self.decode(token)

        if not await self.session_validator(claims.user_id, claims.session_id):
            logger.info(
                "Rejected connection for invalidated session",
                extra={"user_id": str(claims.user_id), "session_id": claims.session_id},
            )
            raise AuthenticationError(
                "Session has been invalidated",
                user_id=str(claims.user_id),
            )

        return claims
