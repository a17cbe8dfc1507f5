"""
Session lifecycle API endpoints.

Routes: POST /auth/logout

Dependencies: chat_relay.application.services.auth_service
System role: Session invalidation HTTP API
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, status

from chat_relay.api.deps.dependencies import get_auth_service
from chat_relay.application.services.auth_service import AuthService
from chat_relay.core.exceptions import AuthenticationError, StorageError
from chat_relay.models.auth import LogoutResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    authorization: str | None = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> LogoutResponse:
    """
    Revoke the caller's session.

    Only the presented session is invalidated; other devices stay signed in.
    New realtime connections with the revoked token are refused.

    Args:
        authorization: Bearer header carrying the session token
        auth_service: Injected auth service

    Returns:
        LogoutResponse: Confirmation

    Raises:
        HTTPException: 400 if no token is supplied, 401 if it is invalid
    """
    token = bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No token provided",
        )

    try:
        await auth_service.revoke_session(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        ) from e
    except StorageError as e:
        logger.exception("Logout failed", extra={"error_msg": e.message})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Logout failed",
        ) from e

    return LogoutResponse()
