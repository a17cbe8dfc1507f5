"""
Auth domain models and schemas.

Request/response schemas for session lifecycle endpoints.

Dependencies: pydantic
System role: Auth API contracts
"""

from pydantic import BaseModel


class LogoutResponse(BaseModel):
    """Response schema for logout."""

    success: bool = True
    message: str = "Logged out successfully"
