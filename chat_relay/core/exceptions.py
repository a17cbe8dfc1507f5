"""
Exception hierarchy for the chat relay.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class ChatRelayError(Exception):
    """Base exception for all chat relay errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class AuthenticationError(ChatRelayError):
    """Raised when a connection credential is missing, invalid, expired or revoked."""

    def __init__(
        self,
        message: str,
        user_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize authentication error.

        Args:
            message: Error message
            user_id: User the credential claimed to belong to, if decodable
            details: Additional context
        """
        details = details or {}
        if user_id:
            details["user_id"] = user_id
        super().__init__(message, details)


class AuthorizationError(ChatRelayError):
    """Raised when a relay is attempted between users who are not friends."""

    def __init__(
        self,
        message: str,
        sender_id: str | None = None,
        receiver_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize authorization error.

        Args:
            message: Error message
            sender_id: Originating user
            receiver_id: Target user
            details: Additional context
        """
        details = details or {}
        if sender_id:
            details["sender_id"] = sender_id
        if receiver_id:
            details["receiver_id"] = receiver_id
        super().__init__(message, details)


class ValidationError(ChatRelayError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class StorageError(ChatRelayError):
    """Raised when a durable store operation fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize storage error.

        Args:
            message: Error message
            operation: Operation that failed (store, drain, delete, set_online)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)
