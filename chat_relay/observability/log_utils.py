"""
Logging utilities for safe structured logging.

Helpers for logging best-effort failures (presence writes, mailbox deletes,
status tracking) with flat, string-only ``extra`` context.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any
from uuid import UUID


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Convert any value to a bounded string for log context.

    Collections are summarized by size so message bodies and ID lists never
    end up in logs verbatim.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    if value is None:
        return "None"
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return f"bytes({len(value)})"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"{type(value).__name__}({len(value)} items)"
    if isinstance(value, dict):
        return f"dict({len(value)} keys)"

    try:
        val_str = value if isinstance(value, str) else str(value)
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"

    if len(val_str) > max_length:
        return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
    return val_str


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    level: int = logging.ERROR,
    **context,
) -> None:
    """
    Log a handled exception with traceback and structured context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception being swallowed
        level: Log level (ERROR unless the failure is expected)
        **context: Additional context key-value pairs
    """
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    safe_context["error_type"] = type(exc).__name__
    safe_context["error_msg"] = getattr(exc, "message", None) or str(exc)
    logger.log(level, message, exc_info=exc, extra=safe_context)
