"""
Observability module.

Provides structured logging, correlation ID tracking and request logging
middleware.
"""

from chat_relay.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from chat_relay.observability.logger import CorrelationIdFilter, configure_logging

__all__ = [
    "CorrelationIdFilter",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "set_correlation_id",
]
