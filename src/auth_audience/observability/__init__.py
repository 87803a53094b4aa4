"""Observability helpers for auth-audience.

Structured logging via structlog on top of the standard library loggers;
see ``auth_audience.observability.logging``.

Example:
    >>> from auth_audience.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("auth_audience.verify.succeeded", domain="default")
"""

from auth_audience.observability.logging import (
    REDACTED_PLACEHOLDER,
    bind_context,
    configure_logging,
    get_logger,
    redact_credentials,
    sanitize_for_logging,
    unbind_context,
)

__all__ = [
    "REDACTED_PLACEHOLDER",
    "bind_context",
    "configure_logging",
    "get_logger",
    "redact_credentials",
    "sanitize_for_logging",
    "unbind_context",
]
