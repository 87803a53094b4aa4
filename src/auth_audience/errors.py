"""auth-audience error taxonomy.

Request-time authentication failures are never raised: they are returned
as typed outcomes (see ``auth_audience.auth.outcomes``). The exceptions in
this module cover setup-time problems and failures inside user hooks.
"""

from __future__ import annotations

from typing import Any


class AuthAudienceError(Exception):
    """Base exception for all auth-audience errors.

    Attributes:
        code: Error code following the auth_audience:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(AuthAudienceError):
    """Raised when options cannot be resolved into a usable configuration.

    Raised once, at setup time, so that no request is ever served with a
    half-populated configuration.
    """

    def __init__(self, field: str, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="auth_audience:config/invalid",
            message=f"Invalid option {field!r}: {reason}",
            details={"field": field, **(details or {})},
        )
        self.field = field
        self.reason = reason


__all__ = [
    "AuthAudienceError",
    "ConfigurationError",
]
