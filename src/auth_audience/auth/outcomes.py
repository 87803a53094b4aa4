"""Typed authentication outcomes.

Every stage of the pipeline (header parsing, verification, strategies and
the chain) returns one of these values instead of raising. Only the
strategy maps a failure kind to a transport status and body, and only the
middleware turns an outcome into a response.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

# Decoded JWT claims
Claims = dict[str, Any]


class StatusCategory(str, Enum):
    """Which configured status code / body builder a failure is reported with."""

    UNAUTHORIZED = "unauthorized"
    BAD_REQUEST = "bad_request"
    SERVER_ERROR = "server_error"

    @property
    def default_status(self) -> int:
        """Status used when no strategy configured one."""
        return _DEFAULT_STATUS[self]


_DEFAULT_STATUS = {
    StatusCategory.UNAUTHORIZED: 401,
    StatusCategory.BAD_REQUEST: 400,
    StatusCategory.SERVER_ERROR: 500,
}


class FailureKind(str, Enum):
    """Why a request could not be authenticated.

    Values are the error names reported to hooks and body builders.

    Example:
        >>> FailureKind.NO_HEADER.category
        <StatusCategory.UNAUTHORIZED: 'unauthorized'>
        >>> FailureKind.SCHEME_MISMATCH.category
        <StatusCategory.BAD_REQUEST: 'bad_request'>
    """

    NO_HEADER = "NO_AUTHORIZATION_HEADER"
    MALFORMED_HEADER = "UNEXPECTED_AUTH_HEADER_CONTENT"
    SCHEME_MISMATCH = "UNEXPECTED_AUTH_SCHEME"
    MISSING_TOKEN = "NO_AUTH_TOKEN"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def category(self) -> StatusCategory:
        """Status category this kind is reported under."""
        if self in (FailureKind.NO_HEADER, FailureKind.VERIFICATION_FAILED):
            return StatusCategory.UNAUTHORIZED
        if self is FailureKind.INTERNAL_ERROR:
            return StatusCategory.SERVER_ERROR
        return StatusCategory.BAD_REQUEST


@dataclass(frozen=True)
class AuthSuccess:
    """A verified identity.

    Attributes:
        payload: Verified claims (or the payload of a non-JWT strategy).
        strategy: Name of the strategy that produced the outcome.
    """

    payload: Claims
    strategy: str | None = None

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class AuthFailure:
    """A typed authentication failure.

    ``status`` and ``body`` are None until the owning strategy maps the
    kind onto its configured status code and body builder.

    Attributes:
        kind: Failure category.
        error: Underlying exception (e.g. the joserfc error), if any.
        status: Transport status code once mapped.
        body: Response body once mapped; None means a body-less response.
        strategy: Name of the strategy that produced the outcome.
    """

    kind: FailureKind
    error: BaseException | None = field(default=None, compare=False)
    status: int | None = None
    body: Any = None
    strategy: str | None = None

    @property
    def success(self) -> bool:
        return False

    @property
    def message(self) -> str:
        """Error name, as reported to hooks and builders."""
        return self.kind.value

    def with_response(self, status: int, body: Any) -> AuthFailure:
        """Return a copy carrying the mapped status and body."""
        return replace(self, status=status, body=body)


AuthOutcome = Union[AuthSuccess, AuthFailure]


@dataclass(frozen=True)
class ChainResult:
    """The outcome picked by an AuthenticatorChain plus bookkeeping.

    Attributes:
        outcome: The winning success, or the first failure seen.
        strategy: Name of the strategy that produced ``outcome``.
        index: Position of that strategy in the chain (None for an empty chain).
        attempts: Number of strategies that actually ran.
    """

    outcome: AuthOutcome
    strategy: str | None
    index: int | None
    attempts: int

    @property
    def success(self) -> bool:
        return self.outcome.success


def failure(kind: FailureKind, error: BaseException | str | None = None) -> AuthFailure:
    """Build an unmapped failure; a string error becomes ``Exception(kind.value)``."""
    if error is None or isinstance(error, str):
        error = Exception(error or kind.value)
    return AuthFailure(kind=kind, error=error)


__all__ = [
    "AuthFailure",
    "AuthOutcome",
    "AuthSuccess",
    "ChainResult",
    "Claims",
    "FailureKind",
    "StatusCategory",
    "failure",
]
