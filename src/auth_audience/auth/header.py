"""Credential header parsing.

Splits a raw credential header into scheme and token. The same parser
serves deployments that send ``<scheme> <token>`` and deployments that
send the bare token (scheme configured as the empty string).
"""

from __future__ import annotations

from auth_audience.auth.outcomes import AuthFailure, FailureKind, failure
from auth_audience.observability import get_logger

logger = get_logger(__name__)

DEFAULT_AUTH_HEADER = "Authorization"
DEFAULT_AUTH_SCHEME = "Bearer"


def parse_auth_header(value: str | None, scheme: str) -> str | AuthFailure:
    """Extract the token from a credential header value.

    Rules, applied to ``value.split(" ")``:

    - absent or empty header: ``NO_HEADER``
    - scheme is ``""`` or the header is a single part: the whole value is the
      token, unless it is exactly the scheme with nothing after it
      (``MISSING_TOKEN``)
    - two parts: the first must equal the scheme case-insensitively
      (else ``SCHEME_MISMATCH``); an empty second part is ``MISSING_TOKEN``
    - three or more parts: ``MALFORMED_HEADER``

    Args:
        value: Raw header value, or None when the header is absent.
        scheme: Expected scheme (e.g. "Bearer"); "" for bare tokens.

    Returns:
        The token string, or an unmapped AuthFailure.

    Example:
        >>> parse_auth_header("Bearer abc.def.ghi", "Bearer")
        'abc.def.ghi'
        >>> parse_auth_header("abc.def.ghi", "")
        'abc.def.ghi'
        >>> parse_auth_header("JWT abc", "Bearer").kind
        <FailureKind.SCHEME_MISMATCH: 'UNEXPECTED_AUTH_SCHEME'>
    """
    if not value:
        return failure(FailureKind.NO_HEADER)

    parts = value.split(" ")

    if scheme == "" or len(parts) == 1:
        if value == scheme:
            logger.debug("auth_audience.header.missing_token", scheme=scheme)
            return failure(FailureKind.MISSING_TOKEN)
        return value

    if len(parts) == 2:
        if parts[0].lower() != scheme.lower():
            logger.debug("auth_audience.header.scheme_mismatch", expected=scheme)
            return failure(FailureKind.SCHEME_MISMATCH)
        if not parts[1]:
            return failure(FailureKind.MISSING_TOKEN)
        return parts[1]

    logger.debug("auth_audience.header.malformed", parts=len(parts))
    return failure(FailureKind.MALFORMED_HEADER)


__all__ = ["DEFAULT_AUTH_HEADER", "DEFAULT_AUTH_SCHEME", "parse_auth_header"]
