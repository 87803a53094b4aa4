"""Token and request factories shared by the test suite."""

from __future__ import annotations

import time
from typing import Any

from joserfc import jwk
from joserfc import jwt as jose_jwt
from starlette.requests import Request

SECRET = "test-hmac-secret-that-is-long-enough-for-hs256"
OTHER_SECRET = "another-hmac-secret-that-is-long-enough-too"
AUDIENCE = "testAudience"
ISSUER = "testIssuer"


def make_token(
    claims: dict[str, Any],
    key: Any = SECRET,
    alg: str = "HS256",
) -> str:
    """Sign ``claims`` with ``key`` (an HMAC secret string or a joserfc key)."""
    if isinstance(key, str):
        key = jwk.OctKey.import_key(key)
    return jose_jwt.encode({"alg": alg, "typ": "JWT"}, claims, key)


def valid_claims(**extra: Any) -> dict[str, Any]:
    """Claims accepted by the default test configuration."""
    now = int(time.time())
    claims: dict[str, Any] = {
        "aud": AUDIENCE,
        "iss": ISSUER,
        "sub": "user-1",
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(extra)
    return claims


def make_request(
    headers: dict[str, str] | None = None,
    *,
    method: str = "GET",
    path: str = "/",
    query: str = "",
) -> Request:
    """Build a bare Starlette request without running an app."""
    scope = {
        "type": "http",
        "method": method,
        "scheme": "http",
        "server": ("testserver", 80),
        "path": path,
        "root_path": "",
        "query_string": query.encode("latin-1"),
        "headers": [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ],
    }
    return Request(scope)
