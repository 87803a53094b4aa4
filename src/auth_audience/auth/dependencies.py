"""FastAPI dependencies for reading or requiring an authenticated payload.

``get_jwt_payload`` reads what the middleware stored. ``require_authentication``
runs an authenticator directly as a route dependency and hands the payload
to the endpoint as a parameter, without going through request state.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from fastapi import HTTPException, Request

from auth_audience.auth.config import DEFAULT_STATE_ATTRIBUTE
from auth_audience.auth.outcomes import AuthFailure, Claims, StatusCategory
from auth_audience.auth.strategies import Authenticator

HTTP_UNAUTHORIZED = 401
ERROR_AUTH_REQUIRED = "Authentication required"


def _http_error(outcome: AuthFailure, scheme: str | None) -> HTTPException:
    headers = None
    if scheme and outcome.kind.category is StatusCategory.UNAUTHORIZED:
        headers = {"WWW-Authenticate": scheme}
    detail: Any = outcome.body if outcome.body is not None else outcome.message
    return HTTPException(
        status_code=outcome.status or outcome.kind.category.default_status,
        detail=detail,
        headers=headers,
    )


def get_jwt_payload(request: Request) -> Claims:
    """Return the payload stored by the middleware, or raise 401.

    Example:
        >>> @app.get("/me")
        >>> async def me(payload: Claims = Depends(get_jwt_payload)):
        ...     return {"sub": payload["sub"]}
    """
    payload = getattr(request.state, DEFAULT_STATE_ATTRIBUTE, None)
    if payload is None:
        raise HTTPException(
            status_code=HTTP_UNAUTHORIZED,
            detail=ERROR_AUTH_REQUIRED,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


def require_authentication(
    authenticator: Authenticator,
    *,
    scheme: str | None = "Bearer",
) -> Callable[[Request], Awaitable[Claims]]:
    """FastAPI dependency factory: authenticate the request for one route.

    Failures are raised as HTTPException with the outcome's mapped status;
    the body (or the error name when there is none) becomes ``detail``.

    Args:
        authenticator: Strategy or chain to run.
        scheme: Value of ``WWW-Authenticate`` on 401 responses; None to omit.

    Example:
        >>> @app.get("/orders")
        >>> async def orders(payload: Claims = Depends(require_authentication(chain))):
        ...     return {"sub": payload["sub"]}
    """

    async def _dependency(request: Request) -> Claims:
        outcome = await authenticator.authenticate(request)
        if isinstance(outcome, AuthFailure):
            raise _http_error(outcome, scheme)
        return outcome.payload

    return _dependency


__all__ = ["get_jwt_payload", "require_authentication"]
