"""Authentication middleware for FastAPI / Starlette applications.

Runs an authenticator (usually an AuthenticatorChain) for every request
under ``path_prefix``, hands the outcome to the ResultDispatcher, and then
either calls the next handler exactly once or returns the mapped error
response. In legacy mode, ordered route-exclusion rules waive the
credential requirement for matching path/method combinations.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Sequence

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from auth_audience.auth.chain import AuthenticatorChain
from auth_audience.auth.dispatch import ResultDispatcher
from auth_audience.auth.exclusion import ExclusionRule, is_excluded
from auth_audience.auth.outcomes import ChainResult
from auth_audience.auth.strategies import Authenticator
from auth_audience.observability import bind_context, get_logger, unbind_context

logger = get_logger(__name__)


def _request_target(request: Request) -> str:
    """Path plus query string, as seen by exclusion rules."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class AuthAudienceMiddleware(BaseHTTPMiddleware):
    """Middleware that authenticates requests with an authenticator chain.

    On success the payload is handed to the on-authorized hook (by default
    stored on ``request.state.jwt``). On failure the configured status and
    body are returned, unless a hook, ``continue_past_error`` or a matching
    exclusion rule lets the request through.
    """

    def __init__(
        self,
        app: Any,
        authenticator: Authenticator,
        *,
        dispatcher: ResultDispatcher | None = None,
        exclusions: Sequence[ExclusionRule] = (),
        base_path_strip: int = 0,
        path_prefix: str | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: ASGI application.
            authenticator: Strategy or chain run for each request.
            dispatcher: Result dispatcher; defaults to a plain ResultDispatcher.
            exclusions: Ordered exclusion rules (legacy mode).
            base_path_strip: Leading characters stripped before exclusion matching.
            path_prefix: If set, only requests under this path are authenticated.
        """
        super().__init__(app)
        self._authenticator = authenticator
        self._dispatcher = dispatcher or ResultDispatcher()
        self._exclusions = tuple(exclusions)
        self._base_path_strip = base_path_strip
        self._path_prefix = path_prefix

    def _should_authenticate(self, path: str) -> bool:
        if self._path_prefix is None:
            return True
        return path.startswith(self._path_prefix)

    async def _authenticate(self, request: Request) -> ChainResult:
        if isinstance(self._authenticator, AuthenticatorChain):
            return await self._authenticator.run(request)
        outcome = await self._authenticator.authenticate(request)
        return ChainResult(outcome=outcome, strategy=outcome.strategy, index=0, attempts=1)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Authenticate, then continue or answer with the mapped error."""
        if not self._should_authenticate(request.url.path):
            return await call_next(request)

        bind_context(method=request.method, path=request.url.path)
        try:
            enforce = not (
                self._exclusions
                and is_excluded(
                    self._exclusions,
                    _request_target(request),
                    request.method,
                    self._base_path_strip,
                )
            )
            result = await self._authenticate(request)
            decision = await self._dispatcher.dispatch(result, request, enforce=enforce)
        finally:
            unbind_context("method", "path")

        if not decision.proceed:
            assert decision.response is not None
            return decision.response
        return await call_next(request)


__all__ = ["AuthAudienceMiddleware"]
