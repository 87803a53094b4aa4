"""Turn an authentication outcome into a pipeline decision.

The dispatcher runs the on-authorized / on-verify-error hooks and decides
whether the request proceeds to the next handler or is answered with the
mapped status and body. It builds the response but never sends it; the
middleware calls the continuation at most once based on the decision.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from fastapi.responses import JSONResponse
from starlette.requests import Request
from starlette.responses import Response

from auth_audience.auth.config import (
    DEFAULT_STATE_ATTRIBUTE,
    AuthAudienceConfig,
    AuthorizedHook,
    BodyBuilder,
    VerifyErrorHook,
    call_hook,
)
from auth_audience.auth.outcomes import (
    AuthFailure,
    AuthOutcome,
    ChainResult,
    Claims,
    FailureKind,
    StatusCategory,
)
from auth_audience.observability import get_logger

logger = get_logger(__name__)

AUTH_ERROR_ATTRIBUTE = "auth_error"
AUTH_STRATEGY_ATTRIBUTE = "auth_strategy"


@dataclass(frozen=True)
class DispatchDecision:
    """What the middleware should do with the request.

    Attributes:
        proceed: Call the next handler.
        response: Response to return when not proceeding.
        payload: Verified payload on success.
        failure: The failure that was handled, if any.
        recovered: The on-verify-error hook accepted the failure.
    """

    proceed: bool
    response: Response | None = None
    payload: Claims | None = None
    failure: AuthFailure | None = None
    recovered: bool = False


def build_response(outcome: AuthFailure, www_authenticate: str | None = None) -> Response:
    """Build the transport response for a mapped failure.

    A None body yields a body-less response; anything else is sent as JSON.
    """
    status = outcome.status or outcome.kind.category.default_status
    headers = None
    if www_authenticate and outcome.kind.category is StatusCategory.UNAUTHORIZED:
        headers = {"WWW-Authenticate": www_authenticate}
    if outcome.body is None:
        return Response(status_code=status, headers=headers)
    return JSONResponse(status_code=status, content=outcome.body, headers=headers)


class ResultDispatcher:
    """Apply hooks and map outcomes to a DispatchDecision."""

    def __init__(
        self,
        *,
        on_authorized: AuthorizedHook | None = None,
        on_verify_error: VerifyErrorHook | None = None,
        continue_past_error: bool = False,
        server_error_status: int = 500,
        server_error_body: BodyBuilder | None = None,
        www_authenticate: str | None = "Bearer",
        state_attribute: str = DEFAULT_STATE_ATTRIBUTE,
    ) -> None:
        self._on_authorized = on_authorized
        self._on_verify_error = on_verify_error
        self._continue_past_error = continue_past_error
        self._server_error_status = server_error_status
        self._server_error_body = server_error_body
        self._www_authenticate = www_authenticate or None
        self._state_attribute = state_attribute

    @classmethod
    def from_config(cls, config: AuthAudienceConfig) -> ResultDispatcher:
        """Dispatcher using a resolved configuration's hooks and statuses."""
        return cls(
            on_authorized=config.on_authorized,
            on_verify_error=config.on_verify_error,
            continue_past_error=config.continue_past_error,
            server_error_status=config.server_error_status,
            server_error_body=config.server_error_body,
            www_authenticate=config.auth_scheme or None,
        )

    async def _authorize(self, payload: Claims, request: Request) -> None:
        if self._on_authorized is None:
            setattr(request.state, self._state_attribute, payload)
            return
        await call_hook(self._on_authorized, payload, request)

    async def _with_server_error_body(self, outcome: AuthFailure, request: Request) -> AuthFailure:
        """Give a body-less INTERNAL_ERROR the configured server-error status and body.

        Covers failures raised outside a strategy: an empty chain, a strategy
        that raised, or a failing on-authorized hook.
        """
        if outcome.kind is not FailureKind.INTERNAL_ERROR or outcome.body is not None:
            return outcome
        body: Any = None
        if self._server_error_body is not None:
            try:
                body = await call_hook(self._server_error_body, outcome, request)
            except Exception:
                logger.exception("auth_audience.dispatch.body_builder_failed")
        return outcome.with_response(outcome.status or self._server_error_status, body)

    async def dispatch(
        self,
        result: Union[ChainResult, AuthOutcome],
        request: Request,
        *,
        enforce: bool = True,
    ) -> DispatchDecision:
        """Decide how the pipeline continues.

        On success the on-authorized hook runs (default: store the payload
        on ``request.state.jwt``) and the request proceeds. A failure is
        stored on ``request.state.auth_error``; on an excluded route
        (``enforce`` False) the request then simply proceeds. Otherwise the
        on-verify-error hook, when set, may recover the request by returning
        normally; if it raises or is absent the mapped response is returned,
        unless ``continue_past_error`` lets the request proceed.

        Args:
            result: Chain result or single strategy outcome.
            request: Current request.
            enforce: False for routes excluded from mandatory authentication.
        """
        strategy = result.strategy
        outcome = result.outcome if isinstance(result, ChainResult) else result
        setattr(request.state, AUTH_STRATEGY_ATTRIBUTE, strategy)

        if not isinstance(outcome, AuthFailure):
            try:
                await self._authorize(outcome.payload, request)
            except Exception as e:
                logger.exception("auth_audience.dispatch.on_authorized_failed", strategy=strategy)
                outcome = AuthFailure(kind=FailureKind.INTERNAL_ERROR, error=e, strategy=strategy)
            else:
                return DispatchDecision(proceed=True, payload=outcome.payload)

        outcome = await self._with_server_error_body(outcome, request)
        setattr(request.state, AUTH_ERROR_ATTRIBUTE, outcome)

        if not enforce:
            logger.debug("auth_audience.dispatch.waived", kind=outcome.kind.value)
            return DispatchDecision(proceed=True, failure=outcome)

        if self._on_verify_error is not None:
            try:
                await call_hook(self._on_verify_error, outcome, request)
            except Exception as e:
                logger.info(
                    "auth_audience.dispatch.verify_error_hook_rejected",
                    kind=outcome.kind.value,
                    error_type=type(e).__name__,
                )
            else:
                logger.info("auth_audience.dispatch.recovered", kind=outcome.kind.value)
                return DispatchDecision(proceed=True, failure=outcome, recovered=True)

        if self._continue_past_error:
            return DispatchDecision(proceed=True, failure=outcome)

        return DispatchDecision(
            proceed=False,
            response=build_response(outcome, self._www_authenticate),
            failure=outcome,
        )


__all__ = [
    "AUTH_ERROR_ATTRIBUTE",
    "AUTH_STRATEGY_ATTRIBUTE",
    "DispatchDecision",
    "ResultDispatcher",
    "build_response",
]
