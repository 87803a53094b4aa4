"""Authentication strategies.

A strategy is anything with a ``name`` and an ``async authenticate(request)``
returning an AuthOutcome. ``JwtAudienceAuthenticator`` is the bearer JWT
pipeline (header parsing, domain resolution, verification);
``AnonymousAuthenticator`` always succeeds and is typically chained last.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Protocol, runtime_checkable

from starlette.requests import Request

from auth_audience.auth.config import AuthAudienceConfig, call_hook
from auth_audience.auth.domains import resolve_domain
from auth_audience.auth.header import parse_auth_header
from auth_audience.auth.outcomes import (
    AuthFailure,
    AuthOutcome,
    AuthSuccess,
    FailureKind,
    failure,
)
from auth_audience.auth.verifier import verify_token
from auth_audience.observability import get_logger

logger = get_logger(__name__)


@runtime_checkable
class Authenticator(Protocol):
    """Capability shared by strategies and chains."""

    name: str

    async def authenticate(self, request: Request) -> AuthOutcome:
        ...


def strategy_name(authenticator: Any) -> str:
    """Return an authenticator's name, falling back to its class name."""
    return getattr(authenticator, "name", None) or type(authenticator).__name__


class JwtAudienceAuthenticator:
    """Bearer JWT strategy.

    Reads the configured header, extracts the token, picks the domain's key
    and constraints, verifies the token, and maps failures onto the
    configured status codes and body builders. Never raises: unexpected
    errors become ``INTERNAL_ERROR`` outcomes.

    Example:
        >>> config = resolve_config(AuthAudienceOptions(key="secret", audience="api"))
        >>> outcome = await JwtAudienceAuthenticator(config).authenticate(request)
    """

    def __init__(self, config: AuthAudienceConfig, name: str = "jwt") -> None:
        self._config = config
        self.name = name

    @property
    def config(self) -> AuthAudienceConfig:
        return self._config

    async def authenticate(self, request: Request) -> AuthOutcome:
        config = self._config
        try:
            header = request.headers.get(config.auth_header)
            token = parse_auth_header(header, config.auth_scheme)
            if isinstance(token, AuthFailure):
                return await self._reject(token, request)

            resolved = resolve_domain(
                token,
                key=config.verification_key,
                options=config.verify_options,
                domains=config.domains,
                decode=config.verifier.decode,
                keys=config.domain_keys,
            )
            outcome = await verify_token(config.verifier, token, resolved.key, resolved.options)
        except Exception as e:
            logger.exception("auth_audience.strategy.error", strategy=self.name)
            return await self._reject(failure(FailureKind.INTERNAL_ERROR, e), request)

        if isinstance(outcome, AuthFailure):
            return await self._reject(outcome, request)
        return AuthSuccess(payload=outcome.payload, strategy=self.name)

    async def _reject(self, outcome: AuthFailure, request: Request) -> AuthFailure:
        """Attach the configured status and body to an unmapped failure."""
        config = self._config
        try:
            body = await call_hook(config.body_builder_for(outcome.kind), outcome, request)
        except Exception:
            logger.exception(
                "auth_audience.strategy.body_builder_failed",
                strategy=self.name,
                kind=outcome.kind.value,
            )
            outcome = failure(FailureKind.INTERNAL_ERROR, outcome.error)
            body = None
        logger.info(
            "auth_audience.strategy.rejected",
            strategy=self.name,
            kind=outcome.kind.value,
            path=request.url.path,
        )
        return replace(outcome, status=config.status_for(outcome.kind), body=body, strategy=self.name)


class AnonymousAuthenticator:
    """Strategy that always succeeds with a fixed payload."""

    def __init__(self, payload: Mapping[str, Any] | None = None, name: str = "anonymous") -> None:
        self._payload = dict(payload or {"anonymous": True})
        self.name = name

    async def authenticate(self, request: Request) -> AuthOutcome:
        return AuthSuccess(payload=dict(self._payload), strategy=self.name)


__all__ = [
    "AnonymousAuthenticator",
    "Authenticator",
    "JwtAudienceAuthenticator",
    "strategy_name",
]
