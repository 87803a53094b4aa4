"""One-call installation of auth-audience on a FastAPI / Starlette app."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from auth_audience.auth.chain import AuthenticatorChain
from auth_audience.auth.config import AuthAudienceOptions, resolve_config
from auth_audience.auth.dispatch import ResultDispatcher
from auth_audience.auth.middleware import AuthAudienceMiddleware
from auth_audience.auth.strategies import Authenticator, JwtAudienceAuthenticator
from auth_audience.observability import get_logger

logger = get_logger(__name__)


def install_auth_audience(
    app: Any,
    options: AuthAudienceOptions | None = None,
    *,
    host_config: Mapping[str, Any] | None = None,
    strategies: Sequence[Authenticator] = (),
    path_prefix: str | None = None,
) -> list[Authenticator]:
    """Resolve options, build the authenticator chain and add the middleware.

    The JWT strategy built from ``options`` comes first; ``strategies`` are
    tried after it, in order.

    Args:
        app: FastAPI or Starlette application.
        options: JWT strategy options.
        host_config: Host config mapping consulted for
            ``authentication.jwt.{audience,issuer,key}``.
        strategies: Extra strategies tried after the JWT one.
        path_prefix: If set, only requests under this path are authenticated.

    Returns:
        The installed authenticators (a single chain).

    Raises:
        ConfigurationError: If the options cannot be resolved.
    """
    config = resolve_config(options, host_config)
    chain = AuthenticatorChain(
        [JwtAudienceAuthenticator(config), *strategies],
        server_error_status=config.server_error_status,
    )
    app.add_middleware(
        AuthAudienceMiddleware,
        authenticator=chain,
        dispatcher=ResultDispatcher.from_config(config),
        exclusions=config.exclusions,
        base_path_strip=config.base_path_strip,
        path_prefix=path_prefix,
    )
    logger.info(
        "auth_audience.installed",
        strategies=[getattr(s, "name", type(s).__name__) for s in chain.authenticators],
        path_prefix=path_prefix,
        exclusions=len(config.exclusions),
    )
    return [chain]


__all__ = ["install_auth_audience"]
