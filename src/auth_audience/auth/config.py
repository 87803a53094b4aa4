"""Option resolution for auth-audience.

``AuthAudienceOptions`` is what callers fill in; every field is optional.
``resolve_config`` turns it into a frozen ``AuthAudienceConfig`` once, at
setup time, filling gaps from the host application's config mapping and
from environment variables, and rejecting unusable combinations.

Environment Variables:
    AUTH_AUDIENCE_JWT_AUDIENCE: Expected audience (comma-separated for several)
    AUTH_AUDIENCE_JWT_ISSUER: Expected issuer
    AUTH_AUDIENCE_JWT_KEY: Verification key (HMAC secret or PEM)
    AUTH_AUDIENCE_DOMAINS: JSON domain table ``{domain: {audience, issuer, key}}``
"""

from __future__ import annotations

import inspect
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Sequence, Union

from joserfc.errors import JoseError

from auth_audience.auth.exclusion import ExclusionRule, RuleSpec, compile_rules
from auth_audience.auth.header import DEFAULT_AUTH_HEADER, DEFAULT_AUTH_SCHEME
from auth_audience.auth.outcomes import AuthFailure, Claims, FailureKind, StatusCategory
from auth_audience.auth.verifier import (
    DEFAULT_ALGORITHMS,
    JoseTokenVerifier,
    TokenVerifier,
    VerificationKey,
    VerifyOptions,
    import_verification_key,
)
from auth_audience.errors import ConfigurationError
from auth_audience.models.domains import DomainTable, parse_domain_table
from auth_audience.observability import get_logger

if TYPE_CHECKING:
    from starlette.requests import Request

logger = get_logger(__name__)

ENV_AUDIENCE = "AUTH_AUDIENCE_JWT_AUDIENCE"
ENV_ISSUER = "AUTH_AUDIENCE_JWT_ISSUER"
ENV_KEY = "AUTH_AUDIENCE_JWT_KEY"
ENV_DOMAINS = "AUTH_AUDIENCE_DOMAINS"

DEFAULT_UNAUTHORIZED_STATUS = 401
DEFAULT_BAD_REQUEST_STATUS = 400
DEFAULT_SERVER_ERROR_STATUS = 500
DEFAULT_STATE_ATTRIBUTE = "jwt"

Audience = Union[str, Sequence[str]]
BodyBuilder = Callable[[AuthFailure, "Request"], Union[Any, Awaitable[Any]]]
AuthorizedHook = Callable[[Claims, "Request"], Union[None, Awaitable[None]]]
VerifyErrorHook = Callable[[AuthFailure, "Request"], Union[Any, Awaitable[Any]]]


async def call_hook(hook: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async hook and return its (awaited) result."""
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _no_body(_failure: AuthFailure, _request: Request) -> None:
    return None


@dataclass
class AuthAudienceOptions:
    """User-facing options; anything left as None gets a default.

    Attributes:
        audience: Expected audience (string or list); None to skip the check.
        issuer: Expected issuer; None to skip the check.
        key: Verification key (HMAC secret, PEM public key or joserfc key).
        auth_header: Header carrying the credential (default "Authorization").
        auth_scheme: Expected scheme (default "Bearer"); "" for bare tokens.
        domains: Domain table ``{domain: {audience, issuer, key}}``.
        algorithms: Allowed signing algorithms.
        jwt_verify_options: Explicit constraints; replaces audience/issuer derivation.
        on_authorized: Called with the verified payload; default stores it on
            ``request.state.jwt``.
        on_verify_error: Called with the failure; returning normally recovers
            the request, raising keeps the failure.
        continue_past_error: Let failed requests through with the failure on
            ``request.state.auth_error`` instead of responding. The mapped
            status and body travel on that failure (``status``, ``body``);
            the middleware cannot both answer and call the next handler, so
            sending them is left to the handler.
        base_path_strip: Leading characters stripped from paths before
            exclusion matching.
        exclusions: Ordered route-exclusion rules (legacy mode).
        verifier: Verification capability (default joserfc).
    """

    audience: Audience | None = None
    issuer: str | None = None
    key: VerificationKey | None = None
    auth_header: str | None = None
    auth_scheme: str | None = None
    domains: Mapping[str, Any] | str | None = None
    algorithms: Sequence[str] | None = None
    jwt_verify_options: VerifyOptions | Mapping[str, Any] | None = None
    unauthorized_status: int | None = None
    unauthorized_body: BodyBuilder | None = None
    bad_request_status: int | None = None
    bad_request_body: BodyBuilder | None = None
    server_error_status: int | None = None
    server_error_body: BodyBuilder | None = None
    on_authorized: AuthorizedHook | None = None
    on_verify_error: VerifyErrorHook | None = None
    continue_past_error: bool = False
    base_path_strip: int = 0
    exclusions: Sequence[RuleSpec] | None = None
    verifier: TokenVerifier | None = None


@dataclass(frozen=True)
class AuthAudienceConfig:
    """Fully resolved, read-only configuration shared by all requests.

    ``key`` is the key as configured; ``verification_key`` and
    ``domain_keys`` hold the same material imported once for verification.
    """

    key: VerificationKey | None
    verify_options: VerifyOptions
    domains: DomainTable | None
    auth_header: str = DEFAULT_AUTH_HEADER
    auth_scheme: str = DEFAULT_AUTH_SCHEME
    unauthorized_status: int = DEFAULT_UNAUTHORIZED_STATUS
    bad_request_status: int = DEFAULT_BAD_REQUEST_STATUS
    server_error_status: int = DEFAULT_SERVER_ERROR_STATUS
    unauthorized_body: BodyBuilder = _no_body
    bad_request_body: BodyBuilder = _no_body
    server_error_body: BodyBuilder = _no_body
    on_authorized: AuthorizedHook | None = None
    on_verify_error: VerifyErrorHook | None = None
    continue_past_error: bool = False
    base_path_strip: int = 0
    exclusions: tuple[ExclusionRule, ...] = ()
    verifier: TokenVerifier = field(default_factory=JoseTokenVerifier)
    verification_key: VerificationKey | None = None
    domain_keys: Mapping[str, VerificationKey] = field(default_factory=dict)

    @property
    def audience(self) -> str | tuple[str, ...] | None:
        return self.verify_options.audience

    @property
    def issuer(self) -> str | None:
        return self.verify_options.issuer

    def status_for(self, kind: FailureKind) -> int:
        """Configured status code for a failure kind."""
        category = kind.category
        if category is StatusCategory.UNAUTHORIZED:
            return self.unauthorized_status
        if category is StatusCategory.BAD_REQUEST:
            return self.bad_request_status
        return self.server_error_status

    def body_builder_for(self, kind: FailureKind) -> BodyBuilder:
        """Configured body builder for a failure kind."""
        category = kind.category
        if category is StatusCategory.UNAUTHORIZED:
            return self.unauthorized_body
        if category is StatusCategory.BAD_REQUEST:
            return self.bad_request_body
        return self.server_error_body


def _host_jwt_section(host_config: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return ``host_config["authentication"]["jwt"]`` or an empty mapping."""
    authentication = (host_config or {}).get("authentication") or {}
    return authentication.get("jwt") or {}


def _normalize_audience(audience: Audience | None) -> str | tuple[str, ...] | None:
    if audience is None or audience == "":
        return None
    if isinstance(audience, str):
        parts = [a.strip() for a in audience.split(",") if a.strip()]
        return parts[0] if len(parts) == 1 else tuple(parts)
    return tuple(audience) or None


def _import_key(name: str, key: VerificationKey) -> VerificationKey:
    try:
        return import_verification_key(key)
    except (JoseError, ValueError, TypeError) as e:
        raise ConfigurationError(name, f"unusable verification key: {e}") from e


def _check_status(name: str, value: int) -> int:
    if not 100 <= value <= 599:
        raise ConfigurationError(name, f"status code {value} is out of range")
    return value


def _verify_options(
    options: AuthAudienceOptions,
    audience: str | tuple[str, ...] | None,
    issuer: str | None,
) -> VerifyOptions:
    explicit = options.jwt_verify_options
    if isinstance(explicit, VerifyOptions):
        return explicit
    if explicit is not None:
        data = dict(explicit)
        data["audience"] = _normalize_audience(data.get("audience"))
        if "algorithms" in data:
            data["algorithms"] = tuple(data["algorithms"])
        try:
            return VerifyOptions(**data)
        except TypeError as e:
            raise ConfigurationError("jwt_verify_options", str(e)) from e
    algorithms = tuple(options.algorithms) if options.algorithms else DEFAULT_ALGORITHMS
    return VerifyOptions(audience=audience, issuer=issuer, algorithms=algorithms)


def resolve_config(
    options: AuthAudienceOptions | None = None,
    host_config: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> AuthAudienceConfig:
    """Resolve options into an immutable configuration.

    Audience, issuer and key fall back, in order, to ``host_config``'s
    ``authentication.jwt`` section and to the ``AUTH_AUDIENCE_JWT_*``
    environment variables. The domain table falls back to
    ``AUTH_AUDIENCE_DOMAINS``.

    Args:
        options: Caller options (all optional).
        host_config: Host application configuration mapping.
        env: Environment mapping (defaults to ``os.environ``).

    Returns:
        AuthAudienceConfig ready to be shared across requests.

    Raises:
        ConfigurationError: No key and no domain table, a key that cannot
            be imported, invalid domain table, status code out of range, negative base path strip or
            invalid exclusion rule.
    """
    options = options or AuthAudienceOptions()
    env = os.environ if env is None else env
    host_jwt = _host_jwt_section(host_config)

    audience = _normalize_audience(
        options.audience or host_jwt.get("audience") or env.get(ENV_AUDIENCE)
    )
    issuer = options.issuer or host_jwt.get("issuer") or env.get(ENV_ISSUER) or None
    key = options.key or host_jwt.get("key") or env.get(ENV_KEY) or None

    raw_domains = options.domains if options.domains is not None else env.get(ENV_DOMAINS)
    domains = parse_domain_table(raw_domains) if raw_domains else None

    if not key and not domains:
        raise ConfigurationError("key", "a verification key or a domain table is required")

    if options.base_path_strip < 0:
        raise ConfigurationError("base_path_strip", "must not be negative")

    verification_key = _import_key("key", key) if key else None
    domain_keys = {
        name: _import_key(f"domains.{name}.key", entry.key) for name, entry in (domains or {}).items()
    }

    auth_scheme = DEFAULT_AUTH_SCHEME if options.auth_scheme is None else options.auth_scheme

    config = AuthAudienceConfig(
        key=key,
        verify_options=_verify_options(options, audience, issuer),
        domains=domains,
        auth_header=options.auth_header or DEFAULT_AUTH_HEADER,
        auth_scheme=auth_scheme,
        unauthorized_status=_check_status(
            "unauthorized_status", options.unauthorized_status or DEFAULT_UNAUTHORIZED_STATUS
        ),
        bad_request_status=_check_status(
            "bad_request_status", options.bad_request_status or DEFAULT_BAD_REQUEST_STATUS
        ),
        server_error_status=_check_status(
            "server_error_status", options.server_error_status or DEFAULT_SERVER_ERROR_STATUS
        ),
        unauthorized_body=options.unauthorized_body or _no_body,
        bad_request_body=options.bad_request_body or _no_body,
        server_error_body=options.server_error_body or _no_body,
        on_authorized=options.on_authorized,
        on_verify_error=options.on_verify_error,
        continue_past_error=options.continue_past_error,
        base_path_strip=options.base_path_strip,
        exclusions=compile_rules(options.exclusions),
        verifier=options.verifier or JoseTokenVerifier(),
        verification_key=verification_key,
        domain_keys=domain_keys,
    )

    logger.info(
        "auth_audience.config.resolved",
        audience=config.audience,
        issuer=config.issuer,
        auth_header=config.auth_header,
        auth_scheme=config.auth_scheme,
        domains=sorted(domains) if domains else None,
        exclusions=len(config.exclusions),
        key=key,
    )
    return config


__all__ = [
    "AuthAudienceConfig",
    "AuthAudienceOptions",
    "AuthorizedHook",
    "BodyBuilder",
    "DEFAULT_STATE_ATTRIBUTE",
    "VerifyErrorHook",
    "call_hook",
    "resolve_config",
]
