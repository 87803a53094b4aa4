"""Bearer JWT authentication for auth-audience.

Pipeline: header parsing → domain resolution → verification, wrapped in
strategies that compose into an AuthenticatorChain, with a ResultDispatcher
and middleware turning outcomes into responses.

Public exports:
    AuthAudienceOptions / AuthAudienceConfig / resolve_config: configuration
    parse_auth_header: credential header parsing
    resolve_domain: per-domain key/audience selection
    JoseTokenVerifier / VerifyOptions / verify_token: verification
    ExclusionRule / is_excluded: route exclusion (legacy mode)
    JwtAudienceAuthenticator / AnonymousAuthenticator: strategies
    AuthenticatorChain: first-success / first-failure composition
    ResultDispatcher: outcome → pipeline decision
    AuthAudienceMiddleware: Starlette middleware
    get_jwt_payload / require_authentication: FastAPI dependencies
"""

from auth_audience.auth.chain import AuthenticatorChain
from auth_audience.auth.config import AuthAudienceConfig, AuthAudienceOptions, resolve_config
from auth_audience.auth.dependencies import get_jwt_payload, require_authentication
from auth_audience.auth.dispatch import DispatchDecision, ResultDispatcher
from auth_audience.auth.domains import ResolvedVerification, resolve_domain
from auth_audience.auth.exclusion import ExclusionRule, is_excluded
from auth_audience.auth.header import parse_auth_header
from auth_audience.auth.middleware import AuthAudienceMiddleware
from auth_audience.auth.outcomes import (
    AuthFailure,
    AuthOutcome,
    AuthSuccess,
    ChainResult,
    Claims,
    FailureKind,
)
from auth_audience.auth.strategies import (
    AnonymousAuthenticator,
    Authenticator,
    JwtAudienceAuthenticator,
)
from auth_audience.auth.verifier import JoseTokenVerifier, VerifyOptions, verify_token

__all__ = [
    "AnonymousAuthenticator",
    "AuthAudienceConfig",
    "AuthAudienceMiddleware",
    "AuthAudienceOptions",
    "AuthFailure",
    "AuthOutcome",
    "AuthSuccess",
    "Authenticator",
    "AuthenticatorChain",
    "ChainResult",
    "Claims",
    "DispatchDecision",
    "ExclusionRule",
    "FailureKind",
    "JoseTokenVerifier",
    "JwtAudienceAuthenticator",
    "ResolvedVerification",
    "ResultDispatcher",
    "VerifyOptions",
    "get_jwt_payload",
    "is_excluded",
    "parse_auth_header",
    "require_authentication",
    "resolve_config",
    "resolve_domain",
    "verify_token",
]
