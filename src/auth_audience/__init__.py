"""auth-audience: bearer JWT verification and authenticator chaining.

Example:
    >>> from fastapi import FastAPI
    >>> from auth_audience import AuthAudienceOptions, install_auth_audience
    >>>
    >>> app = FastAPI()
    >>> install_auth_audience(app, AuthAudienceOptions(audience="api", key="..."))
"""

__version__ = "1.0.0"

from auth_audience.auth import (
    AnonymousAuthenticator,
    AuthAudienceConfig,
    AuthAudienceMiddleware,
    AuthAudienceOptions,
    AuthenticatorChain,
    AuthFailure,
    AuthSuccess,
    ChainResult,
    FailureKind,
    JoseTokenVerifier,
    JwtAudienceAuthenticator,
    ResultDispatcher,
    VerifyOptions,
    get_jwt_payload,
    require_authentication,
    resolve_config,
)
from auth_audience.errors import AuthAudienceError, ConfigurationError
from auth_audience.plugin import install_auth_audience

__all__ = [
    "__version__",
    "AnonymousAuthenticator",
    "AuthAudienceConfig",
    "AuthAudienceError",
    "AuthAudienceMiddleware",
    "AuthAudienceOptions",
    "AuthFailure",
    "AuthSuccess",
    "AuthenticatorChain",
    "ChainResult",
    "ConfigurationError",
    "FailureKind",
    "JoseTokenVerifier",
    "JwtAudienceAuthenticator",
    "ResultDispatcher",
    "VerifyOptions",
    "get_jwt_payload",
    "install_auth_audience",
    "require_authentication",
    "resolve_config",
]
