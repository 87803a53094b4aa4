"""JWT verification for auth-audience.

Wraps the signature/claims check (joserfc by default) behind a small
``TokenVerifier`` protocol and converts its result into an outcome:
``AuthSuccess(payload)`` or ``AuthFailure(VERIFICATION_FAILED)``.
Expiry comparison is exactly joserfc's, with zero leeway unless configured.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Protocol, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa
from joserfc import jwk, jws
from joserfc import jwt as jose_jwt
from joserfc.errors import JoseError
from joserfc.jwt import JWTClaimsRegistry

from auth_audience.auth.outcomes import AuthOutcome, AuthSuccess, Claims, FailureKind, failure
from auth_audience.models.domains import DomainEntry
from auth_audience.observability import get_logger

logger = get_logger(__name__)

DEFAULT_ALGORITHMS: tuple[str, ...] = ("HS256", "RS256", "ES256")

_KEY_OBJECT_TYPES = (jwk.OctKey, jwk.RSAKey, jwk.ECKey, jwk.OKPKey, jwk.KeySet)

VerificationKey = Union[str, bytes, jwk.OctKey, jwk.RSAKey, jwk.ECKey, jwk.OKPKey, jwk.KeySet]


@dataclass(frozen=True)
class VerifyOptions:
    """Constraints a token must satisfy besides a valid signature.

    Attributes:
        audience: Expected ``aud`` (any of the values); None skips the check.
        issuer: Expected ``iss``; None skips the check.
        algorithms: Allowed signing algorithms.
        leeway: Clock skew in seconds for exp/nbf/iat (0 by default).
        claims: Extra joserfc claim options, e.g. ``{"sub": {"essential": True}}``.
    """

    audience: str | tuple[str, ...] | None = None
    issuer: str | None = None
    algorithms: tuple[str, ...] = DEFAULT_ALGORITHMS
    leeway: int = 0
    claims: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def for_domain(self, entry: DomainEntry) -> VerifyOptions:
        """Return a copy whose audience and issuer come from a domain entry."""
        audience = entry.audience
        if isinstance(audience, list):
            audience = tuple(audience)
        return replace(self, audience=audience, issuer=entry.issuer)

    def claims_registry(self) -> JWTClaimsRegistry:
        """Build the joserfc registry that validates these constraints."""
        options: dict[str, Any] = {k: dict(v) for k, v in self.claims.items()}
        if self.audience is not None:
            values = [self.audience] if isinstance(self.audience, str) else list(self.audience)
            options["aud"] = {"essential": True, "values": values}
        if self.issuer is not None:
            options["iss"] = {"essential": True, "value": self.issuer}
        return JWTClaimsRegistry(leeway=self.leeway, **options)


class TokenVerifier(Protocol):
    """The external verification capability.

    ``verify`` raises on any invalid token; ``decode`` never verifies and
    returns None for anything that is not a readable JWT.
    """

    async def verify(self, token: str, key: VerificationKey, options: VerifyOptions) -> Claims:
        ...

    def decode(self, token: str) -> Claims | None:
        ...


def _pem_key_type(raw: bytes) -> str:
    """Return the joserfc key type of a PEM encoded public or private key."""
    if b"PRIVATE KEY" in raw:
        loaded: Any = serialization.load_pem_private_key(raw, password=None)
    else:
        loaded = serialization.load_pem_public_key(raw)
    if isinstance(loaded, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
        return "RSA"
    if isinstance(loaded, (ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey)):
        return "EC"
    if isinstance(
        loaded,
        (
            ed25519.Ed25519PublicKey,
            ed25519.Ed25519PrivateKey,
            ed448.Ed448PublicKey,
            ed448.Ed448PrivateKey,
        ),
    ):
        return "OKP"
    raise ValueError(f"Unsupported PEM key type: {type(loaded).__name__}")


def import_verification_key(key: VerificationKey) -> Any:
    """Turn a configured key into a joserfc key object.

    Key objects and key sets pass through; PEM text is imported as an
    RSA/EC/OKP key; any other string or bytes is an HMAC secret.

    Raises:
        ValueError: If a PEM block cannot be loaded.
    """
    if isinstance(key, _KEY_OBJECT_TYPES):
        return key
    raw = key.encode("utf-8") if isinstance(key, str) else bytes(key)
    if raw.lstrip().startswith(b"-----BEGIN"):
        return jwk.import_key(raw, _pem_key_type(raw))
    return jwk.OctKey.import_key(raw)


class JoseTokenVerifier:
    """TokenVerifier backed by joserfc.

    Example:
        >>> verifier = JoseTokenVerifier()
        >>> claims = await verifier.verify(token, "secret", VerifyOptions(audience="api"))
    """

    async def verify(self, token: str, key: VerificationKey, options: VerifyOptions) -> Claims:
        """Check signature, algorithm and registered claims; return the claims.

        Raises:
            JoseError: Bad signature, malformed token, expired, wrong aud/iss, etc.
            ValueError: If the key cannot be imported.
        """
        token_obj = jose_jwt.decode(
            token,
            import_verification_key(key),
            algorithms=list(options.algorithms),
        )
        options.claims_registry().validate(token_obj.claims)
        return dict(token_obj.claims)

    def decode(self, token: str) -> Claims | None:
        """Read the claims without verifying the signature.

        Only fit for choosing which key to verify with; never for trust.
        """
        try:
            obj = jws.extract_compact(token.encode("ascii"))
            claims = json.loads(obj.payload)
        except (JoseError, ValueError):
            return None
        return claims if isinstance(claims, dict) else None


async def verify_token(
    verifier: TokenVerifier,
    token: str,
    key: VerificationKey | None,
    options: VerifyOptions,
) -> AuthOutcome:
    """Run the verification capability and return a typed outcome.

    Never raises: every error from the capability (signature, expiry,
    claims, key import) becomes ``VERIFICATION_FAILED``. An empty key always
    fails without calling the capability.

    Args:
        verifier: Verification capability.
        token: Raw JWT.
        key: Key resolved for the token's domain.
        options: Constraints resolved for the token's domain.

    Returns:
        AuthSuccess with the verified claims, or an unmapped AuthFailure.
    """
    if not key:
        logger.warning("auth_audience.verify.no_key")
        return failure(FailureKind.VERIFICATION_FAILED, "NO_VERIFICATION_KEY")

    try:
        payload = await verifier.verify(token, key, options)
    except Exception as e:
        logger.warning(
            "auth_audience.verify.failed",
            error_type=type(e).__name__,
            error=str(e),
        )
        return failure(FailureKind.VERIFICATION_FAILED, e)

    logger.debug("auth_audience.verify.succeeded", sub=payload.get("sub"))
    return AuthSuccess(payload=payload)


__all__ = [
    "DEFAULT_ALGORITHMS",
    "JoseTokenVerifier",
    "TokenVerifier",
    "VerificationKey",
    "VerifyOptions",
    "import_verification_key",
    "verify_token",
]
