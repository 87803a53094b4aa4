"""Per-domain key and audience resolution.

Picks the audience/issuer/key triple a token must be verified against by
reading its ``domain`` claim from an *unverified* decode. Nothing trusts
that value beyond key selection: a forged domain only makes verification
run against the wrong key and fail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

from auth_audience.auth.outcomes import Claims
from auth_audience.auth.verifier import VerificationKey, VerifyOptions
from auth_audience.models.domains import DEFAULT_DOMAIN, DOMAIN_CLAIM, DomainTable
from auth_audience.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedVerification:
    """Key and constraints a token will be verified with.

    Attributes:
        key: Verification key (may be empty; verification then fails).
        options: Verification constraints.
        domain: Domain table entry used, or None when the flat config applies.
    """

    key: VerificationKey | None
    options: VerifyOptions
    domain: str | None = None


def domain_of(claims: Claims | None) -> str:
    """Return the domain named by decoded claims, ``"default"`` when absent."""
    if not claims:
        return DEFAULT_DOMAIN
    domain = claims.get(DOMAIN_CLAIM)
    if not domain:
        return DEFAULT_DOMAIN
    return domain if isinstance(domain, str) else str(domain)


def resolve_domain(
    token: str,
    *,
    key: VerificationKey | None,
    options: VerifyOptions,
    domains: DomainTable | None,
    decode: Callable[[str], Claims | None],
    keys: Mapping[str, VerificationKey] | None = None,
) -> ResolvedVerification:
    """Select the key and constraints for ``token``.

    Without a domain table the flat key and options are returned unchanged.
    With one, the token's domain (or ``"default"``) selects an entry whose
    audience, issuer and key replace the flat ones. An unknown domain or an
    undecodable token falls back to the flat configuration; resolution
    itself never fails the request.

    Args:
        token: Raw JWT.
        key: Flat (non-domained) key.
        options: Flat verification constraints.
        domains: Optional domain table.
        decode: Unverified decoder, e.g. ``JoseTokenVerifier().decode``.
        keys: Pre-imported keys by domain name; entries missing here use
            the table entry's raw key.

    Returns:
        ResolvedVerification for the verifier.
    """
    if not domains:
        return ResolvedVerification(key=key, options=options)

    domain = domain_of(decode(token))
    entry = domains.get(domain)
    if entry is None:
        logger.info("auth_audience.domain.unresolved", domain=domain)
        return ResolvedVerification(key=key, options=options)

    logger.debug("auth_audience.domain.resolved", domain=domain)
    entry_key = keys.get(domain, entry.key) if keys else entry.key
    return ResolvedVerification(key=entry_key, options=options.for_domain(entry), domain=domain)


__all__ = ["ResolvedVerification", "domain_of", "resolve_domain"]
