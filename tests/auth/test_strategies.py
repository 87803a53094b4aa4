"""Unit tests for the JWT audience strategy and the anonymous strategy."""

from __future__ import annotations

from typing import Any

from auth_audience.auth.config import AuthAudienceConfig, AuthAudienceOptions, resolve_config
from auth_audience.auth.outcomes import AuthFailure, AuthSuccess, FailureKind
from auth_audience.auth.strategies import AnonymousAuthenticator, JwtAudienceAuthenticator
from tests.factories import AUDIENCE, ISSUER, SECRET, make_request, make_token, valid_claims


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def test_valid_token_succeeds(config: AuthAudienceConfig) -> None:
    claims = valid_claims(tokenInjected=True)
    outcome = await JwtAudienceAuthenticator(config).authenticate(
        make_request(_bearer(make_token(claims)))
    )

    assert isinstance(outcome, AuthSuccess)
    assert outcome.payload == claims
    assert outcome.strategy == "jwt"


async def test_missing_header_maps_to_unauthorized(config: AuthAudienceConfig) -> None:
    outcome = await JwtAudienceAuthenticator(config).authenticate(make_request())

    assert isinstance(outcome, AuthFailure)
    assert outcome.kind is FailureKind.NO_HEADER
    assert outcome.status == 401
    assert outcome.body is None


async def test_scheme_mismatch_maps_to_bad_request(config: AuthAudienceConfig) -> None:
    headers = {"Authorization": f"JWT {make_token(valid_claims())}"}
    outcome = await JwtAudienceAuthenticator(config).authenticate(make_request(headers))

    assert isinstance(outcome, AuthFailure)
    assert outcome.kind is FailureKind.SCHEME_MISMATCH
    assert outcome.status == 400


async def test_expired_token_maps_to_unauthorized(config: AuthAudienceConfig) -> None:
    token = make_token(valid_claims(exp=0))
    outcome = await JwtAudienceAuthenticator(config).authenticate(make_request(_bearer(token)))

    assert isinstance(outcome, AuthFailure)
    assert outcome.kind is FailureKind.VERIFICATION_FAILED
    assert outcome.status == 401


async def test_custom_statuses_and_body_builders() -> None:
    seen: list[str] = []

    async def unauthorized_body(failure: AuthFailure, request: Any) -> dict[str, str]:
        seen.append(failure.message)
        return {"error": failure.message}

    def bad_request_body(failure: AuthFailure, request: Any) -> dict[str, str]:
        return {"bad": failure.message}

    config = resolve_config(
        AuthAudienceOptions(
            audience=AUDIENCE,
            issuer=ISSUER,
            key=SECRET,
            unauthorized_status=419,
            unauthorized_body=unauthorized_body,
            bad_request_status=422,
            bad_request_body=bad_request_body,
        )
    )
    strategy = JwtAudienceAuthenticator(config)

    missing = await strategy.authenticate(make_request())
    malformed = await strategy.authenticate(make_request({"Authorization": "Bearer a b"}))

    assert isinstance(missing, AuthFailure)
    assert (missing.status, missing.body) == (419, {"error": "NO_AUTHORIZATION_HEADER"})
    assert isinstance(malformed, AuthFailure)
    assert (malformed.status, malformed.body) == (
        422,
        {"bad": "UNEXPECTED_AUTH_HEADER_CONTENT"},
    )
    assert seen == ["NO_AUTHORIZATION_HEADER"]


async def test_failing_body_builder_becomes_internal_error() -> None:
    async def broken(failure: AuthFailure, request: Any) -> None:
        raise RuntimeError("builder broke")

    config = resolve_config(AuthAudienceOptions(key=SECRET, unauthorized_body=broken))
    outcome = await JwtAudienceAuthenticator(config).authenticate(make_request())

    assert isinstance(outcome, AuthFailure)
    assert outcome.kind is FailureKind.INTERNAL_ERROR
    assert outcome.status == 500
    assert outcome.body is None


async def test_no_scheme_accepts_bare_token() -> None:
    config = resolve_config(
        AuthAudienceOptions(audience=AUDIENCE, issuer=ISSUER, key=SECRET, auth_scheme="")
    )
    token = make_token(valid_claims())

    outcome = await JwtAudienceAuthenticator(config).authenticate(
        make_request({"Authorization": token})
    )

    assert isinstance(outcome, AuthSuccess)


async def test_custom_header_name() -> None:
    config = resolve_config(AuthAudienceOptions(key=SECRET, auth_header="X-Api-Token"))
    token = make_token(valid_claims())
    strategy = JwtAudienceAuthenticator(config)

    found = await strategy.authenticate(make_request({"X-Api-Token": f"Bearer {token}"}))
    missing = await strategy.authenticate(make_request({"Authorization": f"Bearer {token}"}))

    assert isinstance(found, AuthSuccess)
    assert isinstance(missing, AuthFailure)
    assert missing.kind is FailureKind.NO_HEADER


async def test_decode_error_inside_strategy_is_internal_error() -> None:
    class _ExplodingDecode:
        async def verify(self, token: str, key: Any, options: Any) -> dict[str, Any]:
            return {}

        def decode(self, token: str) -> None:
            raise RuntimeError("decoder crashed")

    config = resolve_config(
        AuthAudienceOptions(
            domains={"default": {"key": SECRET}},
            verifier=_ExplodingDecode(),
        )
    )
    outcome = await JwtAudienceAuthenticator(config).authenticate(
        make_request(_bearer(make_token(valid_claims())))
    )

    assert isinstance(outcome, AuthFailure)
    assert outcome.kind is FailureKind.INTERNAL_ERROR
    assert outcome.status == 500


async def test_anonymous_authenticator_always_succeeds() -> None:
    strategy = AnonymousAuthenticator({"role": "guest"}, name="guest")
    outcome = await strategy.authenticate(make_request())

    assert isinstance(outcome, AuthSuccess)
    assert outcome.payload == {"role": "guest"}
    assert outcome.strategy == "guest"
