"""Tests for the FastAPI dependencies."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI
from starlette.testclient import TestClient

from auth_audience import AuthAudienceOptions, install_auth_audience
from auth_audience.auth.config import resolve_config
from auth_audience.auth.dependencies import get_jwt_payload, require_authentication
from auth_audience.auth.strategies import JwtAudienceAuthenticator
from tests.factories import AUDIENCE, ISSUER, SECRET, make_token, valid_claims


def _strategy() -> JwtAudienceAuthenticator:
    return JwtAudienceAuthenticator(
        resolve_config(AuthAudienceOptions(audience=AUDIENCE, issuer=ISSUER, key=SECRET))
    )


def test_require_authentication_passes_payload_to_endpoint() -> None:
    app = FastAPI()

    @app.get("/orders")
    async def orders(payload: dict[str, Any] = Depends(require_authentication(_strategy()))) -> dict[str, Any]:
        return {"sub": payload["sub"]}

    token = make_token(valid_claims(sub="user-42"))
    with TestClient(app) as client:
        response = client.get("/orders", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json() == {"sub": "user-42"}


def test_require_authentication_raises_mapped_status() -> None:
    app = FastAPI()

    @app.get("/orders")
    async def orders(payload: dict[str, Any] = Depends(require_authentication(_strategy()))) -> dict[str, Any]:
        return payload

    with TestClient(app) as client:
        missing = client.get("/orders")
        malformed = client.get("/orders", headers={"Authorization": "Bearer a b"})

    assert missing.status_code == 401
    assert missing.json() == {"detail": "NO_AUTHORIZATION_HEADER"}
    assert missing.headers["WWW-Authenticate"] == "Bearer"
    assert malformed.status_code == 400
    assert "WWW-Authenticate" not in malformed.headers


def test_get_jwt_payload_reads_middleware_result() -> None:
    app = FastAPI()

    @app.get("/me")
    async def me(payload: dict[str, Any] = Depends(get_jwt_payload)) -> dict[str, Any]:
        return {"sub": payload["sub"]}

    install_auth_audience(
        app,
        AuthAudienceOptions(audience=AUDIENCE, issuer=ISSUER, key=SECRET, exclusions=["^/me$"]),
    )

    token = make_token(valid_claims(sub="user-7"))
    with TestClient(app) as client:
        authenticated = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        anonymous = client.get("/me")

    assert authenticated.json() == {"sub": "user-7"}
    assert anonymous.status_code == 401
    assert anonymous.json() == {"detail": "Authentication required"}
