"""Shared pytest fixtures for auth-audience tests."""

from __future__ import annotations

import pytest

from auth_audience.auth.config import (
    ENV_AUDIENCE,
    ENV_DOMAINS,
    ENV_ISSUER,
    ENV_KEY,
    AuthAudienceConfig,
    AuthAudienceOptions,
    resolve_config,
)
from auth_audience.observability.logging import ENV_LOG_FORMAT, ENV_LOG_LEVEL, ENV_SERVICE_NAME
from tests.factories import AUDIENCE, ISSUER, SECRET


@pytest.fixture(autouse=True)
def _clean_auth_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep AUTH_AUDIENCE_* variables from the outer environment out of tests."""
    for name in (
        ENV_AUDIENCE,
        ENV_ISSUER,
        ENV_KEY,
        ENV_DOMAINS,
        ENV_LOG_FORMAT,
        ENV_LOG_LEVEL,
        ENV_SERVICE_NAME,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def options() -> AuthAudienceOptions:
    """Options matching tokens built with tests.factories.valid_claims()."""
    return AuthAudienceOptions(audience=AUDIENCE, issuer=ISSUER, key=SECRET)


@pytest.fixture
def config(options: AuthAudienceOptions) -> AuthAudienceConfig:
    """Resolved configuration for the default test options."""
    return resolve_config(options)
