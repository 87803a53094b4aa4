"""Per-domain verification settings.

A domain table maps a tenant name (the ``domain`` claim of a token) to the
audience, issuer and key that tokens of that tenant are signed with. The
``default`` entry is used for tokens that carry no domain claim.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from pydantic import Field, TypeAdapter, ValidationError, field_validator

from auth_audience.errors import ConfigurationError
from auth_audience.models.base import AuthAudienceBaseModel

DEFAULT_DOMAIN = "default"
DOMAIN_CLAIM = "domain"


class DomainEntry(AuthAudienceBaseModel):
    """Audience, issuer and key for one signing domain.

    Attributes:
        audience: Expected ``aud`` (string or list); None skips the check.
        issuer: Expected ``iss``; None skips the check.
        key: HMAC secret or PEM public key the domain's tokens are signed with.
    """

    audience: str | list[str] | None = None
    issuer: str | None = None
    key: str | bytes = Field(...)

    @field_validator("key")
    @classmethod
    def _key_not_empty(cls, value: str | bytes) -> str | bytes:
        if not value:
            raise ValueError("domain key must not be empty")
        return value


DomainTable = dict[str, DomainEntry]

_domain_table_adapter: TypeAdapter[DomainTable] = TypeAdapter(DomainTable)


def parse_domain_table(data: Mapping[str, Any] | str) -> DomainTable:
    """Validate a raw mapping (or its JSON text) into a DomainTable.

    Args:
        data: ``{domain: {"audience": ..., "issuer": ..., "key": ...}}`` or the
            same structure as a JSON string (e.g. from an environment variable).

    Returns:
        Mapping of domain name to DomainEntry.

    Raises:
        ConfigurationError: If the JSON is malformed or an entry is invalid.
    """
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ConfigurationError("domains", f"not valid JSON: {e.msg}") from e
    if isinstance(data, Mapping) and all(isinstance(v, DomainEntry) for v in data.values()):
        return dict(data)
    try:
        return _domain_table_adapter.validate_python(data)
    except ValidationError as e:
        raise ConfigurationError(
            "domains", "invalid domain table", details={"errors": e.error_count()}
        ) from e


__all__ = [
    "DEFAULT_DOMAIN",
    "DOMAIN_CLAIM",
    "DomainEntry",
    "DomainTable",
    "parse_domain_table",
]
