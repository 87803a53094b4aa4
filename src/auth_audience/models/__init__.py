"""Configuration models for auth-audience."""

from auth_audience.models.base import AuthAudienceBaseModel
from auth_audience.models.domains import (
    DEFAULT_DOMAIN,
    DOMAIN_CLAIM,
    DomainEntry,
    DomainTable,
    parse_domain_table,
)

__all__ = [
    "AuthAudienceBaseModel",
    "DEFAULT_DOMAIN",
    "DOMAIN_CLAIM",
    "DomainEntry",
    "DomainTable",
    "parse_domain_table",
]
