"""Base Pydantic model configuration for auth-audience models.

All models inherit from AuthAudienceBaseModel to ensure consistent behavior:
- Immutability (frozen=True) so configuration can be shared across requests
- Strict validation (extra="forbid") to catch typos in domain tables
- Flexible field naming (populate_by_name=True) for alias support
"""

from pydantic import BaseModel, ConfigDict


class AuthAudienceBaseModel(BaseModel):
    """Base model for all auth-audience configuration entities.

    Example:
        >>> class MyModel(AuthAudienceBaseModel):
        ...     name: str
        >>> obj = MyModel(name="test")
        >>> obj.name = "other"  # Raises ValidationError (frozen)
        Traceback (most recent call last):
        ...
        pydantic_core._pydantic_core.ValidationError: ...
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        validate_default=True,
    )
