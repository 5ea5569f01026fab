"""Base model configuration for all Pydantic models."""

from pydantic import BaseModel, ConfigDict


class RegisterBaseModel(BaseModel):
    """Base model with common configuration.

    Conventions:
    - Field names are lowercase snake_case
    - Kubernetes camelCase names are accepted through aliases
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )
