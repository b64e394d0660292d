"""Base model for all jnlpbox Pydantic models."""

from pydantic import BaseModel, ConfigDict


class JnlpboxBaseModel(BaseModel):
    """Base model class for all jnlpbox Pydantic models.

    Unknown fields are rejected and enum fields hold their plain values, so
    models loaded from YAML compare equal to the string constants used in
    config files.
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        use_enum_values=True,
        validate_assignment=True,
        populate_by_name=True,
    )
