"""Shared Pydantic schemas for API responses."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys on the wire.

    Fields stay snake_case in Python and accept either spelling on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ApiResponse[T](BaseModel):
    """Standard success envelope: ``{success, message, data}``."""

    success: bool = Field(True, description="True when the request was handled")
    message: str | None = Field(None, description="Human-readable outcome")
    data: T | None = Field(None, description="Response payload")
