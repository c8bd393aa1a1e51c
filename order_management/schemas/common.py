"""
Shared Pydantic schema building blocks.

All API payloads are camelCase on the wire and snake_case in Python; every
response is wrapped in the ``ApiResponse`` envelope.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """
    Response envelope returned by every endpoint.

    Successful calls carry ``data`` and a ``message``; failed calls carry an
    ``error_message`` and no data.
    """

    message: Optional[str] = Field(None, description="Outcome summary")
    error_message: Optional[str] = Field(None, description="Human-readable failure reason")
    data: Optional[T] = Field(None, description="Operation result")

    @classmethod
    def success(cls, data: Optional[T] = None, message: str = "Success") -> "ApiResponse[T]":
        return cls(message=message, data=data)

    @classmethod
    def failure(cls, error_message: str, message: str = "Request failed") -> "ApiResponse[T]":
        return cls(message=message, error_message=error_message)
