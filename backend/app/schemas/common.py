"""
Shared response envelope.
"""
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for response bodies: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Envelope wrapped around every successful response."""
    status_code: int = 200
    data: Optional[T] = None
    message: str = "Success"
    success: bool = True

    @classmethod
    def ok(cls, data: T = None, message: str = "Success", status_code: int = 200) -> "ApiResponse[T]":
        return cls(status_code=status_code, data=data, message=message, success=status_code < 400)
