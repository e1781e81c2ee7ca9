"""Shared Pydantic bases and response envelopes.

Python attributes stay snake_case; JSON on the wire is camelCase. Request
bodies accept either spelling.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Standard envelope: ``{"status": "success", "data": ...}``."""

    status: str = "success"
    data: T
    message: Optional[str] = None


class MessageResponse(CamelModel):
    status: str = "success"
    message: str
