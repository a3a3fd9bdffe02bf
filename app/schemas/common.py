from typing import Optional, List, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class FieldError(BaseModel):
    field: str
    message: str


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every response body."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    errors: Optional[List[FieldError]] = None


class Pagination(CamelModel):
    total: int
    limit: int
    offset: int
    has_more: bool
