from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.common import CamelModel

HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=50)
    icon: Optional[str] = Field(None, max_length=10)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)

    strip_fields = field_validator("name", "icon", "color", mode="before")(_strip)


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    icon: Optional[str] = Field(None, max_length=10)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)

    strip_fields = field_validator("name", "icon", "color", mode="before")(_strip)


class CategorySummary(CamelModel):
    """Category fields embedded in transactions and stats."""

    id: str
    name: str
    icon: str
    color: str


class CategoryResponse(CategorySummary):
    user_id: str
    created_at: Optional[datetime] = None


class CategoryWithCount(CategoryResponse):
    transaction_count: int = 0
