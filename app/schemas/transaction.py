from datetime import datetime
from typing import Optional, List

from pydantic import Field, field_validator

from app.models.enums import TransactionType, Recurrence
from app.schemas.common import CamelModel, Pagination
from app.schemas.category import CategorySummary
from app.services.date_range import to_utc


def _upper(v):
    return v.upper() if isinstance(v, str) else v


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _utc(v: Optional[datetime]) -> Optional[datetime]:
    return to_utc(v) if v is not None else v


class TransactionCreate(CamelModel):
    amount: float = Field(..., ge=0.01)
    type: TransactionType
    category_id: str = Field(..., min_length=1)
    description: Optional[str] = Field(None, max_length=255)
    date: Optional[datetime] = None  # defaults to now
    is_recurring: bool = False
    recurrence: Optional[Recurrence] = None

    upper_enums = field_validator("type", "recurrence", mode="before")(_upper)
    strip_description = field_validator("description", mode="before")(_strip)
    utc_date = field_validator("date", mode="after")(_utc)


class TransactionUpdate(CamelModel):
    amount: Optional[float] = Field(None, ge=0.01)
    type: Optional[TransactionType] = None
    category_id: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, max_length=255)
    date: Optional[datetime] = None
    is_recurring: Optional[bool] = None
    recurrence: Optional[Recurrence] = None

    upper_enums = field_validator("type", "recurrence", mode="before")(_upper)
    strip_description = field_validator("description", mode="before")(_strip)
    utc_date = field_validator("date", mode="after")(_utc)


class TransactionResponse(CamelModel):
    id: str
    amount: float
    description: Optional[str] = None
    date: datetime
    type: TransactionType
    is_recurring: bool
    recurrence: Optional[Recurrence] = None
    user_id: str
    category_id: str
    category: CategorySummary
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # SQLite hands back naive timestamps; they are stored as UTC
    utc_date = field_validator("date", mode="after")(_utc)


class TransactionListResponse(CamelModel):
    transactions: List[TransactionResponse]
    pagination: Pagination
