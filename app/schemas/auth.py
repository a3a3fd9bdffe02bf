from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from app.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    """Request body for account registration."""

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserResponse(CamelModel):
    """Public user fields (never includes the password hash)."""

    id: str
    name: str
    email: str
    created_at: datetime


class AuthPayload(CamelModel):
    user: UserResponse
    token: str


class UserCounts(CamelModel):
    transactions: int
    categories: int


class ProfileResponse(UserResponse):
    counts: UserCounts
