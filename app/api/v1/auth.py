from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.models.user import User
from app.schemas.auth import RegisterRequest, LoginRequest, AuthPayload, ProfileResponse
from app.schemas.common import ApiResponse
from app.services.auth_service import AuthService

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create an account.

    The new user starts with the default category set and receives a token.
    """
    auth = await AuthService(db).register(
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    return ApiResponse(message="Registration successful.", data=auth)


@router.post("/login", response_model=ApiResponse[AuthPayload])
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    auth = await AuthService(db).login(email=payload.email, password=payload.password)
    return ApiResponse(message="Login successful.", data=auth)


@router.get("/me", response_model=ApiResponse[ProfileResponse])
async def get_me(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Current user's profile with transaction and category counts."""
    profile = await AuthService(db).get_profile(current_user)
    return ApiResponse(data=profile)
