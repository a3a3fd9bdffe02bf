from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError
from app.core.security import get_user_id_from_token
from app.db.repositories.user_repo import UserRepository
from app.db.session import get_session_maker
from app.models.user import User

# auto_error=False so a missing header is reported as 401 by our own handler
security = HTTPBearer(auto_error=False)

CREDENTIALS_ERROR = "Could not validate credentials"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency."""
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_current_db_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to a database user.

    Missing, malformed, expired and orphaned tokens all fail the same way so the
    response does not reveal which check failed.
    """
    if credentials is None:
        raise AuthenticationError(CREDENTIALS_ERROR, details={"reason": "missing_token"})

    try:
        user_id = get_user_id_from_token(credentials.credentials)
    except JWTError as e:
        raise AuthenticationError(CREDENTIALS_ERROR, details={"reason": "invalid_token"}) from e

    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise AuthenticationError(CREDENTIALS_ERROR, details={"reason": "unknown_user"})

    return user
