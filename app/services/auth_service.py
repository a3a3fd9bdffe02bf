import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.categories import DEFAULT_CATEGORIES
from app.core.exceptions import AuthenticationError, BusinessRuleError
from app.core.security import create_access_token, hash_password, verify_password
from app.db.repositories.category_repo import CategoryRepository
from app.db.repositories.user_repo import UserRepository
from app.schemas.auth import AuthPayload, UserResponse, ProfileResponse, UserCounts
from app.models.user import User

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.category_repo = CategoryRepository(db)

    async def register(self, name: str, email: str, password: str) -> AuthPayload:
        """Create an account with the starter categories and sign it in.

        Raises:
            BusinessRuleError: If the email is already registered
        """
        if await self.user_repo.email_exists(email):
            raise BusinessRuleError("This email is already in use.")

        user = await self.user_repo.create(
            name=name,
            email=email,
            password_hash=hash_password(password),
        )
        await self.category_repo.create_many(user.id, DEFAULT_CATEGORIES)

        logger.info(f"Registered user {user.id} with {len(DEFAULT_CATEGORIES)} default categories")

        return AuthPayload(
            user=UserResponse.model_validate(user),
            token=create_access_token(user.id),
        )

    async def login(self, email: str, password: str) -> AuthPayload:
        """Check credentials and issue a token.

        Unknown email and wrong password produce the same error.
        """
        user = await self.user_repo.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise AuthenticationError("Incorrect email or password")

        return AuthPayload(
            user=UserResponse.model_validate(user),
            token=create_access_token(user.id),
        )

    async def get_profile(self, user: User) -> ProfileResponse:
        counts = await self.user_repo.get_counts(user.id)
        return ProfileResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            created_at=user.created_at,
            counts=UserCounts(**counts),
        )
