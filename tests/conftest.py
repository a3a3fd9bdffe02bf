from datetime import datetime, timezone
from typing import AsyncGenerator, Optional
import uuid

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.api.deps import get_db
from app.core.categories import DEFAULT_CATEGORIES
from app.core.security import create_access_token, hash_password
from app.models.user import User
from app.models.category import Category
from app.models.transaction import Transaction
from app.models.enums import TransactionType


# Use SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "secret123"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    # SQLite only enforces foreign keys when asked to
    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session_maker() as session:
        yield session


async def make_user(session: AsyncSession, name: str, email: str) -> User:
    user = User(
        id=str(uuid.uuid4()),
        name=name,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
    )
    session.add(user)
    await session.flush()
    for data in DEFAULT_CATEGORIES:
        session.add(Category(user_id=user.id, **data))
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def test_user(test_session: AsyncSession) -> User:
    """Create a test user with the default categories."""
    return await make_user(test_session, "Alice", "alice@example.com")


@pytest_asyncio.fixture(scope="function")
async def other_user(test_session: AsyncSession) -> User:
    """A second account whose data must stay invisible to test_user."""
    return await make_user(test_session, "Bob", "bob@example.com")


@pytest_asyncio.fixture(scope="function")
async def auth_headers(test_user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}


@pytest_asyncio.fixture(scope="function")
async def other_auth_headers(other_user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}


@pytest_asyncio.fixture(scope="function")
async def category_of(test_session: AsyncSession):
    """Look up one of a user's categories by name."""

    async def lookup(user: User, name: str) -> Category:
        result = await test_session.execute(
            select(Category).where(Category.user_id == user.id, Category.name == name)
        )
        return result.scalar_one()

    return lookup


@pytest_asyncio.fixture(scope="function")
async def add_transaction(test_session: AsyncSession):
    """Insert a transaction directly, bypassing the API."""

    async def insert(
        user: User,
        category: Category,
        amount: float,
        type: TransactionType = TransactionType.EXPENSE,
        date: Optional[datetime] = None,
        description: Optional[str] = None,
    ) -> Transaction:
        transaction = Transaction(
            user_id=user.id,
            category_id=category.id,
            amount=amount,
            type=type.value,
            date=date or datetime.now(timezone.utc),
            description=description,
        )
        test_session.add(transaction)
        await test_session.commit()
        await test_session.refresh(transaction)
        return transaction

    return insert


@pytest_asyncio.fixture(scope="function")
async def client(test_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client sharing the test session."""

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
