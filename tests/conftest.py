import os
import sys

import httpx
from httpx import AsyncClient
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set testing environment before the app reads it
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-boxmas")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Add the project root to the path so imports work
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.auth.passwords import get_password_hash
from app.auth.session import SessionStore
from app.auth.tokens import TokenCodec
from app.auth.users import CredentialStore
from app.database import Base, get_db
from app.models.user import User
from main import app

# Test database URL - use PostgreSQL in CI, SQLite locally
if os.getenv("CI") and os.getenv("TEST_DATABASE_URL"):
    TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")
else:
    TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "secret123"


@pytest_asyncio.fixture
async def test_db():
    """Create a test database session."""
    # Different connection args for SQLite vs PostgreSQL
    if "sqlite" in TEST_DATABASE_URL:
        connect_args = {"check_same_thread": False}
        poolclass = StaticPool
    else:
        connect_args = {}
        poolclass = None

    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=poolclass,
        connect_args=connect_args,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        await session.close()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture
async def client(test_db):
    """Create a test client with dependency override."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def codec():
    return TokenCodec(app.state.settings.jwt_secret)


@pytest.fixture
def users(test_db):
    return CredentialStore(test_db)


@pytest.fixture
def sessions(test_db):
    return SessionStore(test_db)


@pytest_asyncio.fixture
async def test_user(test_db):
    """Create a test user with a hashed password."""
    user = User(
        name="Test User",
        email="test@example.com",
        password=get_password_hash(TEST_PASSWORD),
    )

    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)

    return user


@pytest_asyncio.fixture
async def legacy_user(test_db):
    """Create a user whose password predates hashing."""
    user = User(
        name="Legacy User",
        email="legacy@example.com",
        password="plaintext-pass",
    )

    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)

    return user


@pytest_asyncio.fixture
async def auth_token(client, test_user):
    """Log the test user in over HTTP and return the bearer token."""
    response = await client.post(
        "/auth/login", json={"email": test_user.email, "password": TEST_PASSWORD}
    )
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(auth_token):
    return {"Authorization": f"Bearer {auth_token}"}

