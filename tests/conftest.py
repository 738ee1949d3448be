"""Pytest configuration and shared fixtures for API tests."""

import os
from datetime import datetime, timezone

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test DB and settings before app imports so config/engine use them
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_daily_check.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SMS_PROVIDER", "log")
os.environ.setdefault("APP_ENV", "test")

from daily_check.core.auth import create_session_token, hash_password
from daily_check.db.base import Base
from daily_check.db.session import async_session_maker, engine
from daily_check.main import app
from daily_check.models.user import User
from daily_check.models.verification_request import VerificationRequest

pytest_plugins = ["pytest_asyncio"]

TEST_PHONE = "+821012345678"
TEST_PASSWORD = "password123"


@pytest_asyncio.fixture
async def clean_db():
    """Recreate all tables so the test starts from an empty database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest_asyncio.fixture
async def client(clean_db):
    """AsyncClient against the app (no lifespan: no scheduler, no SMS provider client)."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


async def create_user(
    phone_number: str = TEST_PHONE,
    password: str = TEST_PASSWORD,
    name: str = "Test Parent",
    email: str | None = None,
) -> User:
    async with async_session_maker() as session:
        user = User(
            phone_number=phone_number,
            email=email,
            name=name,
            password_hash=hash_password(password),
            is_phone_verified=True,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


async def add_verification(
    phone_number: str = TEST_PHONE,
    request_id: str = "req-1",
    code: str = "123456",
    created_at: datetime | None = None,
    attempts: int = 0,
    verified: bool = False,
) -> None:
    async with async_session_maker() as session:
        session.add(
            VerificationRequest(
                request_id=request_id,
                phone_number=phone_number,
                code=code,
                created_at=created_at or datetime.now(timezone.utc),
                attempts=attempts,
                verified=verified,
            )
        )
        await session.commit()


@pytest_asyncio.fixture
async def test_user(client):
    """Create a user via DB (committed) and return (user_id, phone_number, session token)."""
    user = await create_user()
    return user.id, user.phone_number, create_session_token(user)


@pytest_asyncio.fixture
def auth_headers(test_user):
    """Return dict of Authorization header for test_user."""
    _, __, token = test_user
    return {"Authorization": f"Bearer {token}"}
