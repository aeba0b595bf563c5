"""
Pytest fixtures for testing.

Provides:
- Async database session over in-memory SQLite
- A container built from the sample default policy
- Test client with auth helpers
"""

from dataclasses import replace
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from admingate.api.dependencies.database import get_db
from admingate.core.config import (
    AuthSettings,
    CasbinSettings,
    DatabaseSettings,
    LogSettings,
    Settings,
)
from admingate.core.container import Container, build_container
from admingate.main import create_app
from admingate.models.base import Base
from admingate.models.user import User
from admingate.repositories.user import UserRepository
from admingate.services.auth import create_access_token, hash_password
from admingate.services.policy import PolicyService


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_POLICY_FILE = Path(__file__).resolve().parents[1] / "config" / "default_policy.toml"


@pytest.fixture
def default_policy_path() -> str:
    return str(DEFAULT_POLICY_FILE)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="testing",
        database=DatabaseSettings(url=TEST_DATABASE_URL),
        auth=AuthSettings(secret_key="test-secret-key"),
        casbin=CasbinSettings(default_policy=str(DEFAULT_POLICY_FILE)),
        log=LogSettings(format="text", output="stderr"),
    )


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create database session with automatic rollback.
    """
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def container(settings: Settings, db_engine) -> Container:
    """Authorization stack seeded from the sample default policy."""
    return await build_container(settings, engine=db_engine)


@pytest_asyncio.fixture
async def policy_service(db: AsyncSession, container: Container) -> PolicyService:
    return PolicyService(db, container.reload_policy)


def _client(app, db: AsyncSession) -> AsyncClient:
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture(scope="function")
async def client(container: Container, db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client with enforcement on and the database session overridden.
    """
    async with _client(create_app(container), db) as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def open_client(container: Container, db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Test client with enforcement switched off."""
    settings = container.settings.model_copy(
        update={"casbin": container.settings.casbin.model_copy(update={"enable": False})}
    )
    async with _client(create_app(replace(container, settings=settings)), db) as client:
        yield client


# ============ Factory Fixtures ============


class UserFactory:
    """Factory for creating test users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, username: str, password: str = "testpassword123") -> User:
        return await UserRepository(self.db).create(username, hash_password(password))


@pytest_asyncio.fixture
async def user_factory(db: AsyncSession) -> UserFactory:
    return UserFactory(db)


# ============ Auth Helpers ============


def get_auth_headers(user_id: int, settings: Settings) -> dict[str, str]:
    """Helper to get auth headers for any user id."""
    token = create_access_token(user_id, settings.auth)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_for(settings: Settings):
    """Build auth headers for an arbitrary user id."""
    return lambda user_id: get_auth_headers(user_id, settings)


async def _headers_with_role(
    username: str,
    role: str | None,
    user_factory: UserFactory,
    policy_service: PolicyService,
    settings: Settings,
) -> dict[str, str]:
    user = await user_factory.create(username)
    if role:
        await policy_service.assign_role(user.id, role)
        await policy_service.reload()
    return get_auth_headers(user.id, settings)


@pytest_asyncio.fixture
async def admin_headers(user_factory, policy_service, settings) -> dict[str, str]:
    return await _headers_with_role("admin-user", "admin", user_factory, policy_service, settings)


@pytest_asyncio.fixture
async def viewer_headers(user_factory, policy_service, settings) -> dict[str, str]:
    return await _headers_with_role("viewer-user", "viewer", user_factory, policy_service, settings)


@pytest_asyncio.fixture
async def roleless_headers(user_factory, policy_service, settings) -> dict[str, str]:
    return await _headers_with_role("nobody", None, user_factory, policy_service, settings)
