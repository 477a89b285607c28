"""Test config and shared fixtures."""
import os
import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Log to stdout only; must be set before settings are loaded
os.environ.setdefault("LOG_TO_FILES", "false")

from main import app
from apps.identity.models import Tenant, User
from datarepo.context.cache import ContextCache, context_cache
from datarepo.context.scope import Scope


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with every entity set created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def cache(session_factory) -> ContextCache:
    """Context cache building AsyncSession contexts against the test database."""
    cache = ContextCache()
    cache.register(AsyncSession, session_factory)
    return cache


@pytest.fixture
async def scope() -> AsyncGenerator[Scope, None]:
    async with Scope() as scope:
        yield scope


@pytest.fixture
async def async_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Independent session for seeding and verification."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def sample_tenant(async_session: AsyncSession) -> Tenant:
    """Create sample tenant."""
    tenant = Tenant(name="acme", description="Acme Corp")
    async_session.add(tenant)
    await async_session.commit()
    await async_session.refresh(tenant)
    return tenant


@pytest.fixture
async def sample_user(async_session: AsyncSession, sample_tenant: Tenant) -> User:
    """Create sample user."""
    user = User(
        username="test_user",
        email="test_user@acme.test",
        tenant_id=sample_tenant.id,
        role="admin"
    )
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Test client whose request scopes resolve contexts against the test database."""
    context_cache.register(AsyncSession, session_factory)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    context_cache.unregister(AsyncSession)
