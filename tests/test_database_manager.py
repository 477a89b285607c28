"""Database manager wiring test cases."""
import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from apps.identity.models import Tenant
from apps.identity.repository import TenantRepository
from datarepo.config import Settings
from datarepo.context.cache import ContextCache
from datarepo.context.scope import Scope
from datarepo.database.manager import DatabaseManager


@pytest.fixture
async def manager():
    manager = DatabaseManager(Settings(DATABASE_URL_OVERRIDE="sqlite+aiosqlite:///:memory:"))
    yield manager
    await manager.sql.disconnect()


def test_database_url_defaults_to_mysql():
    settings = Settings(DB_USER="app", DB_PASSWORD="p@ss", DB_HOST="db", DB_NAME="main")
    assert settings.DATABASE_URL == "mysql+aiomysql://app:p%40ss@db:3306/main"


def test_database_url_override():
    settings = Settings(DATABASE_URL_OVERRIDE="sqlite+aiosqlite:///./local.db")
    assert settings.DATABASE_URL == "sqlite+aiosqlite:///./local.db"


async def test_registered_contexts_are_sessions(manager: DatabaseManager):
    cache = manager.register_contexts(ContextCache())

    async with Scope() as scope:
        context = cache.get_context(AsyncSession, scope)
        assert isinstance(context, AsyncSession)
        assert context.bind is manager.sql.engine


async def test_repository_over_manager_contexts(manager: DatabaseManager):
    await manager.sql.connect()
    await manager.sql.create_all()
    cache = manager.register_contexts(ContextCache())

    async with Scope() as scope:
        repo = TenantRepository(scope, cache=cache)
        tenant = await repo.create(Tenant(name="wired"))
        assert tenant.id is not None
        assert await repo.count() == 1
