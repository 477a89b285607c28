from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from loguru import logger
from .base import BaseDatabaseDriver

class SQLDriver(BaseDatabaseDriver):
    """Async SQLModel engine plus the session factory used as the default context type."""

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.engine = create_async_engine(url, echo=echo, future=True, **engine_kwargs)
        self.session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def connect(self):
        """Connect to database (SQLModel engine manages connections)."""
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info(f"Database reachable: {self.engine.url.render_as_string(hide_password=True)}")

    async def disconnect(self):
        """Disconnect from database."""
        await self.engine.dispose()

    async def create_all(self):
        """Create tables for every registered SQLModel (local development and tests)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    def register_contexts(self, cache):
        cache.register(AsyncSession, self.session_factory)
