from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Any

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from collector.core.config import DatabaseConfig
from collector.db.models.event import BaseORM
from collector.db.models import site  # noqa: F401  registers the sites table


class DataBaseHelper:
    """
    Owns the engine and session factory for one process.
    Built in the application lifespan and passed to the services that need it.
    """

    def __init__(self, config: DatabaseConfig):
        engine_kwargs: Dict[str, Any] = {
            "echo": config.echo,
            "echo_pool": config.echo_pool,
        }
        # SQLite pools do not take sizing arguments
        if not config.url.startswith("sqlite"):
            engine_kwargs["pool_size"] = config.pool_size
            engine_kwargs["max_overflow"] = config.max_overflow

        self.engine: AsyncEngine = create_async_engine(url=config.url, **engine_kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )
        logger.info(f"DataBaseHelper initialized for {self.engine.url.render_as_string(hide_password=True)}")

    async def create_tables(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(BaseORM.metadata.create_all)
        logger.info("Database tables ensured.")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session, rolling back whatever is left open if the caller fails."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception as e:
                if session.in_transaction():
                    await session.rollback()
                logger.error(f"Error in database session: {e}")
                raise

    async def dispose(self):
        await self.engine.dispose()
        logger.info("Disposed database engine.")
