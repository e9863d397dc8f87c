"""
Async engine and session lifecycle for PostgreSQL.

One ``Database`` per process: the API holds the global ``db``, while the
sync CLI and Prefect tasks open their own and dispose of it when done.

Responsibility: Own the async engine and hand out transactional sessions
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker
)
from sqlalchemy.pool import NullPool
import logging

from ..config import settings

logger = logging.getLogger(__name__)


def _pool_options() -> Dict[str, Any]:
    if settings.db.use_null_pool:
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.db.pool_size,
        "max_overflow": settings.db.max_overflow,
        "pool_timeout": settings.db.pool_timeout,
        "pool_recycle": settings.db.pool_recycle,
        "pool_pre_ping": True,
    }


class Database:
    """
    Engine holder with a commit-or-rollback session context.

    Example:
        database = Database()
        await database.initialize()
        async with database.session() as session:
            await BillRepository(session).upsert(bill)
        await database.close()
    """

    def __init__(self):
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_initialized(self) -> bool:
        return self.session_factory is not None

    async def initialize(self) -> None:
        if self.is_initialized:
            logger.warning("Database already initialized")
            return

        pool = _pool_options()
        self.engine = create_async_engine(
            settings.db.connection_string,
            echo=settings.db.echo,
            echo_pool=settings.db.echo_pool,
            **pool
        )
        # Objects stay readable after commit; repositories flush explicitly
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        pool_name = "NullPool" if "poolclass" in pool else f"pool size {settings.db.pool_size}"
        logger.info(f"Database engine ready ({pool_name})")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session scoped to one unit of work.

        Commits when the block exits cleanly and rolls back when it raises.

        Raises:
            RuntimeError: If ``initialize`` has not run
        """
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self.session_factory()
        try:
            yield session
            if session.in_transaction():
                await session.commit()
        except Exception as e:
            logger.error(f"Rolling back session: {e}")
            await session.rollback()
            raise
        finally:
            await session.close()

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self.session_factory = None


db = Database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with db.session() as session:
        yield session
