import inspect
import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker,
                                    create_async_engine)
from sqlalchemy.orm import DeclarativeBase

from certportal.infrastructure.config.settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

AFTER_COMMIT_KEY = "after_commit"


def _engine_options(database_url: str) -> dict:
    if "postgresql" not in database_url:
        return {}
    return {
        "pool_size": 20,
        "max_overflow": 30,
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {"jit": "off"},
            "command_timeout": 60,
        },
    }


# Create engine once at module level (not with lru_cache)
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
    query_cache_size=1200,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


class Base(DeclarativeBase):
    """Base class for all database models"""

    pass


async def get_db():
    """
    Database session dependency for read operations.
    Does not commit - read-only operations don't need commits.
    Write operations should use get_db_transactional().
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_db_transactional():
    """
    Database session dependency for write operations with automatic transaction management.
    - Begins transaction automatically
    - Commits on success
    - Rolls back on exception
    - Closes session automatically

    - Runs after-commit callbacks once the commit succeeded

    Use this for POST, PUT, PATCH, DELETE endpoints.
    """
    async with transaction() as session:
        yield session


@asynccontextmanager
async def transaction(session_factory: async_sessionmaker = AsyncSessionLocal):
    """
    Unit of work: commit on success, roll back on error.

    Callbacks registered with ``after_commit`` run only after the commit
    succeeded and are dropped on rollback.
    """
    async with session_factory() as session:
        try:
            async with session.begin():
                yield session
        except Exception:
            session.info.pop(AFTER_COMMIT_KEY, None)
            await session.rollback()
            raise
        await _run_after_commit(session)


def after_commit(session: AsyncSession, callback: Callable[[], Awaitable[None] | None]) -> None:
    """Defer a side effect until the session's transaction has committed"""
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)


async def _run_after_commit(session: AsyncSession) -> None:
    for callback in session.info.pop(AFTER_COMMIT_KEY, []):
        try:
            result = callback()
            if inspect.isawaitable(result):
                await result
        except Exception:
            # The commit already stands
            logger.exception("After-commit callback failed")


async def create_tables() -> None:
    """Create all tables. Used for local development and tests."""
    from certportal.infrastructure.persistence import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
