"""
Database engine and session management.

The engine is built by the lifecycle and owned by the container; nothing
here is created at import time.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from admingate.core.config import DatabaseSettings


def build_engine(cfg: DatabaseSettings) -> AsyncEngine:
    """Create the async engine with a bounded connection pool."""
    kwargs = {"echo": cfg.echo}
    # SQLite drivers use single-connection pools that reject sizing args
    if not cfg.url.startswith("sqlite"):
        kwargs.update(
            pool_size=cfg.pool_size,
            max_overflow=cfg.pool_overflow,
            pool_timeout=cfg.pool_timeout,
            pool_pre_ping=True,
        )
    return create_async_engine(cfg.url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet."""
    from . import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
