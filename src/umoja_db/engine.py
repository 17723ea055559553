"""Async SQLAlchemy engine and session factory builders.

Engines are built explicitly by the process entry point (the FastAPI
lifespan or a console script) and passed to whoever needs them.  Nothing
here is cached at module level.  Call ``dispose_engine()`` during graceful
shutdown.
"""

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Connection pool tuning: overridable via PG_POOL_SIZE / PG_MAX_OVERFLOW
# env vars so operators can scale the pool without code changes.
_POOL_SIZE = int(os.getenv("PG_POOL_SIZE", "5"))
_MAX_OVERFLOW = int(os.getenv("PG_MAX_OVERFLOW", "10"))


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with the configured pool size."""
    return create_async_engine(
        url,
        echo=echo,
        pool_size=_POOL_SIZE,
        max_overflow=_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return an ``AsyncSession`` factory bound to *engine*."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def dispose_engine(engine: AsyncEngine | None) -> None:
    """Dispose the engine's connection pool (call on shutdown)."""
    if engine is not None:
        await engine.dispose()
