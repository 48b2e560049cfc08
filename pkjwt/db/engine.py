"""Async SQLAlchemy engine and session management."""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pkjwt.core.settings import DatabaseSettings
from pkjwt.db.base import BaseEntity


class _EngineHolder:
    """Lazy singleton for the engine and its async session factory."""

    engine: AsyncEngine | None = None
    factory: async_sessionmaker[AsyncSession] | None = None


_holder = _EngineHolder()


def _get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazily create the async session factory."""
    if _holder.factory is None:
        db = DatabaseSettings()
        _holder.engine = create_async_engine(db.url, echo=db.echo)
        _holder.factory = async_sessionmaker(
            _holder.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _holder.factory


async def init_db() -> None:
    """Create the session store tables if they do not exist."""
    _get_session_factory()
    assert _holder.engine is not None
    async with _holder.engine.begin() as conn:
        await conn.run_sync(BaseEntity.metadata.create_all)


async def dispose_db() -> None:
    """Close pooled connections and forget the engine."""
    if _holder.engine is not None:
        await _holder.engine.dispose()
    _holder.engine = None
    _holder.factory = None


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async database session."""
    factory = _get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
