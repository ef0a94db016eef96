"""Async engine and session factory for the event store."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from metrics_service.config import get_settings

_ASYNC_DRIVERS = {
    "sqlite:///": "sqlite+aiosqlite:///",
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
}


def to_async_url(url: str) -> str:
    """Swap a plain SQLAlchemy URL for its asyncio driver; async URLs pass through."""
    for prefix, replacement in _ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return url.replace(prefix, replacement, 1)
    return url


def build_engine(url: str) -> AsyncEngine:
    async_url = to_async_url(url)
    options: dict = {"echo": False}
    if not async_url.startswith("sqlite"):
        # Pooled server connections can go stale between sweeps.
        options["pool_pre_ping"] = True
    return create_async_engine(async_url, **options)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(get_settings().database_url)
async_session_factory = build_session_factory(engine)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an async DB session per request.

    Repositories commit their own writes; the closing commit only settles
    whatever the request read.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
