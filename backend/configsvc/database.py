"""Database engine, session factory, and declarative base.

The engine (and its connection pool) is shared by every request.  Each
orchestrator operation opens its own session from ``async_session`` and
commits before returning, see ``configsvc.repositories.configuration``.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from configsvc.config import settings


def build_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """Create an async engine; pool options only apply to pooled dialects."""
    url = url or settings.sqlalchemy_url
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_size", settings.db_pool_size)
        kwargs.setdefault("max_overflow", settings.db_max_overflow)
    return create_async_engine(url, echo=settings.debug, **kwargs)


engine = build_engine()

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Configuration tables."""
    pass


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create any missing tables (idempotent)."""
    from configsvc import models  # noqa: F401  register tables on Base.metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
