from __future__ import annotations

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hotfeed.core.settings import settings

@lru_cache
def get_async_engine():
    """Returns a cached instance of the async engine."""
    return create_async_engine(settings.database_url, echo=settings.db_echo, pool_pre_ping=True)

@lru_cache
def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=get_async_engine(), autoflush=False, expire_on_commit=False, class_=AsyncSession)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    # One session per request; services commit explicitly.
    factory = get_async_session_factory()
    async with factory() as session:
        yield session
