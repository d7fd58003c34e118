from functools import lru_cache
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.config import get_settings

@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    if settings.database_url.startswith("sqlite"):
        # aiosqlite connections must not outlive the event loop that opened them
        return create_async_engine(settings.database_url, echo=False, poolclass=NullPool)
    return create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    engine = get_engine()
    return async_sessionmaker(bind=engine, expire_on_commit=False)
