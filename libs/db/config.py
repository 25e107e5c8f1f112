from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libs.common.config import get_settings


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine; pool tuning only applies to server databases."""
    settings = get_settings()
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo, future=True)

    return create_async_engine(
        database_url,
        echo=echo,
        future=True,
        pool_pre_ping=True,  # Test connections before using
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return build_engine(settings.DATABASE_URL)


def get_session_factory(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine or get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
