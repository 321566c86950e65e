"""Async SQLAlchemy engine and session factory for the booking database."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from dtbooking.config import settings

# Seconds a SQLite writer waits for the lock held by a concurrent accept
_SQLITE_BUSY_TIMEOUT = 30


def create_db_engine(url: str | None = None) -> AsyncEngine:
    """Postgres gets a connection pool; SQLite gets a longer busy timeout."""
    db_url = url or settings.effective_database_url
    if db_url.startswith("sqlite"):
        return create_async_engine(db_url, echo=False, connect_args={"timeout": _SQLITE_BUSY_TIMEOUT})
    return create_async_engine(db_url, echo=False, pool_size=10, max_overflow=20, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
