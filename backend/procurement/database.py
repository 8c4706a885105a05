"""Procurement Database Configuration

SQLAlchemy async setup. SQLite is the default store; any async URL
(e.g. postgresql+asyncpg) can be configured through DATABASE_URL.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from procurement.config import settings, get_data_dir
import logging

logger = logging.getLogger(__name__)

SQLITE_PREFIX = "sqlite+aiosqlite:///"


def get_database_url() -> str:
    """Get the database URL with absolute path"""
    db_url = settings.DATABASE_URL

    if db_url.startswith(SQLITE_PREFIX) and ":memory:" not in db_url:
        # Relative SQLite paths live in the package data directory
        relative_path = db_url.replace(SQLITE_PREFIX, "")
        if not relative_path.startswith("/"):
            absolute_path = get_data_dir() / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"{SQLITE_PREFIX}{absolute_path}"

    return db_url


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every SQLite connection.

    SQLite ignores ON DELETE RESTRICT / SET NULL / CASCADE unless the
    pragma is set per connection.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """Create async database engine"""
    db_url = url or get_database_url()
    logger.info(f"Using procurement database: {db_url}")

    if db_url.startswith("sqlite"):
        kwargs.setdefault("poolclass", NullPool)
        kwargs.setdefault("connect_args", {"check_same_thread": False})

    engine = create_async_engine(db_url, echo=settings.DEBUG, **kwargs)
    enable_sqlite_foreign_keys(engine)
    return engine


engine = create_engine()
async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base class for all procurement models"""
    pass


async def get_db() -> AsyncSession:
    """Dependency for getting database sessions"""
    async with async_session_maker() as session:
        yield session


async def init_db(bind: AsyncEngine | None = None):
    """Initialize database tables"""
    import procurement.models  # noqa: F401  registers mappers

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Procurement database initialized")


async def drop_all(bind: AsyncEngine | None = None):
    """Drop all tables (useful for testing)"""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        logger.info("All procurement tables dropped")
