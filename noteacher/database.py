"""
Async engine, session factory and the request-scoped session dependency.

PostgreSQL (asyncpg) in production, SQLite (aiosqlite) for local runs and
tests. The ledger upserts in the progress store rely on ON CONFLICT, which
both dialects support.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from noteacher.config import get_settings
from noteacher.logging_config import get_logger

settings = get_settings()
logger = get_logger(__name__)

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # One connection per session; a shared connection breaks concurrent commits
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": NullPool,
        }
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
    }


def _apply_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    for pragma in SQLITE_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for a database URL."""
    new_engine = create_async_engine(url, echo=echo, **_engine_options(url))
    if new_engine.dialect.name == "sqlite":
        event.listen(new_engine.sync_engine, "connect", _apply_sqlite_pragmas)
    return new_engine


engine = build_engine(settings.database_url, echo=settings.debug)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; committed on success, rolled back on error."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create any missing tables."""
    # Importing the models package registers every table on Base.metadata
    from noteacher.kernel.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping_db() -> bool:
    """True when the database answers a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database ping failed", extra={"error": str(exc)})
        return False
    return True


async def close_db() -> None:
    await engine.dispose()
