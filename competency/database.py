"""
Database engine and session management.

SQLite (tests, local runs) and PostgreSQL (deployment) share one async
session factory. Batch scoring relies on SAVEPOINTs so a failing milestone or
cohort metric rolls back alone; pysqlite only honours those when SQLAlchemy
owns the BEGIN, which configure_sqlite_engine arranges.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from competency.config import get_settings

settings = get_settings()

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)


def configure_sqlite_engine(engine: AsyncEngine) -> None:
    """Apply pragmas and hand transaction control to SQLAlchemy."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_conn, connection_record):
        # Stop the driver issuing its own BEGIN so nested transactions work
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    """Engine for `url`; SQLite gets a connection per session, PostgreSQL a pool."""
    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )
        configure_sqlite_engine(engine)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


engine = create_engine_for(settings.database_url, echo=settings.debug)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields a request-scoped session, committing on success."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables and, when enabled, seed the milestone catalog."""
    from competency.engines.milestones.catalog import seed_milestones
    from competency.kernel.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.seed_milestones_on_startup:
        async with async_session_maker() as session:
            await seed_milestones(session)
            await session.commit()


async def close_db() -> None:
    await engine.dispose()
