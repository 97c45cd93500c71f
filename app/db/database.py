"""Database engine and session management for the main and monitoring stores."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from logging import getLogger

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from app.configs import file_logger, pool_kwargs, settings
from app.errors.database import DatabaseConnectionError

logger = file_logger(getLogger(__name__))

STATEMENT_TIMEOUT_MS = 30000


def _configure_engine_events(engine: AsyncEngine) -> None:
    """Configure connection pool events for monitoring."""

    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection: object, connection_record: object) -> None:
        logger.debug(f"New connection established ({engine.url.database})")

    @event.listens_for(engine.sync_engine, "checkout")
    def on_checkout(
        dbapi_connection: object,
        connection_record: object,
        connection_proxy: object,
    ) -> None:
        logger.debug("Connection checked out from pool")


def _create_engine(url: str) -> AsyncEngine:
    engine = create_async_engine(
        url,
        **pool_kwargs(),
        connect_args={
            "command_timeout": STATEMENT_TIMEOUT_MS / 1000,
            "server_settings": {"statement_timeout": str(STATEMENT_TIMEOUT_MS)},
        },
    )
    if settings.DEBUG:
        _configure_engine_events(engine)
    return engine


def _session_maker(engine: AsyncEngine) -> async_sessionmaker[SQLModelAsyncSession]:
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine: AsyncEngine = _create_engine(settings.DATABASE_URL)
monitoring_engine: AsyncEngine = _create_engine(settings.MONITORING_DATABASE_URL)

async_session_maker = _session_maker(engine)
monitoring_session_maker = _session_maker(monitoring_engine)


@asynccontextmanager
async def transaction(
    maker: async_sessionmaker[SQLModelAsyncSession] = async_session_maker,
) -> AsyncGenerator[AsyncSession]:
    """
    Context manager for explicit transaction management.

    Commits on successful exit, rolls back on exception.

    Yields:
        AsyncSession: Database session within a transaction
    """
    async with maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Transaction error")
            raise


async def get_session() -> AsyncGenerator[AsyncSession]:
    """
    Dependency for sessions on the main store (projects, images).

    Yields:
        AsyncSession: Database session
    """
    async with transaction(async_session_maker) as session:
        yield session


async def get_monitoring_session() -> AsyncGenerator[AsyncSession]:
    """
    Dependency for sessions on the monitoring store (logs, crawl tables).

    Yields:
        AsyncSession: Database session
    """
    async with transaction(monitoring_session_maker) as session:
        yield session


async def init_db() -> None:
    """
    Verify both stores are reachable.

    Schemas are owned elsewhere, so nothing is created here.

    Raises:
        DatabaseConnectionError: If a store cannot be reached.
    """
    for name, target in (("main", engine), ("monitoring", monitoring_engine)):
        try:
            async with target.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseConnectionError(f"{name} database unreachable: {e}") from e
        logger.info(f"Connected to {name} database")


async def close_db() -> None:
    """Close database connections on application shutdown."""
    await engine.dispose()
    await monitoring_engine.dispose()
    logger.info("Database connections closed")
