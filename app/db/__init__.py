"""Core application modules."""

from app.db.database import (
    async_session_maker,
    close_db,
    engine,
    get_monitoring_session,
    get_session,
    init_db,
    monitoring_engine,
    monitoring_session_maker,
    transaction,
)
from app.db.mongo import DocumentStore

__all__ = [
    "DocumentStore",
    "async_session_maker",
    "close_db",
    "engine",
    "get_monitoring_session",
    "get_session",
    "init_db",
    "monitoring_engine",
    "monitoring_session_maker",
    "transaction",
]
