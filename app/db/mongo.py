"""Document store connection (blogs live here)."""

from logging import getLogger
from typing import Any

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from app.configs import file_logger, settings
from app.errors.database import DatabaseConnectionError

logger = file_logger(getLogger(__name__))


class DocumentStore:
    """Owns the ``AsyncMongoClient`` for the process lifetime."""

    def __init__(self, uri: str | None = None, db_name: str | None = None) -> None:
        self._client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(
            uri or settings.MONGODB_URI,
            tz_aware=True,
            serverSelectionTimeoutMS=settings.UPSTREAM_TIMEOUT * 1000,
        )
        self._db_name = db_name or settings.MONGODB_DB_NAME

    def collection(self, name: str) -> AsyncCollection[dict[str, Any]]:
        return self._client[self._db_name][name]

    async def ping(self) -> None:
        """
        Check the server answers.

        Raises:
            DatabaseConnectionError: If the document store cannot be reached.
        """
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            raise DatabaseConnectionError(f"document store unreachable: {e}") from e
        logger.info(f"Connected to document store '{self._db_name}'")

    async def close(self) -> None:
        await self._client.close()
        logger.info("Document store connection closed")
