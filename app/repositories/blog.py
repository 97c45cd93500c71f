"""Blog repository over the document store."""

from collections.abc import Collection
from datetime import datetime
from re import escape
from typing import Any, Literal

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from app.errors.database import DocumentStoreError
from app.repositories.base import Record

BLOGS_COLLECTION = "blogs"

# Fields returned by the blog listing
BLOG_LIST_PROJECTION = {
    "_id": 1,
    "title": 1,
    "project_id": 1,
    "word_count": 1,
    "created_at": 1,
    "updated_at": 1,
    "user_id": 1,
    "status": 1,
    "is_active": 1,
}
BLOG_DETAIL_PROJECTION = {"_id": 1, "title": 1, "status": 1, "word_count": 1}

AGGREGATION_TIMEOUT_MS = 30000

BLOG_SORT_FIELDS = ("title", "created_at", "updated_at", "word_count", "status", "is_active")
DEFAULT_BLOG_SORT = "created_at"


def to_record(document: dict[str, Any]) -> Record:
    """Render top-level ``ObjectId`` values as strings so the record serializes to JSON."""
    return {key: str(value) if isinstance(value, ObjectId) else value for key, value in document.items()}


def parse_object_ids(ids: Collection[str]) -> list[ObjectId]:
    """Convert the valid ids to ``ObjectId`` and silently skip the rest."""
    return [ObjectId(value) for value in ids if ObjectId.is_valid(value)]


def search_filter(search: str) -> dict[str, Any]:
    """
    Build the free-text filter for the blog listing.

    Title and status match as case-insensitive substrings; a purely numeric
    term also matches ``word_count`` exactly.
    """
    if not search:
        return {}
    pattern = {"$regex": escape(search), "$options": "i"}
    clauses: list[dict[str, Any]] = [{"title": pattern}, {"status": pattern}]
    if search.lstrip("-").isdigit():
        clauses.append({"word_count": int(search)})
    return {"$or": clauses}


class BlogRepository:
    """Reads and soft-delete state transitions on the ``blogs`` collection."""

    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self.collection = collection

    async def list_page(
        self,
        *,
        search: str,
        sort_field: str,
        sort_order: Literal["asc", "desc"],
        offset: int,
        limit: int,
    ) -> tuple[list[Record], int]:
        """
        Get one page of blogs (active and deleted) and the total match count.

        Raises:
            DocumentStoreError: If the document store query fails
        """
        query = search_filter(search)
        direction = ASCENDING if sort_order == "asc" else DESCENDING
        try:
            total = await self.collection.count_documents(query)
            cursor = (
                self.collection.find(query, projection=BLOG_LIST_PROJECTION)
                .sort(sort_field, direction)
                .skip(offset)
                .limit(limit)
            )
            documents = await cursor.to_list()
        except PyMongoError as e:
            raise DocumentStoreError(f"blog listing failed: {e}") from e
        return [to_record(document) for document in documents], total

    async def get(self, blog_id: ObjectId) -> Record | None:
        try:
            document = await self.collection.find_one({"_id": blog_id})
        except PyMongoError as e:
            raise DocumentStoreError(f"blog lookup failed: {e}") from e
        return to_record(document) if document else None

    async def get_details(self, ids: Collection[str]) -> list[Record]:
        """Fetch ``title, status, word_count`` for every valid id with one ``$in`` query."""
        object_ids = parse_object_ids(ids)
        if not object_ids:
            return []
        try:
            cursor = self.collection.find(
                {"_id": {"$in": object_ids}},
                projection=BLOG_DETAIL_PROJECTION,
            )
            documents = await cursor.to_list()
        except PyMongoError as e:
            raise DocumentStoreError(f"blog batch lookup failed: {e}") from e
        return [to_record(document) for document in documents]

    async def soft_delete(self, blog_id: ObjectId, *, deleted_by: str, deleted_at: datetime) -> int:
        """Mark an active blog inactive; returns the modified count."""
        return await self._update(
            {"_id": blog_id, "is_active": {"$ne": False}},
            {
                "$set": {
                    "is_active": False,
                    "deleted_at": deleted_at,
                    "deleted_by": deleted_by,
                    "updated_at": deleted_at,
                },
            },
        )

    async def restore(self, blog_id: ObjectId, *, restored_by: str, restored_at: datetime) -> int:
        """Reactivate a deleted blog and clear its deletion markers."""
        return await self._update(
            {"_id": blog_id, "is_active": False},
            {
                "$set": {
                    "is_active": True,
                    "restored_at": restored_at,
                    "restored_by": restored_by,
                    "updated_at": restored_at,
                },
                "$unset": {"deleted_at": "", "deleted_by": ""},
            },
        )

    async def edit(self, blog_id: ObjectId, fields: dict[str, Any]) -> tuple[int, int]:
        """Set ``fields`` on a blog; returns the matched and modified counts."""
        try:
            result = await self.collection.update_one({"_id": blog_id}, {"$set": fields})
        except PyMongoError as e:
            raise DocumentStoreError(f"blog edit failed: {e}") from e
        return result.matched_count, result.modified_count

    async def _update(self, query: dict[str, Any], update: dict[str, Any]) -> int:
        try:
            result = await self.collection.update_one(query, update)
        except PyMongoError as e:
            raise DocumentStoreError(f"blog update failed: {e}") from e
        return result.modified_count

    async def list_for_user(self, user_id: str, *, offset: int, limit: int) -> tuple[list[Record], int]:
        """One page of a user's blogs, newest first, and their total."""
        query = {"user_id": user_id}
        try:
            total = await self.collection.count_documents(query)
            cursor = (
                self.collection.find(query, projection=BLOG_LIST_PROJECTION)
                .sort("created_at", DESCENDING)
                .skip(offset)
                .limit(limit)
            )
            documents = await cursor.to_list()
        except PyMongoError as e:
            raise DocumentStoreError(f"user blog listing failed: {e}") from e
        return [to_record(document) for document in documents], total

    async def recent(self, limit: int) -> list[Record]:
        try:
            cursor = (
                self.collection.find({}, projection=BLOG_LIST_PROJECTION)
                .sort("created_at", DESCENDING)
                .limit(limit)
            )
            documents = await cursor.to_list()
        except PyMongoError as e:
            raise DocumentStoreError(f"recent blogs lookup failed: {e}") from e
        return [to_record(document) for document in documents]

    async def count_created(self) -> int:
        """Count every blog that has a ``created_at``."""
        try:
            return await self.collection.count_documents({"created_at": {"$exists": True}})
        except PyMongoError as e:
            raise DocumentStoreError(f"blog count failed: {e}") from e

    async def created_counts(
        self,
        start: datetime,
        end: datetime,
        *,
        date_format: str,
        timezone: str,
    ) -> dict[str, int]:
        """
        Count blogs created in ``[start, end]`` per period.

        Args:
            start: Inclusive lower bound (aware UTC)
            end: Inclusive upper bound (aware UTC)
            date_format: ``$dateToString`` format naming the period, e.g. ``%Y-%m``
            timezone: IANA zone the periods are cut in

        Returns:
            dict[str, int]: Period key to number of blogs
        """
        pipeline: list[dict[str, Any]] = [
            {"$match": {"created_at": {"$gte": start, "$lte": end}}},
            {
                "$group": {
                    "_id": {"$dateToString": {"format": date_format, "date": "$created_at", "timezone": timezone}},
                    "count": {"$sum": 1},
                },
            },
        ]
        try:
            cursor = await self.collection.aggregate(pipeline, maxTimeMS=AGGREGATION_TIMEOUT_MS, allowDiskUse=True)
            groups = await cursor.to_list()
        except PyMongoError as e:
            raise DocumentStoreError(f"blog growth aggregation failed: {e}") from e
        return {str(group["_id"]): int(group["count"]) for group in groups if group.get("_id")}
