"""Tests for the blog collection queries."""

from datetime import UTC, datetime
from re import search as re_search
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from app.errors.database import DocumentStoreError
from app.repositories import BlogRepository
from app.repositories.blog import parse_object_ids, search_filter

BLOG_ID = "665f1c2e9b1d8a0012345678"


def collection(documents: list[dict] | None = None) -> MagicMock:
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=documents or [])
    mock = MagicMock()
    mock.find.return_value = cursor
    mock.count_documents = AsyncMock(return_value=len(documents or []))
    return mock


class TestSearchFilter:
    def test_empty_search_matches_everything(self) -> None:
        assert search_filter("") == {}

    def test_regex_metacharacters_are_escaped(self) -> None:
        clauses = search_filter("c++ (beta)?")["$or"]
        pattern = clauses[0]["title"]["$regex"]

        assert clauses[0]["title"]["$options"] == "i"
        assert re_search(pattern, "learning c++ (beta)? today")
        assert not re_search(pattern, "cc (beta)")

    def test_text_term_has_no_word_count_clause(self) -> None:
        clauses = search_filter("seo")["$or"]
        assert [next(iter(clause)) for clause in clauses] == ["title", "status"]

    def test_numeric_term_matches_word_count(self) -> None:
        clauses = search_filter("1200")["$or"]
        assert clauses[-1] == {"word_count": 1200}
        assert clauses[0]["title"]["$regex"] == "1200"


class TestParseObjectIds:
    def test_invalid_ids_are_skipped(self) -> None:
        assert parse_object_ids([BLOG_ID, "not-an-id", ""]) == [ObjectId(BLOG_ID)]


class TestBlogRepository:
    @pytest.mark.asyncio
    async def test_list_page_applies_filter_sort_and_window(self) -> None:
        blogs = collection([{"_id": ObjectId(BLOG_ID), "title": "One"}])
        repo = BlogRepository(blogs)

        records, total = await repo.list_page(
            search="one",
            sort_field="created_at",
            sort_order="desc",
            offset=20,
            limit=10,
        )

        assert records == [{"_id": BLOG_ID, "title": "One"}]
        assert total == 1
        cursor = blogs.find.return_value
        cursor.sort.assert_called_once_with("created_at", DESCENDING)
        cursor.skip.assert_called_once_with(20)
        cursor.limit.assert_called_once_with(10)
        assert blogs.count_documents.await_args.args[0] == search_filter("one")

    @pytest.mark.asyncio
    async def test_get_details_without_valid_ids_skips_query(self) -> None:
        blogs = collection()
        assert await BlogRepository(blogs).get_details(["legacy"]) == []
        blogs.find.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_failure_is_wrapped(self) -> None:
        blogs = collection()
        blogs.count_documents = AsyncMock(side_effect=PyMongoError("down"))

        with pytest.raises(DocumentStoreError):
            await BlogRepository(blogs).list_page(
                search="",
                sort_field="title",
                sort_order="asc",
                offset=0,
                limit=10,
            )

    @pytest.mark.asyncio
    async def test_list_for_user(self) -> None:
        blogs = collection([{"_id": ObjectId(BLOG_ID), "title": "One", "user_id": "u1"}])

        records, total = await BlogRepository(blogs).list_for_user("u1", offset=5, limit=5)

        assert records[0]["_id"] == BLOG_ID
        assert total == 1
        assert blogs.find.call_args.args[0] == {"user_id": "u1"}
        blogs.find.return_value.skip.assert_called_once_with(5)

    @pytest.mark.asyncio
    async def test_recent(self) -> None:
        blogs = collection([{"_id": ObjectId(BLOG_ID), "title": "One"}])

        assert await BlogRepository(blogs).recent(10) == [{"_id": BLOG_ID, "title": "One"}]
        blogs.find.return_value.sort.assert_called_once_with("created_at", DESCENDING)
        blogs.find.return_value.limit.assert_called_once_with(10)

    @pytest.mark.asyncio
    async def test_created_counts_groups_in_zone(self) -> None:
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[{"_id": "2025-01", "count": 4}, {"_id": None, "count": 1}])
        blogs = collection()
        blogs.aggregate = AsyncMock(return_value=cursor)
        start, end = datetime(2024, 12, 31, 18, 30, tzinfo=UTC), datetime(2025, 1, 31, 18, 29, tzinfo=UTC)

        counts = await BlogRepository(blogs).created_counts(start, end, date_format="%Y-%m", timezone="Asia/Kolkata")

        assert counts == {"2025-01": 4}
        match, group = blogs.aggregate.await_args.args[0]
        assert match == {"$match": {"created_at": {"$gte": start, "$lte": end}}}
        assert group["$group"]["_id"]["$dateToString"] == {
            "format": "%Y-%m",
            "date": "$created_at",
            "timezone": "Asia/Kolkata",
        }

    @pytest.mark.asyncio
    async def test_edit_returns_counts(self) -> None:
        blogs = collection()
        blogs.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=0))

        assert await BlogRepository(blogs).edit(ObjectId(BLOG_ID), {"title": "Same"}) == (1, 0)
        assert blogs.update_one.await_args.args == ({"_id": ObjectId(BLOG_ID)}, {"$set": {"title": "Same"}})

    @pytest.mark.asyncio
    async def test_edit_failure_is_wrapped(self) -> None:
        blogs = collection()
        blogs.update_one = AsyncMock(side_effect=PyMongoError("down"))

        with pytest.raises(DocumentStoreError):
            await BlogRepository(blogs).edit(ObjectId(BLOG_ID), {"title": "x"})
