"""Tests for foreign-key resolution and the join of listed records."""

from asyncio import sleep
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.errors import DatabaseError, UpstreamError
from app.schemas.details import UNKNOWN_PROJECT, UNKNOWN_USER, ProjectDetails, UserDetails
from app.services.enrichment import Lookups, Resolver, collect_ids, filter_records, join

PROJECTS = {
    "p1": {"id": "p1", "name": "Acme Blog", "url": "https://acme.example", "user_id": "u1"},
    "p2": {"id": "p2", "name": "Beta Docs", "url": "https://beta.example", "user_id": "u2"},
}
USERS = {
    "u1": {"id": "u1", "email": "jane@acme.example", "user_metadata": {"full_name": "Jane Doe"}},
    "u2": {"id": "u2", "email": "bob@beta.example", "user_metadata": {"name": "Bob"}},
}


async def fake_get_user(user_id: str) -> dict | None:
    return USERS.get(user_id)


async def fake_project_details(ids: list[str]) -> list[dict]:
    return [PROJECTS[project_id] for project_id in ids if project_id in PROJECTS]


@pytest.fixture
def identity() -> MagicMock:
    identity = MagicMock()
    identity.get_user = AsyncMock(side_effect=fake_get_user)
    return identity


@pytest.fixture
def projects() -> MagicMock:
    repo = MagicMock()
    repo.get_details = AsyncMock(side_effect=fake_project_details)
    return repo


@pytest.fixture
def blogs() -> MagicMock:
    repo = MagicMock()
    repo.get_details = AsyncMock(
        return_value=[{"_id": "b1", "title": ["Draft", "Final Title"], "status": "published", "word_count": 900}],
    )
    return repo


class TestCollectIds:
    def test_distinct_in_first_seen_order(self) -> None:
        records = [{"project_id": "p2"}, {"project_id": "p1"}, {"project_id": "p2"}, {"project_id": None}]
        assert collect_ids(records, "project_id") == ["p2", "p1"]

    def test_several_fields(self) -> None:
        records = [{"user_id": "u1", "owner": "u2"}, {"user_id": "u2"}]
        assert collect_ids(records, "user_id", "owner") == ["u1", "u2"]


class TestResolver:
    @pytest.mark.asyncio
    async def test_blog_page_resolves_projects_then_owners(
        self,
        identity: MagicMock,
        projects: MagicMock,
    ) -> None:
        records = [
            {"_id": "b1", "project_id": "p1"},
            {"_id": "b2", "project_id": "p1"},
            {"_id": "b3", "project_id": "p2"},
        ]
        resolver = Resolver(identity, projects=projects)

        lookups = await resolver.resolve(records, projects=True, project_owners=True)

        projects.get_details.assert_awaited_once_with(["p1", "p2"])
        assert identity.get_user.await_count == 2
        assert set(lookups.users) == {"u1", "u2"}

        enriched = join(records, lookups, ("project", "user"), project_fallback=True, user_fallback=True)
        assert [blog["project_details"]["name"] for blog in enriched] == ["Acme Blog", "Acme Blog", "Beta Docs"]
        assert [blog["user_details"]["email"] for blog in enriched] == [
            "jane@acme.example",
            "jane@acme.example",
            "bob@beta.example",
        ]

    @pytest.mark.asyncio
    async def test_failed_user_lookup_becomes_placeholder(self, identity: MagicMock) -> None:
        identity.get_user = AsyncMock(side_effect=UpstreamError("identity provider unreachable"))
        resolver = Resolver(identity)

        users = await resolver.users(["u9"])

        assert users["u9"].name == UNKNOWN_USER
        assert users["u9"].id == "u9"

    @pytest.mark.asyncio
    async def test_unknown_user_becomes_placeholder(self, identity: MagicMock) -> None:
        users = await Resolver(identity).users(["ghost"])
        assert users["ghost"].name == UNKNOWN_USER

    @pytest.mark.asyncio
    async def test_failed_project_batch_leaves_map_empty(self, identity: MagicMock) -> None:
        repo = MagicMock()
        repo.get_details = AsyncMock(side_effect=DatabaseError("connection reset"))

        assert await Resolver(identity, projects=repo).projects(["p1"]) == {}

    @pytest.mark.asyncio
    async def test_blog_titles_use_last_revision(self, identity: MagicMock, blogs: MagicMock) -> None:
        lookups = await Resolver(identity, blogs=blogs).resolve([{"blog_id": "b1"}], users=False, blogs=True)
        assert lookups.blogs["b1"].title == "Final Title"

    @pytest.mark.asyncio
    async def test_no_ids_no_calls(self, identity: MagicMock, projects: MagicMock) -> None:
        lookups = await Resolver(identity, projects=projects).resolve([], projects=True)
        assert lookups == Lookups()
        identity.get_user.assert_not_awaited()
        projects.get_details.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_user_lookups_are_bounded(self) -> None:
        in_flight = peak = 0

        async def slow_get_user(user_id: str) -> dict:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await sleep(0.01)
            in_flight -= 1
            return {"id": user_id, "email": f"{user_id}@example.com"}

        identity = MagicMock()
        identity.get_user = AsyncMock(side_effect=slow_get_user)
        resolver = Resolver(identity, max_concurrency=3)

        users = await resolver.users([f"u{i}" for i in range(12)])

        assert len(users) == 12
        assert peak <= 3


class TestJoin:
    def test_keys_are_always_present(self) -> None:
        enriched = join([{"_id": "x"}], Lookups(), ("user", "project", "blog"))
        assert enriched == [{"_id": "x", "user_details": None, "project_details": None, "blog_details": None}]

    def test_project_placeholder_when_unresolved(self) -> None:
        enriched = join([{"project_id": "p404"}], Lookups(), ("project",), project_fallback=True)
        assert enriched[0]["project_details"]["name"] == UNKNOWN_PROJECT

    def test_direct_user_id_wins_over_project_owner(self) -> None:
        lookups = Lookups(
            users={
                "u1": UserDetails.from_identity(USERS["u1"]),
                "u2": UserDetails.from_identity(USERS["u2"]),
            },
            projects={"p1": ProjectDetails.from_row(PROJECTS["p1"])},
        )
        enriched = join([{"user_id": "u2", "project_id": "p1"}], lookups, ("user",))
        assert enriched[0]["user_details"]["id"] == "u2"

    def test_user_placeholder_uses_project_owner_id(self) -> None:
        lookups = Lookups(projects={"p1": ProjectDetails.from_row(PROJECTS["p1"])})
        enriched = join([{"project_id": "p1"}], lookups, ("user",), user_fallback=True)
        assert enriched[0]["user_details"] == {
            "id": "u1",
            "name": UNKNOWN_USER,
            "email": "Unknown",
            "avatar": None,
        }

    def test_input_records_are_not_mutated(self) -> None:
        record = {"_id": "x"}
        join([record], Lookups(), ("user",))
        assert record == {"_id": "x"}


class TestFilterRecords:
    def test_matches_nested_paths(self) -> None:
        records = [
            {"filename": "hero.png", "project_details": {"name": "Acme Blog"}},
            {"filename": "logo.svg", "project_details": {"name": "Beta Docs"}},
        ]
        assert filter_records(records, "ACME", ("filename", "project_details.name")) == records[:1]

    def test_empty_term_keeps_everything(self) -> None:
        records = [{"filename": "a"}, {"filename": "b"}]
        assert filter_records(records, "", ("filename",)) == records
