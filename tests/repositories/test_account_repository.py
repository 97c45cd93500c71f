"""Writes and aggregates of the account, billing and project tables against SQLite."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.errors import DuplicateEntryError
from app.models import AuthorizedUserDB, PaymentDB, ProjectDB, UsageDB, UserActivityDB
from app.repositories import (
    AuthorizedUserRepository,
    PaymentRepository,
    ProjectRepository,
    UsageRepository,
    UserActivityRepository,
)

USER = uuid4().hex
START = datetime(2025, 1, 1, tzinfo=UTC)


def same_uuid(left: str | None, right: str | None) -> bool:
    return left is not None and right is not None and UUID(str(left)) == UUID(str(right))


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    tables = [
        AuthorizedUserDB.__table__,
        PaymentDB.__table__,
        ProjectDB.__table__,
        UsageDB.__table__,
        UserActivityDB.__table__,
    ]
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all, tables=tables)
    async with async_sessionmaker(engine, expire_on_commit=False)() as session:
        yield session
    await engine.dispose()


def authorized(email: str) -> dict[str, object]:
    return {"id": uuid4().hex, "email": email, "company_name": "Acme", "user_id": None, "created_at": START}


class TestAuthorizedUsers:
    @pytest.mark.asyncio
    async def test_create_and_find_by_email(self, session: AsyncSession) -> None:
        repo = AuthorizedUserRepository(session)
        created = await repo.create(authorized("ops@acme.example"))

        found = await repo.get_by_field("email", "ops@acme.example")

        assert found is not None
        assert same_uuid(found["id"], created["id"])
        assert await repo.get_by_field("email", "other@acme.example") is None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, session: AsyncSession) -> None:
        repo = AuthorizedUserRepository(session)
        await repo.create(authorized("ops@acme.example"))

        with pytest.raises(DuplicateEntryError):
            await repo.create(authorized("ops@acme.example"))

    @pytest.mark.asyncio
    async def test_update_and_delete(self, session: AsyncSession) -> None:
        repo = AuthorizedUserRepository(session)
        record_id = (await repo.create(authorized("ops@acme.example")))["id"]

        updated = await repo.update_fields(record_id, {"company_name": "Acme Labs"})

        assert updated is not None
        assert updated["company_name"] == "Acme Labs"
        assert await repo.delete(record_id) is True
        assert await repo.get_by_id(record_id) is None
        assert await repo.delete(record_id) is False
        assert await repo.update_fields(uuid4().hex, {"company_name": "x"}) is None

    @pytest.mark.asyncio
    async def test_search_matches_company(self, session: AsyncSession) -> None:
        repo = AuthorizedUserRepository(session)
        await repo.create(authorized("ops@acme.example"))
        await repo.create(authorized("lead@beta.example") | {"company_name": "Beta Labs"})

        records, total = await repo.list_page(offset=0, limit=10, search="beta labs")

        assert total == 1
        assert records[0]["email"] == "lead@beta.example"


class TestActivity:
    @pytest.mark.asyncio
    async def test_since_is_newest_first(self, session: AsyncSession) -> None:
        for minutes in (0, 30, 90):
            session.add(UserActivityDB(id=uuid4().hex, user_id=USER, created_at=START + timedelta(minutes=minutes)))
        await session.commit()

        rows = await UserActivityRepository(session).since(START + timedelta(minutes=10))

        assert [row["created_at"].replace(tzinfo=None) for row in rows] == [
            datetime(2025, 1, 1, 1, 30),
            datetime(2025, 1, 1, 0, 30),
        ]


class TestBilling:
    @pytest.mark.asyncio
    async def test_captured_totals_ignore_other_statuses(self, session: AsyncSession) -> None:
        for amount, status in ((49900, "captured"), (99900, "captured"), (49900, "failed")):
            session.add(PaymentDB(id=uuid4().hex, user_id=USER, amount=amount, status=status, created_at=START))
        await session.commit()

        assert await PaymentRepository(session).captured_totals() == (2, 149800)

    @pytest.mark.asyncio
    async def test_captured_totals_when_empty(self, session: AsyncSession) -> None:
        assert await PaymentRepository(session).captured_totals() == (0, 0)

    @pytest.mark.asyncio
    async def test_sum_columns_filters_by_user(self, session: AsyncSession) -> None:
        other = uuid4().hex
        for user_id, base, charge in ((USER, 1.5, 2.0), (USER, 0.5, 0.75), (other, 10.0, 10.0)):
            session.add(UsageDB(id=uuid4().hex, user_id=user_id, base_cost=base, actual_charge=charge, created_at=START))
        await session.commit()

        totals = await UsageRepository(session).sum_columns(("base_cost", "actual_charge"), {"user_id": USER})

        assert totals == {"base_cost": 2.0, "actual_charge": 2.75}


class TestProjectTimeline:
    @pytest.mark.asyncio
    async def test_timestamps_between_and_recent(self, session: AsyncSession) -> None:
        for days, name in ((0, "first"), (10, "second"), (40, "third")):
            session.add(ProjectDB(id=uuid4().hex, user_id=USER, name=name, created_at=START + timedelta(days=days)))
        await session.commit()
        repo = ProjectRepository(session)

        stamps = await repo.timestamps_between(START, START + timedelta(days=31))

        assert [stamp.replace(tzinfo=None) for stamp in stamps] == [datetime(2025, 1, 1), datetime(2025, 1, 11)]
        assert [project["name"] for project in await repo.recent(2)] == ["third", "second"]
        assert await repo.count() == 3
