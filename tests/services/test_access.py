"""Tests for the sign-up allow-list and the form-submission review service."""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from app.errors import ConflictError, DuplicateEntryError, NotFoundError, ValidationError
from app.schemas import AuthorizedUserCreate, FormSubmissionUpdate, PageRequest
from app.services.access import AuthorizedUserService, FormSubmissionService
from app.services.enrichment import Resolver

USER_ID = str(uuid4())
USERS = {USER_ID: {"id": USER_ID, "email": "ops@acme.example", "user_metadata": {"full_name": "Ops Team"}}}
LOCATION = {"country": "India", "countryCode": "IN", "city": "Bengaluru", "isLocal": False}


async def get_user(user_id: str) -> dict[str, Any] | None:
    return USERS.get(user_id)


def page(search: str = "") -> PageRequest:
    return PageRequest.from_query(1, 10, search, default_limit=10, max_limit=100)


@pytest.fixture
def repo() -> MagicMock:
    repo = MagicMock()
    repo.get_by_field = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda data: dict(data))
    repo.delete = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def authorized(repo: MagicMock) -> AuthorizedUserService:
    identity = MagicMock()
    identity.get_user = AsyncMock(side_effect=get_user)
    return AuthorizedUserService(repo, Resolver(identity))


@pytest.fixture
def locations() -> MagicMock:
    locations = MagicMock()
    locations.lookup = AsyncMock(side_effect=lambda address: LOCATION if address == "8.8.8.8" else None)
    return locations


@pytest.fixture
def submissions(repo: MagicMock, locations: MagicMock) -> FormSubmissionService:
    return FormSubmissionService(repo, locations)


class TestAuthorizedUsers:
    @pytest.mark.asyncio
    async def test_list_joins_linked_user(self, authorized: AuthorizedUserService, repo: MagicMock) -> None:
        repo.list_page = AsyncMock(
            return_value=(
                [
                    {"id": "a1", "email": "ops@acme.example", "company_name": "Acme", "user_id": USER_ID},
                    {"id": "a2", "email": "new@beta.example", "company_name": "Beta", "user_id": None},
                ],
                2,
            ),
        )

        result = await authorized.list_authorized(page("acme"))

        assert repo.list_page.await_args.kwargs["search"] == "acme"
        linked, unlinked = result["data"]
        assert linked["user_details"]["name"] == "Ops Team"
        assert unlinked["user_details"] is None
        assert result["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_add(self, authorized: AuthorizedUserService, repo: MagicMock) -> None:
        body = AuthorizedUserCreate(email="New@Beta.Example", company_name="  Beta  ", user_id=USER_ID)

        result = await authorized.add(body)

        repo.get_by_field.assert_awaited_once_with("email", "new@beta.example")
        data = result["data"]
        assert data["email"] == "new@beta.example"
        assert data["company_name"] == "Beta"
        assert data["user_id"] == USER_ID
        assert UUID(data["id"])
        assert isinstance(data["created_at"], datetime)

    @pytest.mark.asyncio
    async def test_existing_email_conflicts(self, authorized: AuthorizedUserService, repo: MagicMock) -> None:
        repo.get_by_field.return_value = {"id": "a1", "email": "ops@acme.example"}

        with pytest.raises(ConflictError) as exc_info:
            await authorized.add(AuthorizedUserCreate(email="ops@acme.example", company_name="Acme"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail == "Email already exists in authorized users"
        repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_unique_constraint_conflicts(self, authorized: AuthorizedUserService, repo: MagicMock) -> None:
        repo.create.side_effect = DuplicateEntryError()

        with pytest.raises(ConflictError) as exc_info:
            await authorized.add(AuthorizedUserCreate(email="ops@acme.example", company_name="Acme"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail == "Email already exists in authorized users"

    @pytest.mark.asyncio
    async def test_malformed_user_id(self, authorized: AuthorizedUserService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await authorized.add(AuthorizedUserCreate(email="ops@acme.example", company_name="Acme", user_id="u1"))
        assert exc_info.value.detail == "Invalid user ID format"

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, authorized: AuthorizedUserService, repo: MagicMock) -> None:
        repo.get_by_id = AsyncMock()

        with pytest.raises(ValidationError):
            await authorized.get_authorized("not-a-uuid")

        repo.get_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_missing(self, authorized: AuthorizedUserService, repo: MagicMock) -> None:
        repo.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError) as exc_info:
            await authorized.get_authorized(str(uuid4()))
        assert exc_info.value.detail == "Authorized user not found"

    @pytest.mark.asyncio
    async def test_remove(self, authorized: AuthorizedUserService, repo: MagicMock) -> None:
        record_id = str(uuid4())

        assert await authorized.remove(record_id) == {"success": True}
        repo.delete.assert_awaited_once_with(record_id)

    @pytest.mark.asyncio
    async def test_remove_missing(self, authorized: AuthorizedUserService, repo: MagicMock) -> None:
        repo.delete.return_value = False

        with pytest.raises(NotFoundError):
            await authorized.remove(str(uuid4()))


class TestFormSubmissions:
    @pytest.mark.asyncio
    async def test_list_adds_locations(self, submissions: FormSubmissionService, repo: MagicMock) -> None:
        repo.list_page = AsyncMock(
            return_value=(
                [
                    {"id": "f1", "email": "a@startup.example", "ip_address": "8.8.8.8"},
                    {"id": "f2", "email": "b@startup.example", "ip_address": None},
                ],
                2,
            ),
        )

        result = await submissions.list_submissions(page(), status="pending")

        assert repo.list_page.await_args.kwargs["filters"] == {"status": "pending"}
        assert [row["ipDetails"] for row in result["data"]] == [LOCATION, None]

    @pytest.mark.asyncio
    async def test_list_without_status(self, submissions: FormSubmissionService, repo: MagicMock) -> None:
        repo.list_page = AsyncMock(return_value=([], 0))

        result = await submissions.list_submissions(page())

        assert repo.list_page.await_args.kwargs["filters"] is None
        assert result["data"] == []

    @pytest.mark.asyncio
    async def test_get_missing(self, submissions: FormSubmissionService, repo: MagicMock) -> None:
        repo.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError) as exc_info:
            await submissions.get_submission(str(uuid4()))
        assert exc_info.value.detail == "Form submission not found"

    @pytest.mark.asyncio
    async def test_update_only_sets_review_fields(self, submissions: FormSubmissionService, repo: MagicMock) -> None:
        submission_id = str(uuid4())
        repo.update_fields = AsyncMock(
            side_effect=lambda record_id, values: {"id": record_id, "ip_address": "8.8.8.8"} | values,
        )
        body = FormSubmissionUpdate.model_validate({"status": "processed", "email": "hijack@evil.example"})

        result = await submissions.update(submission_id, body)

        record_id, values = repo.update_fields.await_args.args
        assert record_id == submission_id
        assert set(values) == {"status", "updated_at"}
        assert result["data"]["status"] == "processed"
        assert result["data"]["ipDetails"] == LOCATION

    @pytest.mark.asyncio
    async def test_update_missing(self, submissions: FormSubmissionService, repo: MagicMock) -> None:
        repo.update_fields = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await submissions.update(str(uuid4()), FormSubmissionUpdate(notes="called back"))

    @pytest.mark.asyncio
    async def test_update_malformed_id(self, submissions: FormSubmissionService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await submissions.update("f1", FormSubmissionUpdate(notes="called back"))
        assert exc_info.value.detail == "Invalid submission ID format"
