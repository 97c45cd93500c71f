"""Sign-up allow-list and free-analysis form submissions."""

from asyncio import gather
from logging import getLogger
from typing import Any
from uuid import uuid4

from app.clients.ip_location import IPLocationClient
from app.configs import file_logger
from app.errors import ConflictError, DuplicateEntryError, NotFoundError
from app.repositories import AuthorizedUserRepository, FormSubmissionRepository, Record, require_uuid
from app.schemas import AuthorizedUserCreate, FormSubmissionUpdate, PageRequest, Pagination
from app.services.enrichment import Resolver, join
from app.utils import utc_now

logger = file_logger(getLogger(__name__))


class AuthorizedUserService:
    def __init__(self, repo: AuthorizedUserRepository, resolver: Resolver) -> None:
        self.repo = repo
        self.resolver = resolver

    async def list_authorized(self, page: PageRequest) -> dict[str, Any]:
        """Allow-list entries newest first, with the linked user when there is one."""
        records, total = await self.repo.list_page(offset=page.offset, limit=page.limit, search=page.search)
        lookups = await self.resolver.resolve(records)
        return {
            "success": True,
            "data": join(records, lookups, ("user",)),
            "pagination": Pagination.for_request(page, total).to_response(),
        }

    async def get_authorized(self, record_id: str) -> dict[str, Any]:
        record = await self.repo.get_by_id(require_uuid(record_id, "Invalid authorized user ID format"))
        if record is None:
            raise NotFoundError("Authorized user not found")
        return {"success": True, "data": record}

    async def add(self, body: AuthorizedUserCreate) -> dict[str, Any]:
        """
        Allow an email to sign up.

        Raises:
            ValidationError: ``user_id`` is given but is not a UUID
            ConflictError: The email is already on the list (409)
        """
        if body.user_id:
            require_uuid(body.user_id, "Invalid user ID format")
        if await self.repo.get_by_field("email", body.email) is not None:
            raise ConflictError("Email already exists in authorized users", duplicate=True)
        try:
            record = await self.repo.create(
                {
                    "id": str(uuid4()),
                    "email": body.email,
                    "company_name": body.company_name,
                    "user_id": body.user_id,
                    "created_at": utc_now(),
                },
            )
        except DuplicateEntryError as e:
            # Lost a race with a concurrent insert of the same email
            raise ConflictError("Email already exists in authorized users", duplicate=True) from e
        logger.info(f"Authorized {body.email} for {body.company_name}")
        return {"success": True, "data": record}

    async def remove(self, record_id: str) -> dict[str, Any]:
        if not await self.repo.delete(require_uuid(record_id, "Invalid authorized user ID format")):
            raise NotFoundError("Authorized user not found")
        logger.info(f"Removed authorized user {record_id}")
        return {"success": True}


class FormSubmissionService:
    """
    Free-analysis submissions with the location of the submitting IP.

    Locations are looked up per row and a failed lookup leaves
    ``ipDetails`` as ``None``.
    """

    def __init__(self, repo: FormSubmissionRepository, locations: IPLocationClient) -> None:
        self.repo = repo
        self.locations = locations

    async def _with_location(self, record: Record) -> Record:
        return record | {"ipDetails": await self.locations.lookup(record.get("ip_address"))}

    async def list_submissions(self, page: PageRequest, status: str | None = None) -> dict[str, Any]:
        filters = {"status": status} if status else None
        records, total = await self.repo.list_page(
            offset=page.offset,
            limit=page.limit,
            search=page.search,
            filters=filters,
        )
        return {
            "success": True,
            "data": list(await gather(*(self._with_location(record) for record in records))),
            "pagination": Pagination.for_request(page, total).to_response(),
        }

    async def get_submission(self, submission_id: str) -> dict[str, Any]:
        record = await self.repo.get_by_id(require_uuid(submission_id, "Invalid submission ID format"))
        if record is None:
            raise NotFoundError("Form submission not found")
        return {"success": True, "data": await self._with_location(record)}

    async def update(self, submission_id: str, body: FormSubmissionUpdate) -> dict[str, Any]:
        """Set the review fields present in ``body`` and stamp ``updated_at``."""
        values = body.model_dump(exclude_unset=True) | {"updated_at": utc_now()}
        record = await self.repo.update_fields(
            require_uuid(submission_id, "Invalid submission ID format"),
            values,
        )
        if record is None:
            raise NotFoundError("Form submission not found")
        logger.info(f"Form submission {submission_id} updated: {sorted(values)}")
        return {"success": True, "data": await self._with_location(record)}
