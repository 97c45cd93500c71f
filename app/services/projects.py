"""Projects and project images: listings, project detail and activation."""

from logging import getLogger
from typing import Any

from app.configs import file_logger
from app.configs.settings import IMAGE_SCAN_BATCH_SIZE
from app.errors import DatabaseError, NotFoundError
from app.repositories import ProjectImageRepository, ProjectRepository, Record, require_uuid
from app.schemas import PageRequest, Pagination
from app.services.enrichment import Resolver, filter_records, join
from app.utils import utc_now

logger = file_logger(getLogger(__name__))

# Own columns plus the joined fields an image search also matches
IMAGE_SEARCH_PATHS = (
    "original_filename",
    "description",
    "category",
    "project_details.name",
    "project_details.url",
    "user_details.name",
    "user_details.email",
)


class ProjectService:
    def __init__(self, repo: ProjectRepository, resolver: Resolver) -> None:
        self.repo = repo
        self.resolver = resolver

    async def list_projects(self, page: PageRequest) -> dict[str, Any]:
        """List projects newest first with their owner and Search Console status."""
        records, total = await self.repo.list_page(
            offset=page.offset,
            limit=page.limit,
            search=page.search,
        )
        lookups = await self.resolver.resolve(records)
        connected = await self._gsc_connected([str(record["id"]) for record in records])
        projects = join(records, lookups, ("user",))
        for project in projects:
            project["gsc_connected"] = str(project["id"]) in connected
        return {
            "success": True,
            "data": projects,
            "pagination": Pagination.for_request(page, total).to_response(),
        }

    async def get_project(self, project_id: str) -> dict[str, Any]:
        """
        One project with its owner and Search Console status.

        Raises:
            ValidationError: ``project_id`` is not a UUID
            NotFoundError: No such project
        """
        project = await self._require(project_id)
        lookups = await self.resolver.resolve([project])
        (data,) = join([project], lookups, ("user",))
        data["gsc_connected"] = bool(await self._gsc_connected([project_id]))
        return {"success": True, "data": data}

    async def set_status(self, project_id: str, is_active: bool) -> dict[str, Any]:
        await self._require(project_id)
        project = await self.repo.update_fields(project_id, {"is_active": is_active, "updated_at": utc_now()})
        if project is None:
            raise NotFoundError("Project not found")
        state = "activated" if is_active else "deactivated"
        logger.info(f"Project {project_id} {state}")
        return {"success": True, "data": project, "message": f"Project {state} successfully"}

    async def list_for_user(self, user_id: str, page: PageRequest) -> dict[str, Any]:
        """A user's projects newest first, with ``gsc_connected``."""
        records, total = await self.repo.list_page(
            offset=page.offset,
            limit=page.limit,
            filters={"user_id": require_uuid(user_id, "Invalid user ID format")},
        )
        return {
            "success": True,
            "data": await self.with_gsc(records),
            "pagination": Pagination.for_request(page, total).to_response(),
        }

    async def with_gsc(self, records: list[Record]) -> list[Record]:
        connected = await self._gsc_connected([str(record["id"]) for record in records])
        return [record | {"gsc_connected": str(record["id"]) in connected} for record in records]

    async def _require(self, project_id: str) -> Record:
        project = await self.repo.get_by_id(require_uuid(project_id, "Invalid project ID format"))
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def _gsc_connected(self, project_ids: list[str]) -> set[str]:
        try:
            return await self.repo.gsc_connected(project_ids)
        except DatabaseError as e:
            logger.warning(f"Search Console lookup failed: {e.log_message}")
            return set()


class ImageService:
    """
    Active project images with their project and uploader.

    A search has to match the joined project and user fields too, which the
    image table cannot filter on. In that case every matching image is
    scanned in batches, joined, filtered and paginated in memory. This is a
    full scan per search and only holds up while the table stays small.
    """

    def __init__(self, repo: ProjectImageRepository, resolver: Resolver) -> None:
        self.repo = repo
        self.resolver = resolver

    async def list_images(
        self,
        page: PageRequest,
        *,
        project_id: str | None = None,
        user_id: str | None = None,
        category: str | None = None,
    ) -> dict[str, Any]:
        filters: dict[str, Any] = {"is_active": True}
        if project_id:
            filters["project_id"] = require_uuid(project_id, "Invalid project ID format")
        if user_id:
            filters["user_id"] = require_uuid(user_id, "Invalid user ID format")
        if category:
            filters["category"] = category

        if page.search:
            images, total = await self._search(page, filters)
        else:
            records, total = await self.repo.list_page(
                offset=page.offset,
                limit=page.limit,
                filters=filters,
            )
            images = await self._enrich(records)
        return {
            "success": True,
            "data": images,
            "pagination": Pagination.for_request(page, total).to_response(),
        }

    async def _enrich(self, records: list[Record]) -> list[Record]:
        lookups = await self.resolver.resolve(records, projects=True)
        return join(records, lookups, ("project", "user"))

    async def _search(self, page: PageRequest, filters: dict[str, Any]) -> tuple[list[Record], int]:
        records: list[Record] = []
        async for batch in self.repo.scan(batch_size=IMAGE_SCAN_BATCH_SIZE, filters=filters):
            records.extend(batch)
        matching = filter_records(await self._enrich(records), page.search, IMAGE_SEARCH_PATHS)
        logger.info(f"Image search '{page.search}' matched {len(matching)} of {len(records)} images")
        return page.slice(matching), len(matching)
