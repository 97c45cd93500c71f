"""Repositories for projects and their images."""

from collections.abc import Collection

from sqlalchemy import select

from app.models import GscAccountDB, ProjectDB, ProjectImageDB
from app.repositories.base import BaseRepository, Record, parse_uuids

# Projection used whenever a project is attached to another record
PROJECT_DETAIL_COLUMNS = ("id", "name", "url", "user_id")


class ProjectRepository(BaseRepository[ProjectDB]):
    """Projects, searchable by name and url."""

    model = ProjectDB
    search_fields = ("name", "url")

    async def get_details(self, ids: Collection[str]) -> list[Record]:
        """
        Fetch the ``id, name, url, user_id`` projection for ``ids``.

        Ids that are not UUIDs (legacy records) cannot match and are dropped
        before the query, since one of them would fail the whole ``IN``.
        """
        return await self.get_by_ids(parse_uuids(ids), PROJECT_DETAIL_COLUMNS)

    async def gsc_connected(self, project_ids: Collection[str]) -> set[str]:
        """Return the subset of ``project_ids`` with a Search Console account."""
        valid_ids = parse_uuids(project_ids)
        if not valid_ids:
            return set()
        statement = select(GscAccountDB.project_id).where(
            GscAccountDB.project_id.in_(valid_ids),
        )
        result = await self._execute(statement)
        return {str(project_id) for project_id in result.scalars().all()}


class ProjectImageRepository(BaseRepository[ProjectImageDB]):
    """Active project images, searchable by filename, description and category."""

    model = ProjectImageDB
    search_fields = ("original_filename", "description", "category")
