"""
Foreign-key resolution and join for listed records.

A listing fetches one page of primary records, then:

1. collects the distinct foreign ids on that page (``collect_ids``),
2. resolves them against the secondary stores (``Resolver.resolve``):
   users through the identity provider one id at a time with bounded
   concurrency, projects and blogs with one batched query each,
3. attaches the results under ``user_details`` / ``project_details`` /
   ``blog_details`` (``join``).

Secondary failures never fail the listing. A user that cannot be fetched
becomes a placeholder, a failed project or blog batch leaves the details
``None``.
"""

from asyncio import Semaphore, gather
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Literal

from app.clients.identity_client import IdentityClient
from app.configs import file_logger, settings
from app.errors import DatabaseError, UpstreamError
from app.managers import metrics_manager
from app.repositories import BlogRepository, ProjectRepository, Record
from app.schemas.details import BlogDetails, ProjectDetails, UserDetails

logger = file_logger(getLogger(__name__))

type DetailsKind = Literal["user", "project", "blog"]


def collect_ids(records: Iterable[Record], *fields: str) -> list[str]:
    """
    Collect the distinct, non-empty values of ``fields`` across ``records``.

    Order of first appearance is kept so lookups are issued deterministically.
    """
    seen: dict[str, None] = {}
    for record in records:
        for name in fields:
            value = record.get(name)
            if value:
                seen.setdefault(str(value), None)
    return list(seen)


@dataclass(slots=True)
class Lookups:
    """Resolved secondary records keyed by id."""

    users: dict[str, UserDetails] = field(default_factory=dict)
    projects: dict[str, ProjectDetails] = field(default_factory=dict)
    blogs: dict[str, BlogDetails] = field(default_factory=dict)


class Resolver:
    """
    Resolve foreign ids against the identity provider and the stores.

    Args:
        identity: Identity provider client (per-id user lookups)
        projects: Project repository, when project ids are resolved
        blogs: Blog repository, when blog ids are resolved
        max_concurrency: Upper bound on in-flight user lookups
    """

    def __init__(
        self,
        identity: IdentityClient,
        projects: ProjectRepository | None = None,
        blogs: BlogRepository | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self.identity = identity
        self.project_repo = projects
        self.blog_repo = blogs
        self.max_concurrency = max_concurrency or settings.MAX_CONCURRENT_USER_LOOKUPS

    async def users(self, ids: Sequence[str]) -> dict[str, UserDetails]:
        """Look every id up, at most ``max_concurrency`` at a time."""
        if not ids:
            return {}
        semaphore = Semaphore(self.max_concurrency)

        async def lookup(user_id: str) -> UserDetails:
            async with semaphore:
                try:
                    user = await self.identity.get_user(user_id)
                except UpstreamError as e:
                    logger.warning(f"User lookup failed for {user_id}: {e.log_message}")
                    user = None
            if user is None:
                metrics_manager.record_placeholder("user")
                return UserDetails.placeholder(user_id)
            return UserDetails.from_identity(user)

        results = await gather(*(lookup(user_id) for user_id in ids))
        return dict(zip(ids, results, strict=True))

    async def projects(self, ids: Sequence[str]) -> dict[str, ProjectDetails]:
        if not ids or self.project_repo is None:
            return {}
        try:
            rows = await self.project_repo.get_details(ids)
        except DatabaseError as e:
            logger.warning(f"Project batch lookup failed for {len(ids)} ids: {e.log_message}")
            return {}
        return {str(row["id"]): ProjectDetails.from_row(row) for row in rows}

    async def blogs(self, ids: Sequence[str]) -> dict[str, BlogDetails]:
        if not ids or self.blog_repo is None:
            return {}
        try:
            documents = await self.blog_repo.get_details(ids)
        except DatabaseError as e:
            logger.warning(f"Blog batch lookup failed for {len(ids)} ids: {e.log_message}")
            return {}
        return {str(document["_id"]): BlogDetails.from_document(document) for document in documents}

    async def resolve(
        self,
        records: Sequence[Record],
        *,
        users: bool = True,
        projects: bool = False,
        blogs: bool = False,
        project_owners: bool = False,
    ) -> Lookups:
        """
        Resolve every foreign id referenced by ``records``.

        Users, projects and blogs are resolved concurrently. With
        ``project_owners`` the owners of the resolved projects are looked up
        too, so a record without its own ``user_id`` can fall back to its
        project's owner during the join.
        """
        direct_user_ids = collect_ids(records, "user_id") if users else []
        user_map, project_map, blog_map = await gather(
            self.users(direct_user_ids),
            self.projects(collect_ids(records, "project_id") if projects else []),
            self.blogs(collect_ids(records, "blog_id") if blogs else []),
        )
        if project_owners:
            owner_ids = [
                owner_id
                for owner_id in collect_ids(
                    (details.model_dump() for details in project_map.values()),
                    "user_id",
                )
                if owner_id not in user_map
            ]
            user_map |= await self.users(owner_ids)
        return Lookups(users=user_map, projects=project_map, blogs=blog_map)


def join(
    records: Iterable[Record],
    lookups: Lookups,
    kinds: Sequence[DetailsKind],
    *,
    project_fallback: bool = False,
    user_fallback: bool = False,
) -> list[Record]:
    """
    Attach ``<kind>_details`` to every record.

    The key is always present. ``user_details`` prefers the record's own
    ``user_id`` and falls back to the owning project's ``user_id``. With
    ``project_fallback`` an unresolved project id gets the "Unknown Project"
    placeholder instead of ``None``; with ``user_fallback`` a record whose
    user cannot be found through either id gets the "Unknown User" placeholder.
    """
    enriched: list[Record] = []
    for record in records:
        item = dict(record)
        project_id = str(record.get("project_id") or "")
        project = lookups.projects.get(project_id) if project_id else None
        if project is None and project_id and project_fallback:
            project = ProjectDetails.placeholder(project_id)

        if "project" in kinds:
            item["project_details"] = _dump(project)
        if "user" in kinds:
            user_id = str(record.get("user_id") or "")
            user = lookups.users.get(user_id) if user_id else None
            if user is None and project is not None and project.user_id:
                user = lookups.users.get(project.user_id)
            if user is None and user_fallback:
                user = UserDetails.placeholder(user_id or (project.user_id if project else ""))
            item["user_details"] = _dump(user)
        if "blog" in kinds:
            blog_id = str(record.get("blog_id") or "")
            item["blog_details"] = _dump(lookups.blogs.get(blog_id) if blog_id else None)
        enriched.append(item)
    return enriched


def _dump(details: UserDetails | ProjectDetails | BlogDetails | None) -> dict[str, Any] | None:
    return details.model_dump() if details is not None else None


def matches(record: Record, term: str, paths: Sequence[str]) -> bool:
    """
    Case-insensitive substring match of ``term`` against dotted ``paths``.

    ``"project_details.name"`` reads the ``name`` key of the joined project.
    """
    for path in paths:
        value: Any = record
        for part in path.split("."):
            value = value.get(part) if isinstance(value, dict) else None
        if value is not None and term in str(value).lower():
            return True
    return False


def filter_records(records: Iterable[Record], term: str, paths: Sequence[str]) -> list[Record]:
    if not term:
        return list(records)
    needle = term.lower()
    return [record for record in records if matches(record, needle, paths)]
