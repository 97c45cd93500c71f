"""
Admin Routes.

Dashboard listings over the relational stores, project detail and
activation, and the crawl controls proxied to the scraper backend. Every
endpoint requires an admin session.
"""

from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import ORJSONResponse

from app.decorators import timed
from app.dependencies import (
    AdminDep,
    AnalyticsServiceDep,
    CrawlPageDep,
    CrawlServiceDep,
    ImagePageDep,
    ImageServiceDep,
    LogPageDep,
    LogServiceDep,
    ProjectPageDep,
    ProjectServiceDep,
)
from app.schemas import CrawlAction, ProjectStatusUpdate

router = APIRouter(tags=["👑 Admin"])

_PAGINATION_EXAMPLE = {
    "currentPage": 1,
    "totalPages": 1,
    "total": 1,
    "limit": 10,
    "hasNextPage": False,
    "hasPrevPage": False,
}
_USER_DETAILS_EXAMPLE = {"id": "u1", "name": "Jane Doe", "email": "jane@acme.example", "avatar": None}
_PROJECT_DETAILS_EXAMPLE = {"id": "p1", "name": "Acme Blog", "url": "https://acme.example", "user_id": "u1"}
_BAD_PROJECT_ID = {
    "description": "Malformed project id",
    "content": {"application/json": {"example": {"success": False, "error": "Invalid project ID format"}}},
}
_PROJECT_NOT_FOUND = {
    "description": "Not found",
    "content": {"application/json": {"example": {"success": False, "error": "Project not found"}}},
}
_INVALID_TABLE = {
    "description": "Unknown table",
    "content": {"application/json": {"example": {"success": False, "error": "Invalid table parameter"}}},
}


@router.get(
    "/projects",
    response_class=ORJSONResponse,
    summary="List projects",
    description="Projects newest first, searchable by name or url, with owner and GSC connection.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [
                            {
                                "id": "p1",
                                "name": "Acme Blog",
                                "url": "https://acme.example",
                                "user_id": "u1",
                                "user_details": _USER_DETAILS_EXAMPLE,
                                "gsc_connected": True,
                            },
                        ],
                        "pagination": _PAGINATION_EXAMPLE,
                    },
                },
            },
        },
    },
    operation_id="projects_list",
)
@timed("/projects")
async def list_projects(page: ProjectPageDep, service: ProjectServiceDep, admin: AdminDep) -> ORJSONResponse:
    """List projects with ``user_details`` and ``gsc_connected``."""
    return ORJSONResponse(content=await service.list_projects(page))


@router.get(
    "/projects/recent",
    response_class=ORJSONResponse,
    summary="Recent projects",
    description="The 10 newest projects with their owner.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [
                            {
                                "id": "p1",
                                "user_id": "u1",
                                "title": "Acme Blog",
                                "status": "Active",
                                "created_at": "2025-01-01T09:14:00+00:00",
                                "user_email": "jane@acme.example",
                                "user_name": "Jane Doe",
                                "user_avatar": None,
                            },
                        ],
                    },
                },
            },
        },
    },
    operation_id="projects_recent",
)
@timed("/projects/recent")
async def recent_projects(service: AnalyticsServiceDep, admin: AdminDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.recent_projects())


@router.get(
    "/projects/{project_id}",
    response_class=ORJSONResponse,
    summary="Get a project",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            "id": "p1",
                            "name": "Acme Blog",
                            "url": "https://acme.example",
                            "user_id": "u1",
                            "is_active": True,
                            "user_details": _USER_DETAILS_EXAMPLE,
                            "gsc_connected": True,
                        },
                    },
                },
            },
        },
        400: _BAD_PROJECT_ID,
        404: _PROJECT_NOT_FOUND,
    },
    operation_id="projects_read",
)
@timed("/projects/read")
async def read_project(project_id: str, service: ProjectServiceDep, admin: AdminDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.get_project(project_id))


@router.patch(
    "/projects/{project_id}/status",
    response_class=ORJSONResponse,
    summary="Activate or deactivate a project",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {"id": "p1", "name": "Acme Blog", "is_active": False},
                        "message": "Project deactivated successfully",
                    },
                },
            },
        },
        400: _BAD_PROJECT_ID,
        404: _PROJECT_NOT_FOUND,
    },
    operation_id="projects_status",
)
@timed("/projects/status")
async def set_project_status(
    project_id: str,
    body: ProjectStatusUpdate,
    service: ProjectServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.set_status(project_id, body.is_active))


@router.get(
    "/images",
    response_class=ORJSONResponse,
    summary="List project images",
    description=(
        "Active images, optionally filtered by project, user and category. "
        "`search` also matches the joined project name/url and user name/email."
    ),
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [
                            {
                                "id": "i1",
                                "project_id": "p1",
                                "filename": "hero.webp",
                                "category": "hero",
                                "is_active": True,
                                "project_details": _PROJECT_DETAILS_EXAMPLE,
                                "user_details": _USER_DETAILS_EXAMPLE,
                            },
                        ],
                        "pagination": _PAGINATION_EXAMPLE | {"limit": 12},
                    },
                },
            },
        },
        400: {
            "description": "Malformed projectId or userId",
            "content": {"application/json": {"example": {"success": False, "error": "Invalid project ID format"}}},
        },
    },
    operation_id="images_list",
)
@timed("/images")
async def list_images(
    page: ImagePageDep,
    service: ImageServiceDep,
    admin: AdminDep,
    project_id: Annotated[str | None, Query(alias="projectId")] = None,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    category: Annotated[str | None, Query()] = None,
) -> ORJSONResponse:
    """
    List project images.

    Parameters
    ----------
    page : PageRequest
        Page, limit (default 12) and search term.
    service : ImageService
        Image service.
    admin : IdentityUser
        Admin session user.
    project_id, user_id, category : str | None
        Optional equality filters.

    Returns
    -------
    ORJSONResponse
        ``{success, data, pagination}``.
    """
    return ORJSONResponse(
        content=await service.list_images(
            page,
            project_id=project_id,
            user_id=user_id,
            category=category,
        ),
    )


@router.get(
    "/logs",
    response_class=ORJSONResponse,
    summary="Read monitoring logs",
    description=(
        "`table` is one of `scrape_requests`, `error_logs` or `dashboard_summary`. "
        "Log rows come newest first with user, project and blog details."
    ),
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [
                            {
                                "id": 42,
                                "user_id": "u1",
                                "project_id": "p1",
                                "blog_id": "665f1c2e9b1d8a0012345678",
                                "timestamp": "2025-01-01T00:00:00Z",
                                "user_details": _USER_DETAILS_EXAMPLE,
                                "project_details": _PROJECT_DETAILS_EXAMPLE,
                                "blog_details": {
                                    "id": "665f1c2e9b1d8a0012345678",
                                    "title": "Ten Ways to Improve Crawl Budget",
                                    "status": "published",
                                    "word_count": 1840,
                                },
                            },
                        ],
                        "pagination": _PAGINATION_EXAMPLE,
                    },
                },
            },
        },
        400: _INVALID_TABLE,
    },
    operation_id="logs_read",
)
@timed("/logs")
async def read_logs(
    page: LogPageDep,
    service: LogServiceDep,
    admin: AdminDep,
    table: Annotated[str, Query()] = "scrape_requests",
) -> ORJSONResponse:
    """Read one monitoring table; an unknown ``table`` is a 400."""
    return ORJSONResponse(content=await service.read(table, page))


@router.get(
    "/crawl",
    response_class=ORJSONResponse,
    summary="Read crawl data",
    description=(
        "`table` is one of `crawl_tasks`, `crawl_pages`, `crawl_summary` (monitoring store) "
        "or `task_status`, `backend_pages`, `backend_tasks`, `cache_stats` (scraper backend). "
        "`task_status` and `backend_pages` need `task_id`."
    ),
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {"total_tasks": 12, "running": 1, "completed": 10, "failed": 1},
                    },
                },
            },
        },
        400: _INVALID_TABLE,
    },
    operation_id="crawl_read",
)
@timed("/crawl")
async def read_crawl(
    page: CrawlPageDep,
    service: CrawlServiceDep,
    admin: AdminDep,
    table: Annotated[str, Query()] = "crawl_tasks",
    task_id: Annotated[str | None, Query()] = None,
) -> ORJSONResponse:
    """Read one crawl view from the monitoring store or the scraper."""
    return ORJSONResponse(content=await service.read(table, page, task_id))


@router.post(
    "/crawl",
    response_class=ORJSONResponse,
    summary="Start or cancel a crawl",
    description="`action=start` needs `seed_url`; `action=cancel` needs `task_id`.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Crawl task started",
                        "data": {"task_id": "t-123", "status": "queued"},
                    },
                },
            },
        },
        400: {
            "description": "Invalid action",
            "content": {
                "application/json": {
                    "example": {"success": False, "error": "Invalid action. Use 'start' or 'cancel'"},
                },
            },
        },
    },
    operation_id="crawl_action",
)
@timed("/crawl/action")
async def crawl_action(body: CrawlAction, service: CrawlServiceDep, admin: AdminDep) -> ORJSONResponse:
    """Start or cancel a crawl on the scraper backend."""
    return ORJSONResponse(content=await service.act(body))


@router.delete(
    "/crawl",
    response_class=ORJSONResponse,
    summary="Purge the scraper cache",
    description="`action=cache_url` drops one `url` from the scraper cache; `action=cache_clear` drops all.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {"success": True, "message": "All cache cleared", "data": {"removed": 37}},
                },
            },
        },
    },
    operation_id="crawl_cache_purge",
)
@timed("/crawl/cache")
async def purge_crawl_cache(
    service: CrawlServiceDep,
    admin: AdminDep,
    action: Annotated[str | None, Query()] = None,
    url: Annotated[str | None, Query()] = None,
) -> ORJSONResponse:
    """Purge the scraper's page cache."""
    return ORJSONResponse(content=await service.purge(action, url))
