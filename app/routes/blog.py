# app/routes/blog.py

"""
Blog Routes.

Listing of the blogs in the document store with their project and owner,
single-blog reads and edits, and soft delete and restore for admins.

Summary
-------
Endpoints include:
  - List blogs (search, sort, pagination)
  - Recent blogs
  - Read and edit one blog
  - Soft delete a blog
  - Restore a soft-deleted blog

Caching
-------
Listing pages are cached for a minute; edits, delete and restore drop
every cached blog page so the next listing reflects the change.
"""

from logging import getLogger

from fastapi import APIRouter
from fastapi.responses import ORJSONResponse

from app.clients.identity_client import IdentityUser
from app.configs import file_logger
from app.decorators import timed
from app.dependencies import AdminDep, AnalyticsServiceDep, BlogPageDep, BlogServiceDep, CurrentUserDep
from app.schemas import BlogUpdate

router = APIRouter(prefix="/blogs", tags=["📝 Blogs"])

logger = file_logger(getLogger(__name__))

_BAD_ID = {
    "description": "Malformed id or invalid state transition",
    "content": {"application/json": {"example": {"success": False, "error": "Invalid blog ID format"}}},
}
_NOT_FOUND = {
    "description": "Not found",
    "content": {"application/json": {"example": {"success": False, "error": "Blog not found"}}},
}
_POST_NOT_FOUND = {
    "description": "Not found",
    "content": {"application/json": {"example": {"success": False, "error": "Blog post not found"}}},
}
_UNAUTHORIZED = {
    "description": "No valid session",
    "content": {"application/json": {"example": {"success": False, "error": "Authentication required"}}},
}
_FORBIDDEN = {
    "description": "Not an admin",
    "content": {"application/json": {"example": {"success": False, "error": "Admin access required"}}},
}


def actor(user: IdentityUser) -> str:
    """Id of the admin recorded as having changed a blog."""
    return str(user["id"])


@router.get(
    "/list",
    response_class=ORJSONResponse,
    summary="List blogs",
    description=(
        "Paginated blog listing with `project_details` and `user_details`. "
        "Out-of-range `page`/`limit` values are clamped and unknown sort fields "
        "fall back to `created_at` descending."
    ),
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [
                            {
                                "_id": "665f1c2e9b1d8a0012345678",
                                "title": "Ten Ways to Improve Crawl Budget",
                                "project_id": "p1",
                                "word_count": 1840,
                                "status": "published",
                                "is_active": True,
                                "project_details": {
                                    "id": "p1",
                                    "name": "Acme Blog",
                                    "url": "https://acme.example",
                                    "user_id": "u1",
                                },
                                "user_details": {
                                    "id": "u1",
                                    "name": "Jane Doe",
                                    "email": "jane@acme.example",
                                    "avatar": None,
                                },
                            },
                        ],
                        "pagination": {
                            "currentPage": 1,
                            "totalPages": 3,
                            "total": 25,
                            "limit": 10,
                            "hasNextPage": True,
                            "hasPrevPage": False,
                        },
                        "meta": {
                            "search": None,
                            "sort": "created_at",
                            "order": "desc",
                            "blogs_with_user_details": 1,
                            "timestamp": "2025-01-01T00:00:00+00:00",
                        },
                    },
                },
            },
        },
        401: _UNAUTHORIZED,
    },
    operation_id="blogs_list",
)
@timed("/blogs/list")
async def list_blogs(
    page: BlogPageDep,
    service: BlogServiceDep,
    user: CurrentUserDep,
) -> ORJSONResponse:
    """
    List blogs for any signed-in user.

    Parameters
    ----------
    page : PageRequest
        Normalized ``page``/``limit``/``search``/``sort``/``order``.
    service : BlogService
        Blog service.
    user : IdentityUser
        Session user (only its presence is required).

    Returns
    -------
    ORJSONResponse
        ``{success, data, pagination, meta}``.
    """
    return ORJSONResponse(content=await service.list_blogs(page))


@router.get(
    "/recent",
    response_class=ORJSONResponse,
    summary="Recent blogs",
    description="The 10 newest blogs with their author.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [
                            {
                                "id": "665f1c2e9b1d8a0012345678",
                                "user_id": "u1",
                                "title": "Ten Ways to Improve Crawl Budget",
                                "status": "published",
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
        401: _UNAUTHORIZED,
        403: _FORBIDDEN,
    },
    operation_id="blogs_recent",
)
@timed("/blogs/recent")
async def recent_blogs(service: AnalyticsServiceDep, admin: AdminDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.recent_blogs())


@router.get(
    "/{blog_id}",
    response_class=ORJSONResponse,
    summary="Get a blog",
    description="The full blog document, content included.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            "_id": "665f1c2e9b1d8a0012345678",
                            "title": "Ten Ways to Improve Crawl Budget",
                            "content": "<p>Crawl budget is...</p>",
                            "word_count": 1840,
                            "status": "published",
                        },
                        "meta": {"timestamp": "2025-01-01T00:00:00.000Z"},
                    },
                },
            },
        },
        400: _BAD_ID,
        401: _UNAUTHORIZED,
        404: _POST_NOT_FOUND,
    },
    operation_id="blogs_read",
)
@timed("/blogs/read")
async def read_blog(blog_id: str, service: BlogServiceDep, user: CurrentUserDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.get_blog(blog_id))


@router.put(
    "/{blog_id}",
    response_class=ORJSONResponse,
    summary="Edit a blog",
    description="Replace the title, content or word count. A title or content is required.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Blog post updated successfully",
                        "meta": {"timestamp": "2025-01-01T00:00:00.000Z", "modifiedCount": 1},
                    },
                },
            },
        },
        400: _BAD_ID,
        401: _UNAUTHORIZED,
        403: _FORBIDDEN,
        404: _POST_NOT_FOUND,
    },
    operation_id="blogs_update",
)
@timed("/blogs/update")
async def update_blog(blog_id: str, body: BlogUpdate, service: BlogServiceDep, admin: AdminDep) -> ORJSONResponse:
    """Edits drop every cached blog page."""
    result = await service.update_blog(blog_id, body)
    logger.info(f"Blog {blog_id} edited by {actor(admin)}")
    return ORJSONResponse(content=result)


@router.api_route(
    "/{blog_id}/delete",
    methods=["POST", "DELETE"],
    response_class=ORJSONResponse,
    summary="Soft delete a blog",
    description="Marks the blog inactive and records who deleted it and when.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Blog deleted successfully",
                        "blog_id": "665f1c2e9b1d8a0012345678",
                        "deleted_at": "2025-01-01T00:00:00+00:00",
                        "deleted_by": "7f0c2b9e-5d4a-4c1e-9b7a-2a3d4e5f6a7b",
                    },
                },
            },
        },
        400: _BAD_ID,
        401: _UNAUTHORIZED,
        403: _FORBIDDEN,
        404: _NOT_FOUND,
    },
)
@timed("/blogs/delete")
async def delete_blog(blog_id: str, service: BlogServiceDep, admin: AdminDep) -> ORJSONResponse:
    """
    Soft delete a blog.

    Raises
    ------
    ValidationError
        Malformed id (400).
    NotFoundError
        No blog with that id (404).
    ConflictError
        The blog is already deleted (400).
    """
    result = await service.delete(blog_id, actor(admin))
    logger.info(f"Blog {blog_id} deleted by {result['deleted_by']}")
    return ORJSONResponse(content=result)


@router.api_route(
    "/{blog_id}/restore",
    methods=["POST", "PUT"],
    response_class=ORJSONResponse,
    summary="Restore a soft-deleted blog",
    description="Marks the blog active again and records who restored it and when.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Blog restored successfully",
                        "blog_id": "665f1c2e9b1d8a0012345678",
                        "restored_at": "2025-01-01T00:00:00+00:00",
                        "restored_by": "7f0c2b9e-5d4a-4c1e-9b7a-2a3d4e5f6a7b",
                    },
                },
            },
        },
        400: _BAD_ID,
        401: _UNAUTHORIZED,
        403: _FORBIDDEN,
        404: _NOT_FOUND,
    },
)
@timed("/blogs/restore")
async def restore_blog(blog_id: str, service: BlogServiceDep, admin: AdminDep) -> ORJSONResponse:
    """Restore a blog; restoring an active blog is a 400."""
    result = await service.restore(blog_id, actor(admin))
    logger.info(f"Blog {blog_id} restored by {result['restored_by']}")
    return ORJSONResponse(content=result)
