# app/routes/user.py

"""
User Routes.

Admin views over the identity provider's users.

Summary
-------
Endpoints include:
  - List users (``page``/``perPage``/``search``)
  - Create a confirmed user
  - Read, update and delete one user
  - A user's blogs, projects, usage and invoices

Notes
-----
The identity provider has no search, so a search walks every user and
paginates in memory; an unsearched listing reads one upstream page and
takes the total from a five-minute cached count.
"""

from logging import getLogger

from fastapi import APIRouter
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_201_CREATED

from app.configs import file_logger
from app.decorators import timed
from app.dependencies import (
    AdminDep,
    BlogServiceDep,
    ProjectServiceDep,
    UsagePageDep,
    UserItemsPageDep,
    UserPageDep,
    UserProfileServiceDep,
    UserServiceDep,
)
from app.schemas import UserCreate, UserUpdate

router = APIRouter(prefix="/users", tags=["👤 Users"])

logger = file_logger(getLogger(__name__))

_USER_EXAMPLE = {
    "id": "0b6c7f0e-3f8a-4a47-9d1e-2f7a1f9b2c11",
    "name": "Jane Doe",
    "email": "jane@acme.example",
    "role": "member",
    "plan": "Free",
    "spend": "$1.2k",
    "lastActive": "Jan 5",
    "avatar": "https://api.dicebear.com/9.x/adventurer/svg?seed=0b6c7f0e-3f8a-4a47-9d1e-2f7a1f9b2c11",
    "createdAt": "2024-11-02T09:14:00Z",
}
_ITEMS_PAGINATION_EXAMPLE = {
    "currentPage": 1,
    "totalPages": 1,
    "total": 1,
    "limit": 5,
    "hasNextPage": False,
    "hasPrevPage": False,
}
_BAD_USER_ID = {
    "description": "Malformed user id",
    "content": {"application/json": {"example": {"success": False, "error": "Invalid user ID format"}}},
}
_USER_NOT_FOUND = {
    "description": "Not found",
    "content": {"application/json": {"example": {"success": False, "error": "User not found"}}},
}


@router.get(
    "",
    response_class=ORJSONResponse,
    summary="List users",
    description="Paginated identity-provider users, normalized for the dashboard.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [_USER_EXAMPLE],
                        "pagination": {
                            "currentPage": 1,
                            "totalPages": 12,
                            "total": 117,
                            "limit": 10,
                            "hasNextPage": True,
                            "hasPrevPage": False,
                        },
                    },
                },
            },
        },
        401: {
            "description": "No valid session",
            "content": {"application/json": {"example": {"success": False, "error": "Authentication required"}}},
        },
        403: {
            "description": "Not an admin",
            "content": {"application/json": {"example": {"success": False, "error": "Admin access required"}}},
        },
    },
    operation_id="users_list",
)
@timed("/users")
async def list_users(page: UserPageDep, service: UserServiceDep, admin: AdminDep) -> ORJSONResponse:
    """
    List users.

    Parameters
    ----------
    page : PageRequest
        ``page``, ``perPage`` (clamped to 50) and the lower-cased ``search``.
    service : UserService
        User service.
    admin : IdentityUser
        Admin session user.

    Returns
    -------
    ORJSONResponse
        ``{success, data, pagination}``.
    """
    return ORJSONResponse(content=await service.list_users(page))


@router.post(
    "",
    status_code=HTTP_201_CREATED,
    response_class=ORJSONResponse,
    summary="Create user",
    description="Create a user with a confirmed email. `email` and `password` are required.",
    responses={
        201: {"content": {"application/json": {"example": {"success": True, "data": _USER_EXAMPLE}}}},
        400: {
            "description": "Validation failed",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error": "Validation failed",
                        "errors": [{"field": "email", "message": "Field required", "type": "missing"}],
                    },
                },
            },
        },
    },
    operation_id="users_create",
)
@timed("/users/create")
async def create_user(body: UserCreate, service: UserServiceDep, admin: AdminDep) -> ORJSONResponse:
    """Create a user and drop the cached user count."""
    result = await service.create_user(body)
    logger.info(f"User {body.email} created by {admin.get('email')}")
    return ORJSONResponse(content=result, status_code=HTTP_201_CREATED)


@router.get(
    "/{user_id}",
    response_class=ORJSONResponse,
    summary="Get user details",
    description=(
        "The user with their profile (`userInformation`), billing account "
        "(`accountInformation`), five newest projects and project count."
    ),
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            "user": _USER_EXAMPLE,
                            "userInformation": {"company_name": "Acme", "role": "Founder"},
                            "accountInformation": {"plan_type": "pro", "credits": 120},
                            "projects": [{"id": "p1", "name": "Acme Blog", "gsc_connected": True}],
                            "totalProjects": 1,
                        },
                    },
                },
            },
        },
        400: _BAD_USER_ID,
        404: _USER_NOT_FOUND,
    },
    operation_id="users_read",
)
@timed("/users/read")
async def read_user(user_id: str, service: UserProfileServiceDep, admin: AdminDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.profile(user_id))


@router.patch(
    "/{user_id}",
    response_class=ORJSONResponse,
    summary="Update user",
    description="Change the email, password, `metadata` or `appMetadata` of a user.",
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "data": _USER_EXAMPLE}}}},
        400: _BAD_USER_ID,
        404: _USER_NOT_FOUND,
    },
    operation_id="users_update",
)
@timed("/users/update")
async def update_user(user_id: str, body: UserUpdate, service: UserServiceDep, admin: AdminDep) -> ORJSONResponse:
    result = await service.update_user(user_id, body)
    logger.info(f"User {user_id} updated by {admin.get('email')}")
    return ORJSONResponse(content=result)


@router.delete(
    "/{user_id}",
    response_class=ORJSONResponse,
    summary="Delete user",
    responses={
        200: {"content": {"application/json": {"example": {"success": True}}}},
        400: _BAD_USER_ID,
        404: _USER_NOT_FOUND,
    },
    operation_id="users_delete",
)
@timed("/users/delete")
async def delete_user(user_id: str, service: UserServiceDep, admin: AdminDep) -> ORJSONResponse:
    result = await service.delete_user(user_id)
    logger.info(f"User {user_id} deleted by {admin.get('email')}")
    return ORJSONResponse(content=result)


@router.get(
    "/{user_id}/blogs",
    response_class=ORJSONResponse,
    summary="List a user's blogs",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [{"_id": "665f1c2e9b1d8a0012345678", "title": "Ten Ways to Improve Crawl Budget"}],
                        "pagination": _ITEMS_PAGINATION_EXAMPLE,
                    },
                },
            },
        },
    },
    operation_id="users_blogs",
)
@timed("/users/blogs")
async def list_user_blogs(
    user_id: str,
    page: UserItemsPageDep,
    service: BlogServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.list_for_user(user_id, page))


@router.get(
    "/{user_id}/projects",
    response_class=ORJSONResponse,
    summary="List a user's projects",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [{"id": "p1", "name": "Acme Blog", "gsc_connected": True}],
                        "pagination": _ITEMS_PAGINATION_EXAMPLE,
                    },
                },
            },
        },
        400: _BAD_USER_ID,
    },
    operation_id="users_projects",
)
@timed("/users/projects")
async def list_user_projects(
    user_id: str,
    page: UserItemsPageDep,
    service: ProjectServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.list_for_user(user_id, page))


@router.get(
    "/{user_id}/usage",
    response_class=ORJSONResponse,
    summary="List a user's usage",
    description="Metered operations with their project; the totals cover every record of the user.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [
                            {
                                "id": "4f3e2d1c-0b9a-4877-a665-544332211000",
                                "operation": "blog_generation",
                                "base_cost": 2.5,
                                "actual_charge": 3.0,
                                "project_details": {
                                    "id": "p1",
                                    "name": "Acme Blog",
                                    "url": "https://acme.example",
                                    "user_id": "u1",
                                },
                            },
                        ],
                        "pagination": _ITEMS_PAGINATION_EXAMPLE,
                        "totalBaseCost": 2.5,
                        "totalActualCharge": 3.0,
                    },
                },
            },
        },
        400: _BAD_USER_ID,
    },
    operation_id="users_usage",
)
@timed("/users/usage")
async def list_user_usage(
    user_id: str,
    page: UsagePageDep,
    service: UserProfileServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.usage_history(user_id, page))


@router.get(
    "/{user_id}/invoices",
    response_class=ORJSONResponse,
    summary="List a user's invoices",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [{"invoice_number": "INV-0001", "amount": 49900, "currency": "INR", "status": "paid"}],
                        "pagination": _ITEMS_PAGINATION_EXAMPLE,
                    },
                },
            },
        },
        400: _BAD_USER_ID,
    },
    operation_id="users_invoices",
)
@timed("/users/invoices")
async def list_user_invoices(
    user_id: str,
    page: UserItemsPageDep,
    service: UserProfileServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.invoices_page(user_id, page))
