# app/routes/access.py

"""
Access Routes.

The sign-up allow-list and the free-analysis form submissions waiting for
review. Every endpoint requires an admin session.
"""

from logging import getLogger
from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_201_CREATED

from app.configs import file_logger
from app.decorators import timed
from app.dependencies import (
    AdminDep,
    AuthorizedUserPageDep,
    AuthorizedUserServiceDep,
    FormSubmissionPageDep,
    FormSubmissionServiceDep,
)
from app.schemas import AuthorizedUserCreate, FormSubmissionUpdate

router = APIRouter(tags=["🔐 Access"])

logger = file_logger(getLogger(__name__))

_PAGINATION_EXAMPLE = {
    "currentPage": 1,
    "totalPages": 1,
    "total": 1,
    "limit": 10,
    "hasNextPage": False,
    "hasPrevPage": False,
}
_AUTHORIZED_EXAMPLE = {
    "id": "3d5c2b1a-7e6f-4a9b-8c0d-1e2f3a4b5c6d",
    "email": "ops@acme.example",
    "company_name": "Acme",
    "user_id": None,
    "created_at": "2025-01-01T09:14:00+00:00",
}
_SUBMISSION_EXAMPLE = {
    "id": "9a8b7c6d-5e4f-4a3b-9c2d-1e0f9a8b7c6d",
    "email": "founder@startup.example",
    "website": "https://startup.example",
    "name": "Sam",
    "message": "Can you look at our SEO?",
    "ip_address": "203.0.113.7",
    "status": "pending",
    "notes": None,
    "processed_at": None,
    "created_at": "2025-01-01T09:14:00+00:00",
    "updated_at": None,
    "ipDetails": {
        "country": "India",
        "countryCode": "IN",
        "region": "Karnataka",
        "city": "Bengaluru",
        "timezone": "Asia/Kolkata",
        "flag": "🇮🇳",
        "isLocal": False,
    },
}
_AUTHORIZED_NOT_FOUND = {
    "description": "Not found",
    "content": {"application/json": {"example": {"success": False, "error": "Authorized user not found"}}},
}
_SUBMISSION_NOT_FOUND = {
    "description": "Not found",
    "content": {"application/json": {"example": {"success": False, "error": "Form submission not found"}}},
}


@router.get(
    "/authorized-users",
    response_class=ORJSONResponse,
    summary="List authorized users",
    description="Allow-listed emails newest first, searchable by email or company name.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [_AUTHORIZED_EXAMPLE | {"user_details": None}],
                        "pagination": _PAGINATION_EXAMPLE,
                    },
                },
            },
        },
    },
    operation_id="authorized_users_list",
)
@timed("/authorized-users")
async def list_authorized_users(
    page: AuthorizedUserPageDep,
    service: AuthorizedUserServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.list_authorized(page))


@router.post(
    "/authorized-users",
    status_code=HTTP_201_CREATED,
    response_class=ORJSONResponse,
    summary="Authorize an email",
    description="Add an email to the sign-up allow-list. `email` and `company_name` are required.",
    responses={
        201: {"content": {"application/json": {"example": {"success": True, "data": _AUTHORIZED_EXAMPLE}}}},
        409: {
            "description": "Email already on the list",
            "content": {
                "application/json": {
                    "example": {"success": False, "error": "Email already exists in authorized users"},
                },
            },
        },
    },
    operation_id="authorized_users_create",
)
@timed("/authorized-users/create")
async def create_authorized_user(
    body: AuthorizedUserCreate,
    service: AuthorizedUserServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    result = await service.add(body)
    logger.info(f"{body.email} authorized by {admin.get('email')}")
    return ORJSONResponse(content=result, status_code=HTTP_201_CREATED)


@router.get(
    "/authorized-users/{record_id}",
    response_class=ORJSONResponse,
    summary="Get an authorized user",
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "data": _AUTHORIZED_EXAMPLE}}}},
        404: _AUTHORIZED_NOT_FOUND,
    },
    operation_id="authorized_users_read",
)
@timed("/authorized-users/read")
async def read_authorized_user(
    record_id: str,
    service: AuthorizedUserServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.get_authorized(record_id))


@router.delete(
    "/authorized-users/{record_id}",
    response_class=ORJSONResponse,
    summary="Remove an authorized user",
    responses={
        200: {"content": {"application/json": {"example": {"success": True}}}},
        404: _AUTHORIZED_NOT_FOUND,
    },
    operation_id="authorized_users_delete",
)
@timed("/authorized-users/delete")
async def delete_authorized_user(
    record_id: str,
    service: AuthorizedUserServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    result = await service.remove(record_id)
    logger.info(f"Authorized user {record_id} removed by {admin.get('email')}")
    return ORJSONResponse(content=result)


@router.get(
    "/form-submissions",
    response_class=ORJSONResponse,
    summary="List form submissions",
    description=(
        "Free-analysis requests newest first, searchable by email or website and "
        "filterable by `status`. Each row carries the location of its IP in `ipDetails`."
    ),
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [_SUBMISSION_EXAMPLE],
                        "pagination": _PAGINATION_EXAMPLE,
                    },
                },
            },
        },
    },
    operation_id="form_submissions_list",
)
@timed("/form-submissions")
async def list_form_submissions(
    page: FormSubmissionPageDep,
    service: FormSubmissionServiceDep,
    admin: AdminDep,
    status: Annotated[str | None, Query(description="Only submissions in this status")] = None,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.list_submissions(page, status))


@router.get(
    "/form-submissions/{submission_id}",
    response_class=ORJSONResponse,
    summary="Get a form submission",
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "data": _SUBMISSION_EXAMPLE}}}},
        404: _SUBMISSION_NOT_FOUND,
    },
    operation_id="form_submissions_read",
)
@timed("/form-submissions/read")
async def read_form_submission(
    submission_id: str,
    service: FormSubmissionServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.get_submission(submission_id))


@router.patch(
    "/form-submissions/{submission_id}",
    response_class=ORJSONResponse,
    summary="Review a form submission",
    description="Set `status`, `notes` or `processed_at`; other fields in the body are ignored.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {"success": True, "data": _SUBMISSION_EXAMPLE | {"status": "processed"}},
                },
            },
        },
        404: _SUBMISSION_NOT_FOUND,
    },
    operation_id="form_submissions_update",
)
@timed("/form-submissions/update")
async def update_form_submission(
    submission_id: str,
    body: FormSubmissionUpdate,
    service: FormSubmissionServiceDep,
    admin: AdminDep,
) -> ORJSONResponse:
    return ORJSONResponse(content=await service.update(submission_id, body))
