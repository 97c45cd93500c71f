# app/routes/analytics.py

"""
Analytics Routes.

Dashboard widgets: headline metrics, who is online, growth charts and the
recent payments. Recent projects and blogs sit with the project and blog
routes.

Summary
-------
Endpoints include:
  - Headline metrics (users, plans, captured payments)
  - Active users of the last 24 hours
  - User, project and blog growth per day or month
  - Recent payments

Notes
-----
Growth charts cut periods in ``ANALYTICS_TIMEZONE``. ``start_date`` and
``end_date`` are local dates and must be given together; without them the
chart covers the last six months.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse

from app.decorators import timed
from app.dependencies import AdminDep, AnalyticsServiceDep
from app.services.analytics import GrowthWindow

router = APIRouter(tags=["📊 Analytics"])

_BAD_RANGE = {
    "description": "Malformed date, reversed or over-long range, or unknown period_type",
    "content": {
        "application/json": {
            "example": {"success": False, "error": "Invalid date format. Use YYYY-MM-DD format."},
        },
    },
}
_USER_FIELDS_EXAMPLE = {
    "user_email": "jane@acme.example",
    "user_name": "Jane Doe",
    "user_avatar": None,
}


def growth_window(
    period_type: Annotated[str | None, Query(description="day or month (default month)")] = None,
    start_date: Annotated[str | None, Query(description="First local day, YYYY-MM-DD")] = None,
    end_date: Annotated[str | None, Query(description="Last local day, YYYY-MM-DD")] = None,
) -> GrowthWindow:
    return GrowthWindow.from_query(period_type, start_date, end_date)


GrowthWindowDep = Annotated[GrowthWindow, Depends(growth_window)]


def _growth_example(name: str) -> dict:
    return {
        "content": {
            "application/json": {
                "example": {
                    "success": True,
                    "data": {
                        f"total_{name}": 42,
                        "growth_data": [
                            {"label": "Dec", "year": 2024, "count": 3, "period_number": 12},
                            {"label": "Jan", "year": 2025, "count": 5, "period_number": 1},
                        ],
                        f"current_period_{name}": 5,
                        f"last_period_{name}": 3,
                        "period_type": "month",
                    },
                },
            },
        },
    }


@router.get(
    "/analytics/metrics",
    response_class=ORJSONResponse,
    summary="Headline metrics",
    description="User count, free and pro accounts, captured payments and their total amount.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            "total_users": 120,
                            "free_users": 100,
                            "pro_users": 20,
                            "total_payments": 35,
                            "total_amount": 1749300,
                        },
                    },
                },
            },
        },
    },
    operation_id="analytics_metrics",
)
@timed("/analytics/metrics")
async def metrics(service: AnalyticsServiceDep, admin: AdminDep) -> ORJSONResponse:
    """A counter that cannot be read is reported as 0."""
    return ORJSONResponse(content=await service.metrics())


@router.get(
    "/analytics/active-users",
    response_class=ORJSONResponse,
    summary="Active users",
    description="Users with activity in the last 24 hours; `is_active` marks the last 5 minutes.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            "active_users": [
                                {
                                    "user_id": "0b6c7f0e-3f8a-4a47-9d1e-2f7a1f9b2c11",
                                    "user_email": "jane@acme.example",
                                    "name": "Jane Doe",
                                    "last_activity": "2025-01-01T09:14:00+00:00",
                                    "provider": "google",
                                    "avatar": "https://api.dicebear.com/9.x/adventurer/svg?seed=jane",
                                    "is_active": True,
                                },
                            ],
                            "total_count": 1,
                            "query_window_hours": 24,
                            "active_window_minutes": 5,
                        },
                    },
                },
            },
        },
    },
    operation_id="analytics_active_users",
)
@timed("/analytics/active-users")
async def active_users(service: AnalyticsServiceDep, admin: AdminDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.active_users())


@router.get(
    "/analytics/user-growth",
    response_class=ORJSONResponse,
    summary="User growth",
    description="New users per day or month; `total_users` counts every user.",
    responses={200: _growth_example("users"), 400: _BAD_RANGE},
    operation_id="analytics_user_growth",
)
@timed("/analytics/user-growth")
async def user_growth(admin: AdminDep, window: GrowthWindowDep, service: AnalyticsServiceDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.user_growth(window))


@router.get(
    "/analytics/project-growth",
    response_class=ORJSONResponse,
    summary="Project growth",
    description="New projects per day or month.",
    responses={200: _growth_example("projects"), 400: _BAD_RANGE},
    operation_id="analytics_project_growth",
)
@timed("/analytics/project-growth")
async def project_growth(admin: AdminDep, window: GrowthWindowDep, service: AnalyticsServiceDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.project_growth(window))


@router.get(
    "/analytics/blogs-growth",
    response_class=ORJSONResponse,
    summary="Blog growth",
    description="New blogs per day or month, grouped in the document store.",
    responses={200: _growth_example("blogs"), 400: _BAD_RANGE},
    operation_id="analytics_blogs_growth",
)
@timed("/analytics/blogs-growth")
async def blogs_growth(admin: AdminDep, window: GrowthWindowDep, service: AnalyticsServiceDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.blog_growth(window))


@router.get(
    "/payments/recent",
    response_class=ORJSONResponse,
    summary="Recent payments",
    description="The 50 newest payments in any status, with the paying user.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": [
                            {
                                "id": "5e1d7c1a-9a43-4d0e-8f4e-3b2a1c0d9e8f",
                                "user_id": "0b6c7f0e-3f8a-4a47-9d1e-2f7a1f9b2c11",
                                "amount": 49900,
                                "currency": "INR",
                                "status": "captured",
                                "razorpay_payment_id": "pay_N3x2Yz",
                                "description": "Pro plan",
                                "created_at": "2025-01-01T09:14:00+00:00",
                            }
                            | _USER_FIELDS_EXAMPLE,
                        ],
                    },
                },
            },
        },
    },
    operation_id="payments_recent",
)
@timed("/payments/recent")
async def recent_payments(service: AnalyticsServiceDep, admin: AdminDep) -> ORJSONResponse:
    return ORJSONResponse(content=await service.recent_payments())
