# app/routes/cache.py
"""Admin endpoints over the in-process TTL cache."""

from logging import getLogger
from typing import Annotated

from fastapi import APIRouter, Query, Request
from fastapi.responses import ORJSONResponse

from app.configs import file_logger
from app.decorators import timed
from app.dependencies import AdminDep, CacheDep
from app.managers import limiter

logger = file_logger(getLogger(__name__))

router = APIRouter(prefix="/cache", tags=["🗄️ Cache"])


@router.get(
    "/stats",
    response_class=ORJSONResponse,
    summary="Get cache statistics",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            "size": 3,
                            "maxSize": 200,
                            "keys": ["users:total", "blogs:list:limit:10|order:desc|page:1|search:|sort:created_at"],
                            "hits": 41,
                            "misses": 7,
                            "hitRate": "85.42%",
                        },
                    },
                },
            },
        },
    },
    operation_id="cache_stats",
)
@timed("/cache/stats")
async def get_cache_stats(manager: CacheDep, admin: AdminDep) -> ORJSONResponse:
    """
    Get cache statistics.

    Returns:
        Size, capacity, live keys and hit/miss counters.
    """
    return ORJSONResponse(content={"success": True, "data": manager.stats()})


@router.post(
    "/clear",
    response_class=ORJSONResponse,
    summary="Clear cache entries",
    description="With `prefix`, drop only the keys starting with it; otherwise drop everything.",
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "data": {"removed": 12}}}}},
        429: {
            "description": "Rate limit exceeded",
            "content": {"application/json": {"example": {"success": False, "error": "Rate limit exceeded"}}},
        },
    },
    operation_id="cache_clear",
)
@timed("/cache/clear")
@limiter.limit("10/hour")
async def clear_cache(
    request: Request,
    manager: CacheDep,
    admin: AdminDep,
    prefix: Annotated[str | None, Query(description="Key prefix, e.g. `blogs:`")] = None,
) -> ORJSONResponse:
    """
    Clear cache entries.

    Returns:
        How many keys were removed.
    """
    removed = manager.invalidate_pattern(prefix) if prefix else manager.clear()
    logger.info(f"Cache cleared by {admin.get('email')} (prefix={prefix!r}, removed={removed})")
    return ORJSONResponse(content={"success": True, "data": {"removed": removed}})
