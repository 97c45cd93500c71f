# app/main.py

"""Admin Console API - dashboard aggregation, caching and LLM provider relay."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.status import HTTP_200_OK, HTTP_503_SERVICE_UNAVAILABLE
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.configs import settings
from app.decorators import timed
from app.dependencies import AdminDep
from app.errors import (
    BaseAppError,
    ProviderError,
    ai_exception_handler,
    api_exception_handler,
    validation_exception_handler,
)
from app.managers import (
    get_system_metrics,
    limiter,
    metrics_manager,
    rate_limit_exceeded_handler,
)
from app.middleware import (
    LoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
    lifespan,
)
from app.monitoring import HealthChecker
from app.routes import (
    access_router,
    admin_router,
    ai_router,
    analytics_router,
    blog_router,
    cache_router,
    console_router,
    user_router,
)
from app.utils.helpers import iso_now

app = FastAPI(
    title=settings.APP_NAME,
    description="Admin dashboard API: enriched listings, TTL cache and LLM provider relay",
    version="1.0.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    swagger_ui_parameters={
        "docExpansion": "none",
        "operationsSorter": "method",
    },
)

configure_cors(app)

app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
# Trust X-Forwarded-* from the reverse proxy in front of the service
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")


routes = [
    blog_router,
    user_router,
    admin_router,
    analytics_router,
    access_router,
    cache_router,
    ai_router,
    console_router,
]

_ = [app.include_router(router) for router in routes]

errors = [
    (RateLimitExceeded, rate_limit_exceeded_handler),
    (ProviderError, ai_exception_handler),
    (BaseAppError, api_exception_handler),
    (RequestValidationError, validation_exception_handler),
    (Exception, api_exception_handler),
]

_ = [app.add_exception_handler(exc_type, handler) for exc_type, handler in errors]

app.state.limiter = limiter


@app.get(
    "/health",
    tags=["🩺 Health"],
    summary="Health check endpoint",
    response_class=ORJSONResponse,
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "status": "ready",
                        "timestamp": "2025-01-01T00:00:00.000Z",
                        "version": "1.0.0",
                        "checks": {
                            "database": {"status": "pass", "response_ms": 3},
                            "monitoring_database": {"status": "pass", "response_ms": 4},
                            "document_store": {"status": "pass", "response_ms": 2},
                            "cache": {"status": "pass", "size": 3, "maxSize": 200},
                            "disk": {"status": "pass", "usage_percent": 41.2},
                        },
                    },
                },
            },
        },
        503: {"description": "A store is unreachable"},
    },
    operation_id="health_check",
)
@limiter.exempt
async def health_check(request: Request) -> ORJSONResponse:
    """
    Readiness of the stores and the cache.

    Returns
    -------
    ORJSONResponse
        200 when every check passes or warns, 503 otherwise.
    """
    status = await HealthChecker(request.app, app.version).check_readiness()
    return ORJSONResponse(
        content=status.to_dict(),
        status_code=HTTP_200_OK if status.is_healthy else HTTP_503_SERVICE_UNAVAILABLE,
    )


@app.get(
    "/metrics",
    tags=["📈 Metrics"],
    response_class=ORJSONResponse,
    summary="Get metrics",
    description="Per-endpoint request counts and timings, LLM traffic and process metrics.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "timestamp": "2025-01-01T00:00:00.000Z",
                        "api_metrics": {
                            "endpoints": {
                                "/blogs/list": {
                                    "requests": 12,
                                    "errors": 0,
                                    "error_rate": 0.0,
                                    "avg_ms": 84.1,
                                    "p95_ms": 131.7,
                                },
                            },
                            "llm_requests": {"openai": 3},
                            "placeholders": {"user": 1},
                            "rate_limit_hits": 0,
                        },
                        "system_metrics": {"cpu_percent": 4.2, "disk_percent": 41.2},
                    },
                },
            },
        },
    },
    operation_id="get_metrics",
)
@timed("/metrics")
async def get_metrics(admin: AdminDep) -> ORJSONResponse:
    """
    Get API performance metrics.

    Returns
    -------
    ORJSONResponse
        ``{timestamp, api_metrics, system_metrics}``.
    """
    return ORJSONResponse(
        content={
            "timestamp": iso_now(),
            "api_metrics": metrics_manager.get_metrics(),
            "system_metrics": await get_system_metrics(),
        },
    )


@app.get("/", tags=["🏠 Root"], summary="Root access", operation_id="root_access")
async def root() -> ORJSONResponse:
    """Service banner."""
    return ORJSONResponse(content={"message": f"Welcome to {settings.APP_NAME}"})
