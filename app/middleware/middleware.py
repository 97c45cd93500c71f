# app/middleware/middleware.py
"""
Middleware components for the Admin Console API.

This module contains middleware for request logging and security headers,
the CORS setup, and the lifespan handler that opens and closes the shared
store connections and upstream HTTP clients.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from logging import getLogger
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from httpx import AsyncClient, Timeout
from rich.traceback import install
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.clients.identity_client import IdentityClient
from app.clients.ip_location import IPLocationClient
from app.clients.scraper_client import ScraperClient
from app.configs import file_logger, settings
from app.db import DocumentStore, close_db, init_db
from app.managers import cache_manager
from app.monitoring import bind_request_id, clear_context, configure_logging
from app.utils.helpers import get_summary, host

configure_logging()
install()

logger = file_logger(getLogger(__name__))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Open the stores and upstream clients on startup and close them on shutdown."""
    logger.info(f"Starting {app.title}...")
    try:
        await init_db()

        documents = DocumentStore()
        await documents.ping()
        app.state.documents = documents

        app.state.identity = IdentityClient()
        app.state.scraper = ScraperClient()
        app.state.ip_location = IPLocationClient()
        app.state.llm_client = AsyncClient(timeout=Timeout(settings.LLM_REQUEST_TIMEOUT))

        await cache_manager.initialize()

        if settings.LOG_TO_FILE:
            logger.info(f"Logging to file {settings.LOG_FILE}")
        logger.info("Services initialized successfully")
        logger.info("  - API Documentation: /docs")
        logger.info("  - Health Check: /health")
    except Exception:
        logger.exception("Failed to initialize services")
        raise

    yield

    logger.info(f"Shutting down {app.title}...")
    await cache_manager.shutdown()
    await app.state.llm_client.aclose()
    await app.state.scraper.close()
    await app.state.ip_location.close()
    await app.state.identity.close()
    await app.state.documents.close()
    await close_db()
    logger.info("Services cleaned up successfully")


def configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware for the application."""
    allowed_origins: list[str] = [
        "http://localhost:3000",  # Next.js development
        "http://127.0.0.1:3000",
    ]

    if frontend_url := settings.PRODUCTION_FRONTEND_URL:
        allowed_origins.append(frontend_url)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Bind a request id, log the request and time the response."""
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        bind_request_id(request_id, method=request.method, path=request.url.path)
        start_time = perf_counter()

        route_info = get_summary(request) or f"{request.method} {request.url.path}"
        logger.info(f"Request: {route_info}, from ip: {host(request)}")

        try:
            response = await call_next(request)
            duration = perf_counter() - start_time
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{duration:.4f}"
            logger.info(
                f"Response: {response.status_code} for {request.method} {request.url.path} "
                f"in {duration:.2f}s",
            )
            return response
        finally:
            clear_context()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Add security headers to all responses."""

        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response
