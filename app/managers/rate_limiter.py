# app/managers/rate_limiter.py

"""Rate limiter configuration using slowapi."""

from hashlib import sha256
from logging import getLogger
from typing import cast

from fastapi import Request
from fastapi.responses import ORJSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from app.configs import LimiterConfig, file_logger, settings
from app.managers.metrics import metrics_manager
from app.utils.helpers import host

logger = file_logger(getLogger(__name__))

_BEARER = "bearer "


def _fingerprint(secret: str) -> str:
    return sha256(secret.encode()).hexdigest()[:16]


def get_identifier(request: Request) -> str:
    """
    Get the rate-limit bucket for a request.

    Playground callers are bucketed by the provider key they send, admin
    callers by their session, everyone else by client address. Secrets are
    hashed so raw keys never reach the limiter storage.

    Args:
        request: FastAPI request object.

    Returns:
        Unique identifier string.
    """
    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith(_BEARER) and authorization[len(_BEARER) :].strip():
        return f"key:{_fingerprint(authorization[len(_BEARER) :].strip())}"

    session = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if session:
        return f"session:{_fingerprint(session)}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(**LimiterConfig().model_dump(), key_func=get_identifier)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Render slowapi's rejection in the common error envelope.

    Args:
        request: FastAPI request object.
        exc: RateLimitExceeded exception.

    Returns:
        429 with the limit that was hit.
    """
    http_exc = cast(RateLimitExceeded, exc)
    metrics_manager.record_rate_limit_hit()
    logger.warning(f"Rate limit {http_exc.detail} hit by {host(request)} at {request.url.path}")
    return ORJSONResponse(
        status_code=HTTP_429_TOO_MANY_REQUESTS,
        content={
            "success": False,
            "error": "Rate limit exceeded",
            "allowed_requests": http_exc.detail,
        },
    )
