"""Request validation errors rendered in the common error envelope."""

from logging import getLogger
from typing import Any, cast

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_400_BAD_REQUEST

from app.configs import file_logger
from app.utils.helpers import host

logger = file_logger(getLogger(__name__))


def format_error(error: dict[str, Any]) -> dict[str, Any]:
    """
    Flatten one pydantic error.

    ``loc`` starts with where the value came from (``body``, ``query``,
    ``path``, ``header``, ``cookie``); the rest is the dotted field path.
    Submitted values are left out so passwords and API keys never echo back.
    """
    location, *path = error.get("loc") or ("body",)
    formatted: dict[str, Any] = {
        "field": ".".join(str(part) for part in path) or str(location),
        "location": str(location),
        "message": error.get("msg", "Invalid value"),
        "type": error.get("type", "validation_error"),
    }
    if "ctx" in error:
        # Non-serializable ctx values (like ValueError) become strings
        formatted["context"] = {
            key: str(value) if isinstance(value, Exception) else value for key, value in error["ctx"].items()
        }
    return formatted


async def validation_exception_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Answer 400 ``{"success": false, "error": "Validation failed", "errors": [...]}``.

    Args:
        request: The incoming request.
        exc: The RequestValidationError exception.
    """
    errors = [format_error(error) for error in cast(RequestValidationError, exc).errors()]
    fields = ", ".join(f"{error['location']}.{error['field']}" for error in errors)
    logger.warning(f"Validation failed for {host(request)} at {request.url.path}: {fields}")

    return ORJSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "Validation failed",
            "errors": errors,
        },
    )
