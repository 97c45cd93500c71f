from collections.abc import Awaitable, Callable
from logging import Logger
from typing import Any

from fastapi import Request
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from app.configs.settings import DEFAULT_ERROR_MESSAGE
from app.utils.helpers import host


class BaseAppError(Exception):
    """Base exception class for application errors."""

    def __init__(
        self,
        detail: str = "Internal Server Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        self.detail = detail
        self.status_code = status_code

    def __str__(self) -> str:
        return self.detail

    @property
    def log_message(self) -> str:
        """Message written to the server log, may carry more than the client sees."""
        return self.detail

    def to_content(self) -> dict[str, Any]:
        """Build the JSON error envelope, public attributes included."""
        content: dict[str, Any] = {"success": False, "error": self.detail}
        content.update(
            {
                k: v
                for k, v in self.__dict__.items()
                if k not in ("status_code", "detail") and not k.startswith("_")
            },
        )
        return content


def create_exception_handler(
    logger: Logger,
) -> Callable[[Request, Exception], Awaitable[ORJSONResponse]]:
    """
    Create a standardized exception handler for the application.

    Args:
        logger: Logger instance to use for logging exceptions.

    Returns:
        A callable exception handler.
    """

    async def handler(request: Request, exc: Exception) -> ORJSONResponse:
        if not isinstance(exc, BaseAppError):
            logger.error(
                f"Unhandled {type(exc).__name__} for ip: {host(request)} "
                f"for endpoint {request.url.path}",
                exc_info=exc,
            )
            return ORJSONResponse(
                content={"success": False, "error": DEFAULT_ERROR_MESSAGE},
                status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            )

        message = f"{exc.log_message} for ip: {host(request)} for endpoint {request.url.path}"
        if exc.status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(message)
        else:
            logger.warning(message)

        return ORJSONResponse(content=exc.to_content(), status_code=exc.status_code)

    return handler
