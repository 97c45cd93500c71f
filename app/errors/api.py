"""Request-level error taxonomy shared by every endpoint."""

from logging import getLogger
from typing import Any

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from app.configs import file_logger
from app.configs.settings import DEFAULT_ERROR_MESSAGE
from app.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class ValidationError(BaseAppError):
    """Bad id format, missing required field or invalid enum value."""

    def __init__(self, detail: str = "Invalid request") -> None:
        super().__init__(detail=detail, status_code=HTTP_400_BAD_REQUEST)


class AuthError(BaseAppError):
    """Missing or invalid session."""

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(detail=detail, status_code=HTTP_401_UNAUTHORIZED)


class ForbiddenError(AuthError):
    """Authenticated, but the role claim is not an admin role."""

    def __init__(self, detail: str = "Admin access required") -> None:
        super().__init__(detail)
        self.status_code = HTTP_403_FORBIDDEN


class NotFoundError(BaseAppError):
    """The id is well formed but nothing matches it."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(detail=detail, status_code=HTTP_404_NOT_FOUND)


class ConflictError(BaseAppError):
    """State transition that is not allowed, e.g. deleting a deleted record."""

    def __init__(self, detail: str = "Conflict", *, duplicate: bool = False) -> None:
        super().__init__(
            detail=detail,
            status_code=HTTP_409_CONFLICT if duplicate else HTTP_400_BAD_REQUEST,
        )


class UpstreamError(BaseAppError):
    """
    A store or third-party API failed.

    The client only ever sees a generic message; ``reason`` goes to the log.
    """

    def __init__(self, reason: str = "Upstream failure", detail: str = DEFAULT_ERROR_MESSAGE) -> None:
        super().__init__(detail=detail, status_code=HTTP_500_INTERNAL_SERVER_ERROR)
        self._reason = reason

    @property
    def log_message(self) -> str:
        return f"{self.detail}: {self._reason}"


class ServiceError(BaseAppError):
    """A proxied backend answered with an error; its status and message pass through."""

    def __init__(self, detail: str, status_code: int, *, details: Any = None) -> None:
        super().__init__(detail=detail, status_code=status_code)
        self.details = details


api_exception_handler = create_exception_handler(logger)
