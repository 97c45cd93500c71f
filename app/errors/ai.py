from logging import getLogger
from typing import Any

from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from app.configs import file_logger
from app.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class ProviderError(BaseAppError):
    """
    An LLM provider rejected or failed a request.

    The provider's own message text is passed through to the caller together
    with the provider's HTTP status, ``param`` (when the provider names the
    offending parameter) and the raw error body in ``details``.
    """

    def __init__(
        self,
        detail: str = "AI provider error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
        *,
        provider: str = "unknown",
        param: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(detail=detail, status_code=status_code)
        self.provider = provider
        self.param = param
        self.details = details

    @property
    def log_message(self) -> str:
        return f"{self.provider} error ({self.status_code}): {self.detail}"


class ProviderAuthError(ProviderError):
    """No provider API key was supplied."""

    def __init__(self, detail: str = "API key is required", *, provider: str = "unknown") -> None:
        super().__init__(detail, HTTP_401_UNAUTHORIZED, provider=provider)


class ProviderNetworkError(ProviderError):
    """The provider could not be reached."""

    def __init__(self, detail: str = "AI provider unreachable", *, provider: str = "unknown") -> None:
        super().__init__(detail, HTTP_502_BAD_GATEWAY, provider=provider)


ai_exception_handler = create_exception_handler(logger)
