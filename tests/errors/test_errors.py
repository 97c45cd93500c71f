"""Tests for the error taxonomy and the shared exception handler."""

from unittest.mock import MagicMock

import pytest
from orjson import loads

from app.configs.settings import DEFAULT_ERROR_MESSAGE
from app.errors import (
    AuthError,
    BaseAppError,
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    ProviderAuthError,
    ProviderError,
    ServiceError,
    UpstreamError,
    ValidationError,
    create_exception_handler,
)
from app.errors.validation import format_error


@pytest.fixture
def request_stub() -> MagicMock:
    request = MagicMock()
    request.client.host = "192.168.1.1"
    request.url.path = "/blogs/list"
    return request


class TestStatusCodes:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ValidationError(), 400),
            (AuthError(), 401),
            (ForbiddenError(), 403),
            (NotFoundError(), 404),
            (ConflictError(), 400),
            (ConflictError(duplicate=True), 409),
            (UpstreamError(), 500),
            (DatabaseError(), 500),
            (ServiceError("Task not found", 404), 404),
            (ProviderAuthError(provider="openai"), 401),
        ],
    )
    def test_status(self, error: BaseAppError, status: int) -> None:
        assert error.status_code == status

    def test_forbidden_is_an_auth_error(self) -> None:
        assert isinstance(ForbiddenError(), AuthError)


class TestEnvelope:
    def test_plain_error(self) -> None:
        assert NotFoundError("Blog not found").to_content() == {"success": False, "error": "Blog not found"}

    def test_upstream_reason_is_hidden(self) -> None:
        error = UpstreamError("mongo timed out after 30s")
        assert error.to_content() == {"success": False, "error": DEFAULT_ERROR_MESSAGE}
        assert "mongo timed out" in error.log_message

    def test_provider_error_carries_public_attributes(self) -> None:
        error = ProviderError(
            "Invalid model",
            400,
            provider="openai",
            param="model",
            details={"error": {"message": "Invalid model"}},
        )
        assert error.to_content() == {
            "success": False,
            "error": "Invalid model",
            "provider": "openai",
            "param": "model",
            "details": {"error": {"message": "Invalid model"}},
        }


class TestExceptionHandler:
    @pytest.mark.asyncio
    async def test_client_error_logs_warning(self, request_stub: MagicMock) -> None:
        logger = MagicMock()
        handler = create_exception_handler(logger)

        response = await handler(request_stub, ValidationError("Invalid blog ID format"))

        assert response.status_code == 400
        assert loads(response.body) == {"success": False, "error": "Invalid blog ID format"}
        logger.warning.assert_called_once_with(
            "Invalid blog ID format for ip: 192.168.1.1 for endpoint /blogs/list",
        )

    @pytest.mark.asyncio
    async def test_server_error_logs_error(self, request_stub: MagicMock) -> None:
        logger = MagicMock()
        handler = create_exception_handler(logger)

        response = await handler(request_stub, UpstreamError("identity provider unreachable"))

        assert response.status_code == 500
        logger.error.assert_called_once()
        assert "identity provider unreachable" in logger.error.call_args.args[0]

    @pytest.mark.asyncio
    async def test_unexpected_exception(self, request_stub: MagicMock) -> None:
        logger = MagicMock()
        handler = create_exception_handler(logger)

        response = await handler(request_stub, RuntimeError("boom"))

        assert response.status_code == 500
        assert loads(response.body) == {"success": False, "error": DEFAULT_ERROR_MESSAGE}
        logger.error.assert_called_once()


class TestFormatError:
    def test_body_field(self) -> None:
        error = {"loc": ("body", "messages", 0, "content"), "msg": "Field required", "type": "missing"}
        assert format_error(error) == {
            "field": "messages.0.content",
            "location": "body",
            "message": "Field required",
            "type": "missing",
        }

    def test_query_field_and_context(self) -> None:
        error = {
            "loc": ("query", "perPage"),
            "msg": "Input should be a valid integer",
            "type": "int_parsing",
            "input": "ten",
            "ctx": {"error": ValueError("bad")},
        }
        formatted = format_error(error)

        assert formatted["field"] == "perPage"
        assert formatted["location"] == "query"
        assert formatted["context"] == {"error": "bad"}
        assert "input" not in formatted
