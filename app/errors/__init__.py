from app.errors.ai import (
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ai_exception_handler,
)
from app.errors.api import (
    AuthError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
    UpstreamError,
    ValidationError,
    api_exception_handler,
)
from app.errors.base import BaseAppError, create_exception_handler
from app.errors.database import (
    DatabaseConnectionError,
    DatabaseError,
    DocumentStoreError,
    DuplicateEntryError,
)
from app.errors.validation import validation_exception_handler

__all__ = [
    "AuthError",
    "BaseAppError",
    "ConflictError",
    "DatabaseConnectionError",
    "DatabaseError",
    "DocumentStoreError",
    "DuplicateEntryError",
    "ForbiddenError",
    "NotFoundError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderNetworkError",
    "ServiceError",
    "UpstreamError",
    "ValidationError",
    "ai_exception_handler",
    "api_exception_handler",
    "create_exception_handler",
    "validation_exception_handler",
]
