from app.errors.api import ConflictError, UpstreamError


class DatabaseError(UpstreamError):
    """Base exception for relational and document store failures."""

    def __init__(self, reason: str = "Database Error") -> None:
        super().__init__(reason)


class DatabaseConnectionError(DatabaseError):
    """Exception raised when a store cannot be reached."""

    def __init__(self, reason: str = "Failed to connect to the database") -> None:
        super().__init__(reason)


class DocumentStoreError(DatabaseError):
    """Exception raised when a document store operation fails."""

    def __init__(self, reason: str = "Document store operation failed") -> None:
        super().__init__(reason)


class DuplicateEntryError(ConflictError):
    """Exception raised when a unique constraint rejects an insert."""

    def __init__(self, detail: str = "Record already exists") -> None:
        super().__init__(detail, duplicate=True)
