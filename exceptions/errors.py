"""
Custom exception classes for the application.

Every error carries a stable code, a human-readable message and an HTTP
status so routes can hand it straight to the client.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "BLOB_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None,
        status_code: int = 422
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details
        )


class ConflictError(AppError):
    """Conflict with current state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# BLOB STORE ERRORS
# ===================

class BlobStoreError(ExternalServiceError):
    """Blob store operation failed."""

    def __init__(
        self,
        operation: str,
        message: str,
        key: Optional[str] = None
    ):
        details = {"operation": operation}
        if key is not None:
            details["key"] = key
        super().__init__(
            service="blob_store",
            message=f"{operation.capitalize()} failed: {message}",
            details=details
        )


class BlobNotFoundError(NotFoundError):
    """No blob stored under the key."""

    def __init__(self, key: str):
        super().__init__(
            resource="Blob",
            identifier=key,
            code="BLOB_NOT_FOUND"
        )
        self.message = f"Not found: {key}"


class EmptyUploadError(ValidationError):
    """Upload body was empty."""

    def __init__(self, name: str):
        super().__init__(
            code="EMPTY_UPLOAD",
            message="Empty body",
            details={"name": name},
            status_code=400
        )


# ===================
# CSV ERRORS
# ===================

class CsvParseError(ValidationError):
    """No parsing strategy produced any rows."""

    def __init__(self, snippet: str, strategies: Optional[list[str]] = None):
        super().__init__(
            code="CSV_PARSE_ERROR",
            message=f"Could not parse CSV. First line: {snippet!r}",
            details={"first_line": snippet, "strategies": strategies or []}
        )


# ===================
# SESSION ERRORS
# ===================

class NoActiveItemError(ConflictError):
    """Confirm requested while no item is active."""

    def __init__(self):
        super().__init__(
            code="NO_ACTIVE_ITEM",
            message="No scanned item is waiting for confirmation"
        )


class NoFileLoadedError(ConflictError):
    """Operation needs a loaded source file."""

    def __init__(self, operation: str):
        super().__init__(
            code="NO_FILE_LOADED",
            message="Choose or upload a CSV first",
            details={"operation": operation}
        )
