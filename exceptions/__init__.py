"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,

    # Blob store
    BlobStoreError,
    BlobNotFoundError,
    EmptyUploadError,

    # CSV
    CsvParseError,

    # Session
    NoActiveItemError,
    NoFileLoadedError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",

    # Blob store
    "BlobStoreError",
    "BlobNotFoundError",
    "EmptyUploadError",

    # CSV
    "CsvParseError",

    # Session
    "NoActiveItemError",
    "NoFileLoadedError",
]
