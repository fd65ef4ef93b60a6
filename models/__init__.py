"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.scan import (
    Row,
    ScanStatus,
    ColumnMapping,
    Item,
    DiffEntry,
    ScanLog,
    SessionState,
)
from models.blob import (
    CloudFile,
    FileListResponse,
    UploadResponse,
    PutJsonResponse,
)
from models.session import (
    NamespaceRequest,
    LoadRequest,
    ScanRequest,
    ConfirmRequest,
    ProgressResponse,
    SessionResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Scanning
    "Row",
    "ScanStatus",
    "ColumnMapping",
    "Item",
    "DiffEntry",
    "ScanLog",
    "SessionState",

    # Blobs
    "CloudFile",
    "FileListResponse",
    "UploadResponse",
    "PutJsonResponse",

    # Session API
    "NamespaceRequest",
    "LoadRequest",
    "ScanRequest",
    "ConfirmRequest",
    "ProgressResponse",
    "SessionResponse",
]
