"""
Business logic services.

Each service handles one domain area.
"""

from services.blob_service import BlobService, get_blob_service
from services.scan_log_service import ScanLogService, get_scan_log_service
from services.export_service import ExportService, ExportKind, get_export_service
from services.autosave_service import ScanLogAutosaver
from services.session_service import (
    SessionService,
    get_session_service,
    shutdown_session_service,
)

__all__ = [
    "BlobService",
    "get_blob_service",
    "ScanLogService",
    "get_scan_log_service",
    "ExportService",
    "ExportKind",
    "get_export_service",
    "ScanLogAutosaver",
    "SessionService",
    "get_session_service",
    "shutdown_session_service",
]
