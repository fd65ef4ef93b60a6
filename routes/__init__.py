"""
API route modules.

Each module defines routes for one area.
"""

from routes.blobs import router as blobs_router
from routes.session import router as session_router
from routes.diagnostics import router as diagnostics_router

__all__ = [
    "blobs_router",
    "session_router",
    "diagnostics_router",
]
