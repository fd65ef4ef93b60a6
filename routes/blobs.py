"""
Blob API routes.

Namespaced CSV storage plus raw JSON documents (scan logs).

Handlers are plain functions: FastAPI runs them in its threadpool, so the
blocking storage client never stalls the event loop.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, File, Query, UploadFile
from fastapi.responses import JSONResponse, Response
import structlog

from config import settings
from exceptions import AppError
from models.blob import FileListResponse, PutJsonResponse, UploadResponse
from services.blob_service import content_type_for, get_blob_service

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=FileListResponse)
def list_files(ns: Optional[str] = Query(None, description="Namespace")):
    """List files in a namespace, newest first."""
    namespace = ns or settings.default_namespace
    try:
        files = get_blob_service().list_files(namespace)
        return FileListResponse(namespace=namespace, files=files)
    except Exception as e:
        return handle_error(e)


@router.post("/upload", response_model=UploadResponse)
def upload_file(
    file: UploadFile = File(...),
    ns: Optional[str] = Query(None, description="Namespace"),
):
    """
    Upload a CSV into a namespace.

    The stored key is '{ns}/{epoch_ms}_{sanitized_name}'.
    """
    namespace = ns or settings.default_namespace
    logger.info(
        "file_upload_started",
        namespace=namespace,
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        content = file.file.read()
        key, size = get_blob_service().upload(namespace, file.filename, content)
        return UploadResponse(key=key, size=size)
    except Exception as e:
        return handle_error(e)


@router.get("/download")
def download_file(key: str = Query(..., min_length=1)):
    """Download a stored file as text."""
    try:
        text = get_blob_service().download_text(key)
        return Response(
            content=text,
            media_type=content_type_for(key),
        )
    except Exception as e:
        return handle_error(e)


@router.get("/json")
def get_json(key: str = Query(..., min_length=1)):
    """Read a JSON document; a missing key yields an empty scan log."""
    try:
        return get_blob_service().get_json(key)
    except Exception as e:
        return handle_error(e)


@router.post("/json", response_model=PutJsonResponse)
def put_json(
    key: str = Query(..., min_length=1),
    document: Any = Body(default=None),
):
    """Store a JSON document under key."""
    try:
        get_blob_service().put_json(key, document)
        return PutJsonResponse(key=key)
    except Exception as e:
        return handle_error(e)
