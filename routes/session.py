"""
Scanner session API routes.

One session per server: choose a file, scan, confirm counts, export.
"""

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import Response
import structlog

from models.blob import FileListResponse
from models.scan import DiffEntry
from models.session import (
    ConfirmRequest,
    LoadRequest,
    NamespaceRequest,
    ProgressResponse,
    ScanRequest,
    SessionResponse,
)
from routes.blobs import handle_error
from services.export_service import ExportKind
from services.session_service import get_session_service

logger = structlog.get_logger(__name__)

router = APIRouter()


def csv_download(filename: str, content: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ===================
# STATE
# ===================

@router.get("", response_model=SessionResponse)
async def get_session():
    """Current session: active file, active item, diff log and progress."""
    return get_session_service().to_response()


@router.get("/progress", response_model=ProgressResponse)
async def get_progress():
    """Total items, unique scanned items and items with differences."""
    return get_session_service().progress()


# ===================
# FILES
# ===================

@router.post("/namespace", response_model=SessionResponse)
async def set_namespace(data: NamespaceRequest):
    """Switch the namespace used for listing and uploads."""
    service = get_session_service()
    service.set_namespace(data.namespace)
    return service.to_response()


@router.get("/files", response_model=FileListResponse)
async def list_session_files():
    """List CSVs in the session's namespace."""
    service = get_session_service()
    try:
        files = await service.list_files()
        return FileListResponse(namespace=service.state.namespace, files=files)
    except Exception as e:
        return handle_error(e)


@router.post("/load", response_model=SessionResponse)
async def load_file(data: LoadRequest):
    """
    Load a stored CSV and its scan log.

    Parse or column problems are reported in the response's error field.
    """
    service = get_session_service()
    await service.load_file(data.key)
    return service.to_response()


@router.post("/upload", response_model=SessionResponse)
async def upload_and_load(file: UploadFile = File(...)):
    """Upload a CSV to the session's namespace, then load it."""
    service = get_session_service()
    try:
        content = await file.read()
        await service.upload_and_load(file.filename, content)
        return service.to_response()
    except Exception as e:
        return handle_error(e)


# ===================
# SCANNING
# ===================

@router.post("/scan", response_model=SessionResponse)
async def scan(data: ScanRequest):
    """Resolve a scanned barcode; unknown codes set status not_found."""
    service = get_session_service()
    try:
        await service.scan(data.code)
        return service.to_response()
    except Exception as e:
        return handle_error(e)


@router.post("/confirm", response_model=DiffEntry)
async def confirm(data: ConfirmRequest):
    """Save the counted quantity for the active item."""
    try:
        return await get_session_service().confirm(data.actual)
    except Exception as e:
        return handle_error(e)


@router.post("/cancel", response_model=SessionResponse)
async def cancel():
    """Dismiss the active item without recording a count."""
    service = get_session_service()
    await service.cancel()
    return service.to_response()


@router.post("/reset", response_model=SessionResponse)
async def reset():
    """Clear every recorded count for the active file."""
    service = get_session_service()
    await service.reset()
    return service.to_response()


# ===================
# EXPORTS
# ===================

@router.get("/export/differences")
async def export_differences():
    """CSV of entries whose count differs from on-hand."""
    filename, content = get_session_service().export(ExportKind.DIFFERENCES)
    return csv_download(filename, content)


@router.get("/export/all")
async def export_all_scans():
    """CSV of every recorded entry."""
    filename, content = get_session_service().export(ExportKind.ALL_SCANS)
    return csv_download(filename, content)
