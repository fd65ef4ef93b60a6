"""
Diagnostics API routes.

Reports configuration presence for deployment debugging. Secret values are
never returned, only whether they are set.
"""

from fastapi import APIRouter
import structlog

from config import check_connection, credentials_status

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/env")
def get_env_status():
    """Which storage credentials are configured."""
    return credentials_status()


@router.get("/storage")
def get_storage_status():
    """Try listing the default namespace."""
    status = check_connection()
    logger.info("storage_check", status=status["status"])
    return status
