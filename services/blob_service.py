"""
Blob service — namespaced file storage for CSVs and scan logs.

Thin layer over the blob store: namespace listing, uploads under
collision-free keys, text download and JSON documents.
"""

import json
import re
import time
from typing import Any, Optional
import structlog

from config import get_blob_store, BlobStore
from exceptions import BlobNotFoundError, EmptyUploadError, ValidationError
from models.blob import CloudFile
from parsers.csv_parser import guess_base64

logger = structlog.get_logger(__name__)

CSV_CONTENT_TYPE = "text/csv"
JSON_CONTENT_TYPE = "application/json"

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def sanitize_name(name: Optional[str]) -> str:
    """
    Make a file name safe for use in a key.

    'Stock Count (May).csv' -> 'Stock_Count__May_.csv'
    """
    return _UNSAFE_NAME_CHARS.sub("_", name or "file.csv")


def content_type_for(key: str) -> str:
    """Content type reported when downloading a key."""
    if key.lower().endswith(".csv"):
        return "text/csv; charset=utf-8"
    return "text/plain; charset=utf-8"


class BlobService:
    """
    Namespaced file operations.

    A namespace is the first path segment of every key it owns.
    """

    def __init__(self, store: Optional[BlobStore] = None):
        self.store = store or get_blob_store()

    def list_files(self, namespace: str) -> list[CloudFile]:
        """
        List files in a namespace, newest first.

        Raises:
            BlobStoreError: If the store fails
        """
        entries = self.store.list(f"{namespace}/")
        files = [CloudFile(**entry) for entry in entries]
        files.sort(
            key=lambda f: f.uploaded_at.isoformat() if f.uploaded_at else "",
            reverse=True,
        )
        logger.info("files_listed", namespace=namespace, count=len(files))
        return files

    def upload(self, namespace: str, name: Optional[str], data: bytes) -> tuple[str, int]:
        """
        Store a CSV under '{namespace}/{epoch_ms}_{sanitized_name}'.

        Bodies sent as base64 text are decoded before storing.

        Returns:
            (new key, stored size in bytes)

        Raises:
            EmptyUploadError: If data is empty
            BlobStoreError: If the store fails
        """
        safe_name = sanitize_name(name)
        if not data:
            raise EmptyUploadError(safe_name)

        try:
            decoded = guess_base64(data.decode("utf-8"))
        except UnicodeDecodeError:
            decoded = None
        if decoded is not None:
            data = decoded.encode("utf-8")

        key = f"{namespace}/{int(time.time() * 1000)}_{safe_name}"
        self.store.set(key, data, CSV_CONTENT_TYPE)

        logger.info(
            "file_uploaded",
            key=key,
            size=len(data),
            decoded_base64=decoded is not None
        )
        return key, len(data)

    def download_bytes(self, key: str) -> bytes:
        """
        Raises:
            BlobNotFoundError: If nothing is stored under key
        """
        data = self.store.get(key)
        if data is None:
            raise BlobNotFoundError(key)
        return data

    def download_text(self, key: str) -> str:
        """Download a stored file as UTF-8 text (BOM kept for the parser)."""
        return self.download_bytes(key).decode("utf-8", errors="replace")

    def get_json(self, key: str) -> Any:
        """
        Read a JSON document.

        Returns:
            Parsed document, or {"ok": True, "diffs": []} if key is missing

        Raises:
            ValidationError: If the stored document is not valid JSON
        """
        document = self.read_json(key)
        if document is None:
            return {"ok": True, "diffs": []}
        return document

    def read_json(self, key: str) -> Optional[Any]:
        """Read a JSON document; None if key is missing."""
        data = self.store.get(key)
        if data is None:
            return None

        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("json_document_invalid", key=key, error=str(e))
            raise ValidationError(
                code="INVALID_JSON",
                message=f"Stored document is not valid JSON: {key}",
                details={"key": key}
            )

    def put_json(self, key: str, document: Any) -> str:
        """Write a JSON document, replacing any existing one."""
        body = json.dumps(document if document is not None else {})
        self.store.set(key, body.encode("utf-8"), JSON_CONTENT_TYPE)
        logger.debug("json_document_saved", key=key, size=len(body))
        return key


_blob_service: Optional[BlobService] = None


def get_blob_service() -> BlobService:
    """Get or create BlobService instance."""
    global _blob_service
    if _blob_service is None:
        _blob_service = BlobService()
    return _blob_service
