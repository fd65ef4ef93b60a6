"""
Scan log persistence.

Each source CSV has one scan log next to it, e.g.

    warehouse-a/1718000000000_counts.csv
    warehouse-a/scans/1718000000000_counts.json

Older deployments wrote logs under other names, so reads walk an ordered list
of key templates and take the first log that exists. Writes always go to the
first template.
"""

from typing import Any, Optional
import structlog

from config import settings
from exceptions import ValidationError
from models.scan import DiffEntry, ScanLog
from services.blob_service import BlobService, get_blob_service

logger = structlog.get_logger(__name__)


def split_file_key(file_key: str) -> tuple[str, str, str]:
    """
    Split a key into (prefix, name, stem).

    'ns/123_counts.csv' -> ('ns', '123_counts.csv', '123_counts')
    """
    prefix, _, name = (file_key or "").rpartition("/")
    stem = name.rsplit(".", 1)[0] if "." in name.lstrip(".") else name
    return prefix, name, stem or "file"


def scan_log_key(file_key: str, template: str) -> str:
    """Fill a key template for a source file."""
    prefix, name, stem = split_file_key(file_key)
    key = template.format(prefix=prefix, name=name, stem=stem)
    return "/".join(part for part in key.split("/") if part)


def extract_diffs(document: Any) -> Optional[list]:
    """
    Pull the diff array out of a stored log.

    Accepts {"diffs": [...]} and the older {"data": {"diffs": [...]}}.
    """
    if not isinstance(document, dict):
        return None
    if isinstance(document.get("diffs"), list):
        return document["diffs"]
    data = document.get("data")
    if isinstance(data, dict) and isinstance(data.get("diffs"), list):
        return data["diffs"]
    return None


def parse_diffs(records: list) -> list[DiffEntry]:
    """Validate stored entries, skipping ones that do not parse."""
    diffs = []
    for record in records:
        try:
            diffs.append(DiffEntry.model_validate(record))
        except Exception as e:
            logger.warning("scan_log_entry_skipped", error=str(e))
    return diffs


def serialize_log(diffs: list[DiffEntry]) -> dict:
    """Stored shape of a scan log."""
    return ScanLog(diffs=diffs).model_dump(mode="json", by_alias=True)


class ScanLogService:
    """Reads and writes per-file scan logs."""

    def __init__(
        self,
        blobs: Optional[BlobService] = None,
        key_templates: Optional[list[str]] = None,
    ):
        self.blobs = blobs or get_blob_service()
        self.key_templates = list(key_templates or settings.scan_log_key_templates)

    def candidate_keys(self, file_key: str) -> list[str]:
        """Keys tried on load, in order, without duplicates."""
        keys = []
        for template in self.key_templates:
            key = scan_log_key(file_key, template)
            if key not in keys:
                keys.append(key)
        return keys

    def primary_key(self, file_key: str) -> str:
        """Key the log is written to."""
        return scan_log_key(file_key, self.key_templates[0])

    def load(self, file_key: str) -> list[DiffEntry]:
        """
        Load the scan log for a source file.

        Returns:
            Stored entries, or [] if no candidate key holds a log

        Raises:
            BlobStoreError: If the store fails
        """
        for key in self.candidate_keys(file_key):
            try:
                document = self.blobs.read_json(key)
            except ValidationError:
                continue
            if document is None:
                continue

            records = extract_diffs(document)
            if records is None:
                logger.warning("scan_log_shape_unknown", key=key)
                continue

            diffs = parse_diffs(records)
            logger.info(
                "scan_log_loaded",
                file_key=file_key,
                key=key,
                entries=len(diffs)
            )
            return diffs

        logger.info("scan_log_missing", file_key=file_key)
        return []

    def save(self, file_key: str, diffs: list[DiffEntry]) -> str:
        """Write the log to the primary key."""
        key = self.primary_key(file_key)
        self.blobs.put_json(key, serialize_log(diffs))
        logger.info("scan_log_saved", key=key, entries=len(diffs))
        return key


_scan_log_service: Optional[ScanLogService] = None


def get_scan_log_service() -> ScanLogService:
    """Get or create ScanLogService instance."""
    global _scan_log_service
    if _scan_log_service is None:
        _scan_log_service = ScanLogService()
    return _scan_log_service
