"""
Operator session service.

Owns the single scanner session: the session state, the lookup index built
from it and the autosaver that persists the diff log. Transitions come from
scan_service; this module adds the IO around them.

Parse, schema and storage failures while loading are recorded on
state.error instead of leaving a half-loaded session behind.
"""

import asyncio
from typing import Any, Optional
import structlog

from config import settings
from exceptions import AppError, CsvParseError, NoFileLoadedError
from models.blob import CloudFile
from models.scan import DiffEntry, ScanStatus, SessionState
from models.session import ProgressResponse, SessionResponse
from parsers.column_mapper import map_columns
from parsers.csv_parser import ingest_csv
from services.autosave_service import ScanLogAutosaver
from services.blob_service import BlobService, get_blob_service
from services.export_service import ExportKind, ExportService, get_export_service
from services.scan_log_service import ScanLogService
from services.scan_service import (
    MISSING_COLUMNS_MESSAGE,
    LookupIndex,
    apply_scan,
    build_lookup_index,
    cancel_active,
    confirm_qty,
    progress,
    reset_session,
)

logger = structlog.get_logger(__name__)


class SessionService:
    """
    Scanner session with persistence.

    All methods run on the event loop; blocking storage calls go through
    asyncio.to_thread.
    """

    def __init__(
        self,
        blobs: Optional[BlobService] = None,
        scan_logs: Optional[ScanLogService] = None,
        exporter: Optional[ExportService] = None,
        debounce_seconds: Optional[float] = None,
        snippet_chars: Optional[int] = None,
    ):
        self.blobs = blobs or get_blob_service()
        self.scan_logs = scan_logs or ScanLogService(self.blobs)
        self.exporter = exporter or get_export_service()
        self.snippet_chars = snippet_chars or settings.diagnostic_snippet_chars
        if debounce_seconds is None:
            debounce_seconds = settings.autosave_debounce_seconds
        self.autosaver = ScanLogAutosaver(self.scan_logs.save, debounce_seconds)
        self.state = SessionState(namespace=settings.default_namespace)
        self.index: LookupIndex = {}
        self._load_seq = 0

    # ===================
    # STATE HANDLING
    # ===================

    def _set_state(self, new_state: SessionState) -> None:
        """Swap in a new state, rebuilding the index and scheduling saves."""
        old = self.state
        if new_state.rows is not old.rows or new_state.columns != old.columns:
            self.index = build_lookup_index(new_state.rows, new_state.columns)

        self.state = new_state

        # Only a successfully loaded file owns a scan log
        if new_state.active_key and new_state.rows and new_state.diffs is not old.diffs:
            self.autosaver.schedule(new_state.active_key, new_state.diffs)

    def _fail(
        self,
        message: str,
        clear: bool = False,
        active_key: Optional[str] = None,
    ) -> SessionState:
        update: dict[str, Any] = {"error": message}
        if active_key is not None:
            update["active_key"] = active_key
        if clear:
            update.update({
                "file_name": "",
                "rows": [],
                "headers": [],
                "columns": None,
                "parse_strategy": None,
                "diffs": [],
                "status": ScanStatus.IDLE,
                "active": None,
                "candidate_qty": "",
                "not_found": "",
            })
        self._set_state(self.state.model_copy(update=update))
        return self.state

    def _superseded(self, token: int, key: str) -> bool:
        """True once a newer load_file call has started."""
        if token == self._load_seq:
            return False
        logger.info("stale_load_dropped", key=key)
        return True

    # ===================
    # FILES
    # ===================

    def set_namespace(self, namespace: str) -> SessionState:
        self.state = self.state.model_copy(update={"namespace": namespace})
        return self.state

    async def list_files(self, namespace: Optional[str] = None) -> list[CloudFile]:
        """
        List CSVs in a namespace (the session's by default).

        Raises:
            BlobStoreError: If the store fails (also recorded on state.error)
        """
        namespace = namespace or self.state.namespace
        try:
            return await asyncio.to_thread(self.blobs.list_files, namespace)
        except AppError as e:
            self._fail(e.message)
            raise

    async def upload_and_load(
        self,
        name: Optional[str],
        data: bytes,
        namespace: Optional[str] = None,
    ) -> SessionState:
        """
        Upload a CSV, then load it from the store.

        Raises:
            EmptyUploadError, BlobStoreError: Upload failed (also on state.error)
        """
        namespace = namespace or self.state.namespace
        try:
            key, _ = await asyncio.to_thread(self.blobs.upload, namespace, name, data)
        except AppError as e:
            self._fail(e.message)
            raise
        return await self.load_file(key)

    async def load_file(self, key: str) -> SessionState:
        """
        Make a stored CSV the active file.

        Downloads and parses the CSV, resolves its columns and restores its
        scan log. Failures end up in state.error. When another load starts
        before this one finishes, this load's result is dropped.
        """
        self._load_seq += 1
        token = self._load_seq
        logger.info("loading_file", key=key)

        try:
            text = await asyncio.to_thread(self.blobs.download_text, key)
        except AppError as e:
            if self._superseded(token, key):
                return self.state
            logger.warning("file_download_failed", key=key, error=e.message)
            return self._fail(e.message, clear=True, active_key=key)

        if self._superseded(token, key):
            return self.state

        result = ingest_csv(text, snippet_chars=self.snippet_chars)
        try:
            result.raise_for_error()
        except CsvParseError as e:
            return self._fail(e.message, clear=True, active_key=key)

        columns = map_columns(result.headers)

        try:
            diffs = await asyncio.to_thread(self.scan_logs.load, key)
        except AppError as e:
            logger.warning("scan_log_load_failed", key=key, error=e.message)
            diffs = []

        if self._superseded(token, key):
            return self.state
        self.autosaver.mark_saved(key, diffs)

        self._set_state(self.state.model_copy(update={
            "active_key": key,
            "file_name": key.rsplit("/", 1)[-1],
            "rows": result.rows,
            "headers": result.headers,
            "columns": columns,
            "parse_strategy": result.strategy,
            "diffs": diffs,
            "status": ScanStatus.IDLE,
            "active": None,
            "candidate_qty": "",
            "not_found": "",
            "error": "" if columns else MISSING_COLUMNS_MESSAGE,
        }))

        logger.info(
            "file_loaded",
            key=key,
            rows=len(result.rows),
            strategy=result.strategy,
            columns_mapped=columns is not None,
            diffs=len(diffs)
        )
        return self.state

    # ===================
    # SCANNING
    # ===================

    async def scan(self, code: str) -> SessionState:
        """
        Resolve a scanned code.

        Raises:
            NoFileLoadedError: If no rows are loaded
        """
        if not self.state.rows:
            raise NoFileLoadedError("scan")
        self._set_state(apply_scan(self.state, self.index, code))
        return self.state

    async def confirm(self, actual: Any = None) -> DiffEntry:
        """
        Record the active item's count and schedule a save.

        Raises:
            NoActiveItemError: If no item is active
        """
        new_state, entry = confirm_qty(self.state, actual)
        self._set_state(new_state)
        return entry

    async def cancel(self) -> SessionState:
        self._set_state(cancel_active(self.state))
        return self.state

    async def reset(self) -> SessionState:
        """Clear all counts for the active file (the cleared log is saved)."""
        logger.info("session_reset", key=self.state.active_key)
        self._set_state(reset_session(self.state))
        return self.state

    # ===================
    # REPORTING
    # ===================

    def progress(self) -> ProgressResponse:
        return ProgressResponse(**progress(self.state))

    def export(self, kind: ExportKind) -> tuple[str, str]:
        """(filename, CSV text) for a report on the current diff log."""
        return self.exporter.generate_report(
            self.state.diffs, kind, self.state.file_name
        )

    def to_response(self) -> SessionResponse:
        state = self.state
        return SessionResponse(
            namespace=state.namespace,
            active_key=state.active_key,
            file_name=state.file_name,
            row_count=len(state.rows),
            headers=state.headers,
            columns=state.columns,
            parse_strategy=state.parse_strategy,
            scanning_enabled=state.scanning_enabled,
            status=state.status,
            active=state.active,
            candidate_qty=state.candidate_qty,
            not_found=state.not_found,
            error=state.error,
            saving=self.autosaver.saving,
            diffs=state.diffs,
            progress=self.progress(),
        )

    # ===================
    # LIFECYCLE
    # ===================

    async def shutdown(self) -> None:
        """Persist pending changes, then stop the autosaver."""
        try:
            await self.autosaver.flush()
        finally:
            self.autosaver.close()


_session_service: Optional[SessionService] = None


def get_session_service() -> SessionService:
    """Get or create the SessionService instance."""
    global _session_service
    if _session_service is None:
        _session_service = SessionService()
    return _session_service


async def shutdown_session_service() -> None:
    """Flush and stop the session's autosaver, if a session was started."""
    if _session_service is not None:
        await _session_service.shutdown()
