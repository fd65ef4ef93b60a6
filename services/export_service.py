"""
Export service — Generate count report CSVs.

Two reports are produced from the diff log:
- Differences: only entries whose counted quantity differs from on-hand
- All Scans: every recorded entry
"""

import re
from enum import Enum
from io import StringIO
from typing import Optional

import pandas as pd
import structlog

from models.scan import DiffEntry
from utils.number_utils import format_quantity

logger = structlog.get_logger(__name__)

EXPORT_COLUMNS = [
    "Barcode",
    "Name",
    "Prev On Hand",
    "Reserved",
    "Actual On Hand",
    "Delta",
    "Timestamp",
]

DEFAULT_STEM = "inventory"


class ExportKind(str, Enum):
    DIFFERENCES = "differences"
    ALL_SCANS = "all_scans"


def export_filename(file_name: Optional[str], kind: ExportKind) -> str:
    """
    Download name for a report.

    'counts.csv' -> 'counts_differences.csv'
    '' -> 'inventory_all_scans.csv'
    """
    stem = re.sub(r"\.[^.]+$", "", file_name or "") or DEFAULT_STEM
    return f"{stem}_{kind.value}.csv"


def select_entries(diffs: list[DiffEntry], kind: ExportKind) -> list[DiffEntry]:
    """Entries included in a report, in diff-log order."""
    if kind == ExportKind.DIFFERENCES:
        return [d for d in diffs if d.delta != 0]
    return list(diffs)


def export_record(entry: DiffEntry) -> dict:
    """One CSV row."""
    return {
        "Barcode": entry.barcode,
        "Name": entry.name,
        "Prev On Hand": format_quantity(entry.prev_on_hand),
        "Reserved": format_quantity(entry.reserved),
        "Actual On Hand": format_quantity(entry.actual),
        "Delta": format_quantity(entry.delta),
        "Timestamp": entry.ts.isoformat().replace("+00:00", "Z"),
    }


class ExportService:
    """Service for generating report files."""

    def render_csv(self, entries: list[DiffEntry]) -> str:
        """
        Render entries as CSV text.

        Args:
            entries: Diff entries, written in the given order

        Returns:
            CSV text with a header row (header only when entries is empty)
        """
        df = pd.DataFrame(
            [export_record(e) for e in entries],
            columns=EXPORT_COLUMNS,
        )
        output = StringIO()
        df.to_csv(output, index=False, lineterminator="\r\n")
        return output.getvalue()

    def generate_report(
        self,
        diffs: list[DiffEntry],
        kind: ExportKind,
        file_name: Optional[str] = None,
    ) -> tuple[str, str]:
        """
        Build one report.

        Returns:
            (download filename, CSV text)
        """
        entries = select_entries(diffs, kind)
        filename = export_filename(file_name, kind)

        logger.info(
            "generating_report",
            kind=kind.value,
            entries=len(entries),
            filename=filename,
        )

        return filename, self.render_csv(entries)


# Singleton instance
_export_service: Optional[ExportService] = None


def get_export_service() -> ExportService:
    """Get or create ExportService instance."""
    global _export_service
    if _export_service is None:
        _export_service = ExportService()
    return _export_service
