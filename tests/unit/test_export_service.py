"""
Unit tests for report exports.
"""

import csv
from datetime import datetime, timezone
from io import StringIO

import pytest

from services.export_service import (
    EXPORT_COLUMNS,
    ExportKind,
    ExportService,
    export_filename,
    export_record,
    select_entries,
)
from tests.factories import DiffEntryFactory


def read_csv(text: str) -> list[list[str]]:
    return list(csv.reader(StringIO(text)))


@pytest.fixture
def service() -> ExportService:
    return ExportService()


@pytest.fixture
def diffs():
    return [
        DiffEntryFactory.create(barcode="123", name="Apple", prev_on_hand=10, reserved=2, actual=8),
        DiffEntryFactory.create(barcode="ABC-999", name="Banana", prev_on_hand=5, actual=5),
        DiffEntryFactory.create(barcode="777", name="Cherry", prev_on_hand=1, actual=1.5),
    ]


class TestExportFilename:
    """Tests for export_filename."""

    @pytest.mark.parametrize("file_name,kind,expected", [
        ("counts.csv", ExportKind.DIFFERENCES, "counts_differences.csv"),
        ("counts.csv", ExportKind.ALL_SCANS, "counts_all_scans.csv"),
        ("store.a.csv", ExportKind.DIFFERENCES, "store.a_differences.csv"),
        ("noext", ExportKind.ALL_SCANS, "noext_all_scans.csv"),
        ("", ExportKind.DIFFERENCES, "inventory_differences.csv"),
        (None, ExportKind.ALL_SCANS, "inventory_all_scans.csv"),
    ])
    def test_names(self, file_name, kind, expected):
        assert export_filename(file_name, kind) == expected


class TestSelectEntries:
    """Tests for select_entries."""

    def test_differences_only_nonzero_delta(self, diffs):
        selected = select_entries(diffs, ExportKind.DIFFERENCES)

        assert [d.barcode for d in selected] == ["123", "777"]

    def test_all_scans_keeps_order(self, diffs):
        selected = select_entries(diffs, ExportKind.ALL_SCANS)

        assert [d.barcode for d in selected] == ["123", "ABC-999", "777"]


class TestExportRecord:
    """Tests for export_record."""

    def test_formats_numbers_and_timestamp(self):
        entry = DiffEntryFactory.create(
            barcode="1",
            name="A",
            prev_on_hand=10,
            actual=8,
            ts=datetime(2026, 3, 1, 9, 1, tzinfo=timezone.utc),
        )
        record = export_record(entry)

        assert record["Prev On Hand"] == "10"
        assert record["Actual On Hand"] == "8"
        assert record["Delta"] == "-2"
        assert record["Timestamp"] == "2026-03-01T09:01:00Z"


class TestRenderCsv:
    """Tests for ExportService.render_csv and generate_report."""

    def test_header_only_when_empty(self, service):
        text = service.render_csv([])

        assert read_csv(text) == [EXPORT_COLUMNS]

    def test_crlf_line_endings(self, service, diffs):
        text = service.render_csv(diffs)

        assert text.startswith(",".join(EXPORT_COLUMNS) + "\r\n")
        assert text.count("\r\n") == 4

    def test_quotes_names_with_commas(self, service):
        entry = DiffEntryFactory.create(name="Widget, large", prev_on_hand=1, actual=2)
        rows = read_csv(service.render_csv([entry]))

        assert rows[1][1] == "Widget, large"

    def test_differences_report(self, service, diffs):
        filename, text = service.generate_report(diffs, ExportKind.DIFFERENCES, "counts.csv")
        rows = read_csv(text)

        assert filename == "counts_differences.csv"
        assert [r[0] for r in rows[1:]] == ["123", "777"]
        assert rows[1][:6] == ["123", "Apple", "10", "2", "8", "-2"]
        assert rows[2][5] == "0.5"

    def test_all_scans_report(self, service, diffs):
        filename, text = service.generate_report(diffs, ExportKind.ALL_SCANS, "counts.csv")

        assert filename == "counts_all_scans.csv"
        assert len(read_csv(text)) == 4
