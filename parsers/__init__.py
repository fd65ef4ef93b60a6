"""
CSV parsing and header detection.
"""

from parsers.csv_parser import (
    ingest_csv,
    guess_base64,
    CsvIngestResult,
)
from parsers.column_mapper import (
    map_columns,
    normalize_header,
)

__all__ = [
    "ingest_csv",
    "guess_base64",
    "CsvIngestResult",
    "map_columns",
    "normalize_header",
]
