"""
CSV parser for inventory count files.

Files come from whatever spreadsheet the warehouse exported, so parsing is
best effort: several delimiter strategies are tried in a fixed order and the
first one that yields at least one row wins. Malformed input never raises;
the result carries an error message and a snippet of the first line instead.
"""

import base64
import binascii
import csv
import re
from dataclasses import dataclass, field
from io import StringIO
from typing import Optional, Union
import structlog

import pandas as pd

from exceptions import CsvParseError
from models.scan import Row
from utils.text_utils import strip_bom

logger = structlog.get_logger(__name__)

DELIMITERS = {
    "comma": ",",
    "tab": "\t",
    "semicolon": ";",
    "pipe": "|",
}

# Tried in this order; "auto" sniffs among DELIMITERS
STRATEGIES = ["auto", "comma", "tab", "semicolon", "pipe"]

SNIFF_SAMPLE_CHARS = 64 * 1024
DEFAULT_SNIPPET_CHARS = 200

_BASE64_TEXT = re.compile(r"[A-Za-z0-9+/]+={0,2}")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class CsvIngestResult:
    """Result of ingesting one CSV file."""
    rows: list[Row] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    strategy: Optional[str] = None
    decoded_base64: bool = False
    error: Optional[str] = None
    first_line: str = ""
    attempted: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True if some strategy produced rows."""
        return self.error is None and len(self.rows) > 0

    def raise_for_error(self) -> None:
        """Raise CsvParseError if ingestion failed."""
        if not self.ok:
            raise CsvParseError(self.first_line, self.attempted)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "ok": self.ok,
            "row_count": len(self.rows),
            "headers": self.headers,
            "strategy": self.strategy,
            "decoded_base64": self.decoded_base64,
            "error": self.error,
            "first_line": self.first_line,
        }


def guess_base64(text: str) -> Optional[str]:
    """
    Decode text that looks like a base64-encoded CSV.

    Heuristic only. Text counts as base64 when, ignoring whitespace, it is
    made of the base64 alphabet with valid padding, decodes to UTF-8 and the
    decoded text contains a delimiter. A literal CSV with no delimiter whose
    characters all fall in the alphabet can still be misread; that ends as a
    parse failure downstream, never a crash.

    Returns:
        Decoded text, or None if text should be treated literally
    """
    compact = _WHITESPACE.sub("", text)
    if len(compact) < 4 or len(compact) % 4 != 0:
        return None
    if not _BASE64_TEXT.fullmatch(compact):
        return None

    try:
        decoded = base64.b64decode(compact, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    if not any(d in decoded for d in DELIMITERS.values()):
        return None
    return decoded


def sniff_delimiter(text: str) -> Optional[str]:
    """Detect the delimiter among comma, tab, semicolon and pipe."""
    sample = text[:SNIFF_SAMPLE_CHARS]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters="".join(DELIMITERS.values()))
    except csv.Error:
        return None
    return dialect.delimiter


def _clean_header(header) -> str:
    return strip_bom(str(header)).strip()


def _is_blank(row: Row) -> bool:
    return all(not str(value).strip() for value in row.values())


def _read_rows(text: str, delimiter: str) -> tuple[list[Row], list[str]]:
    """Parse text with one delimiter; first line is the header."""
    df = pd.read_csv(
        StringIO(text),
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        index_col=False,
        on_bad_lines="skip",
        engine="python",
    )
    df.columns = [_clean_header(col) for col in df.columns]
    df = df.fillna("")

    rows = [row for row in df.to_dict(orient="records") if not _is_blank(row)]
    headers = list(rows[0].keys()) if rows else list(df.columns)
    return rows, headers


def _first_line(text: str, limit: int) -> str:
    lines = text.splitlines()
    return lines[0][:limit] if lines else ""


def ingest_csv(
    content: Union[str, bytes],
    snippet_chars: int = DEFAULT_SNIPPET_CHARS,
) -> CsvIngestResult:
    """
    Parse raw CSV content into rows.

    Args:
        content: File text or bytes (UTF-8, BOM tolerated, may be base64)
        snippet_chars: Characters of the first line kept for diagnostics

    Returns:
        CsvIngestResult; check .ok before using rows
    """
    if isinstance(content, bytes):
        text = content.decode("utf-8-sig", errors="replace")
    else:
        text = content

    result = CsvIngestResult()

    decoded = guess_base64(text)
    if decoded is not None:
        text = decoded
        result.decoded_base64 = True

    text = strip_bom(text)

    for strategy in STRATEGIES:
        result.attempted.append(strategy)

        if strategy == "auto":
            delimiter = sniff_delimiter(text)
            if delimiter is None:
                logger.debug("csv_sniff_failed")
                continue
        else:
            delimiter = DELIMITERS[strategy]

        try:
            rows, headers = _read_rows(text, delimiter)
        except Exception as e:
            logger.debug("csv_strategy_failed", strategy=strategy, error=str(e))
            continue

        if rows:
            result.rows = rows
            result.headers = headers
            result.strategy = strategy
            logger.info(
                "csv_ingested",
                strategy=strategy,
                delimiter=repr(delimiter),
                rows=len(rows),
                headers=len(headers),
                decoded_base64=result.decoded_base64
            )
            return result

    result.first_line = _first_line(text, snippet_chars)
    result.error = f"Could not parse CSV. First line: {result.first_line!r}"
    logger.warning(
        "csv_ingest_failed",
        attempted=result.attempted,
        first_line=result.first_line
    )
    return result
