"""
Header detection for inventory CSVs.

Maps whatever headers a file uses onto the four logical fields the scanner
needs: barcode, name, on-hand and (optionally) reserved.
"""

import re
from typing import Optional
import structlog

from models.scan import ColumnMapping
from utils.text_utils import strip_bom

logger = structlog.get_logger(__name__)

_HEADER_NOISE = re.compile(r"[\s_/\-()]+")


def normalize_header(header) -> str:
    """
    Normalize a header for alias comparison.

    - "On Hand (not editable)" → "onhandnoteditable"
    - "Bar_Code" → "barcode"
    - "\\ufeffSKU" → "sku"
    """
    text = strip_bom(str(header or "").strip()).lower()
    return _HEADER_NOISE.sub("", text)


def _alias_set(*aliases: str) -> frozenset[str]:
    return frozenset(normalize_header(a) for a in aliases)


BARCODE_ALIASES = _alias_set(
    "barcode", "bar code", "sku", "upc", "ean", "gtin", "code", "item code",
)
NAME_ALIASES = _alias_set(
    "name", "product name", "productname", "title", "item name", "description",
)
ON_HAND_ALIASES = _alias_set(
    "onhand", "on hand", "on hand (not editable)", "stock", "in stock",
    "qty", "quantity", "available",
)
RESERVED_ALIASES = _alias_set(
    "reserved", "allocated", "onhold", "on hold", "committed",
)


def _find(headers: list[str], aliases: frozenset[str]) -> Optional[str]:
    """First header whose normalized form is an alias."""
    for header in headers:
        if normalize_header(header) in aliases:
            return header
    return None


def map_columns(headers: list[str]) -> Optional[ColumnMapping]:
    """
    Resolve the logical fields from a header list.

    Args:
        headers: Header names as they appear in the file

    Returns:
        ColumnMapping, or None if barcode, name or on-hand has no match
    """
    headers = list(headers or [])

    barcode = _find(headers, BARCODE_ALIASES)
    name = _find(headers, NAME_ALIASES)
    on_hand = _find(headers, ON_HAND_ALIASES)
    reserved = _find(headers, RESERVED_ALIASES)

    if not barcode or not name or not on_hand:
        logger.info(
            "columns_unmapped",
            headers=headers,
            barcode=barcode,
            name=name,
            on_hand=on_hand
        )
        return None

    return ColumnMapping(
        barcode=barcode,
        name=name,
        on_hand=on_hand,
        reserved=reserved,
    )
