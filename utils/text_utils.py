"""
Text utilities for barcode matching.

Scanners in keyboard-wedge mode and spreadsheet copy/paste both leave junk
around codes (BOMs, spaces, control characters). Everything that compares
codes goes through norm_code first.
"""

import re
from typing import Any

BOM = "\ufeff"

_WHITESPACE = re.compile(r"\s+")
_NOT_CODE_CHAR = re.compile(r"[^A-Za-z0-9_-]")
_DIGITS = re.compile(r"[0-9]+")


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    # 123.0 read from a numeric cell is the code "123"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def strip_bom(text: str) -> str:
    """Remove a leading byte-order mark."""
    return text[1:] if text.startswith(BOM) else text


def norm_code(value: Any) -> str:
    """
    Canonicalize a scanned or stored code for matching.

    - " 0001 234\\r" → "0001234"
    - "\\ufeffABC-999" → "ABC-999"
    - "SKU#12/A" → "SKU12A"

    Args:
        value: Raw code (string, number or None)

    Returns:
        Code with only ASCII letters, digits, "_" and "-" left
    """
    text = strip_bom(_to_text(value)).strip()
    text = _WHITESPACE.sub("", text)
    return _NOT_CODE_CHAR.sub("", text)


def norm_variants(value: Any) -> list[str]:
    """
    Lookup candidates for a code, most specific first.

    Numeric codes also yield their form without leading zeros so
    "00012345" in the file matches a scanner reading "12345" and
    the other way round.

    Returns:
        [code] or [code, code_without_leading_zeros]; [] for an empty code
    """
    code = norm_code(value)
    if not code:
        return []

    variants = [code]
    if _DIGITS.fullmatch(code):
        stripped = code.lstrip("0")
        if stripped and stripped != code:
            variants.append(stripped)
    return variants
