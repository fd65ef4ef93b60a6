"""
Lenient number coercion for spreadsheet cells.
"""

import math
import numbers
import re
from typing import Any, Union

_SEPARATORS = re.compile(r"[\s,]")
_LEADING_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def to_number(value: Any) -> Union[int, float]:
    """
    Convert a cell value to a finite number, defaulting to 0.

    Never raises: cells in exported spreadsheets are typed unreliably.

    - 12 → 12
    - " 1,200 " → 1200.0
    - "5 pcs" → 5.0 (leading number wins)
    - "", None, "n/a", "inf" → 0
    """
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return value if math.isfinite(value) else 0

    text = _SEPARATORS.sub("", "" if value is None else str(value))
    match = _LEADING_FLOAT.match(text)
    if not match:
        return 0

    number = float(match.group(0))
    return number if math.isfinite(number) else 0


def format_quantity(value: Union[int, float]) -> str:
    """Render a quantity without a trailing ".0" for whole numbers."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
