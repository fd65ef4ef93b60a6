"""
Scanner session schemas.

DiffEntry and ColumnMapping keep the camelCase field names of the stored
scan logs (prevOnHand, onHand) as aliases so older logs load unchanged.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import ConfigDict, Field

from models.base import BaseSchema


Row = dict[str, Any]


class ScanStatus(str, Enum):
    """Where the scanner is in the scan/confirm cycle."""
    IDLE = "idle"
    ACTIVE = "active"
    NOT_FOUND = "not_found"


class ColumnMapping(BaseSchema):
    """Source headers backing the four logical fields."""

    # Header names are used verbatim as row keys
    model_config = ConfigDict(str_strip_whitespace=False)

    barcode: str
    name: str
    on_hand: str = Field(..., alias="onHand")
    reserved: Optional[str] = None


class Item(BaseSchema):
    """Typed view of one row, built on a successful scan."""

    barcode: str
    name: str
    on_hand: float = Field(..., alias="onHand")
    reserved: float = 0


class DiffEntry(BaseSchema):
    """
    One confirmed count.

    delta is always actual - prev_on_hand.
    """

    barcode: str
    name: str = ""
    prev_on_hand: float = Field(0, alias="prevOnHand")
    reserved: float = 0
    actual: float = 0
    delta: float = 0
    ts: datetime


class ScanLog(BaseSchema):
    """Persisted scan log for one source file."""

    diffs: list[DiffEntry] = Field(default_factory=list)


class SessionState(BaseSchema):
    """
    Everything the operator session holds.

    Rows and diffs are replaced wholesale on every load.
    """

    namespace: str = "default"
    active_key: str = ""
    file_name: str = ""
    rows: list[Row] = Field(default_factory=list)
    headers: list[str] = Field(default_factory=list)
    columns: Optional[ColumnMapping] = None
    parse_strategy: Optional[str] = None
    diffs: list[DiffEntry] = Field(default_factory=list)
    status: ScanStatus = ScanStatus.IDLE
    active: Optional[Item] = None
    candidate_qty: str = ""
    not_found: str = ""
    error: str = ""

    @property
    def scanning_enabled(self) -> bool:
        """Scanning needs rows and a resolved column mapping."""
        return bool(self.rows) and self.columns is not None
