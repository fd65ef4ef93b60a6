"""
Session API request/response schemas.
"""

from typing import Optional, Union

from pydantic import Field

from models.base import BaseSchema
from models.scan import ColumnMapping, DiffEntry, Item, ScanStatus


class NamespaceRequest(BaseSchema):
    namespace: str = Field(..., min_length=1, max_length=200)


class LoadRequest(BaseSchema):
    """Load a stored CSV (and its scan log) by key."""

    key: str = Field(..., min_length=1, description="Blob key of the CSV")


class ScanRequest(BaseSchema):
    code: str = Field(..., description="Scanned or typed barcode")


class ConfirmRequest(BaseSchema):
    """
    Confirm the active item's count.

    Leave actual empty to save the candidate quantity shown to the operator.
    """

    actual: Optional[Union[float, str]] = Field(
        None,
        description="Counted quantity; coerced leniently"
    )


class ProgressResponse(BaseSchema):
    total_items: int
    scanned_unique: int
    with_differences: int


class SessionResponse(BaseSchema):
    """Operator-facing view of the session (rows omitted)."""

    namespace: str
    active_key: str
    file_name: str
    row_count: int
    headers: list[str]
    columns: Optional[ColumnMapping] = None
    parse_strategy: Optional[str] = None
    scanning_enabled: bool
    status: ScanStatus
    active: Optional[Item] = None
    candidate_qty: str = ""
    not_found: str = ""
    error: str = ""
    saving: bool = False
    diffs: list[DiffEntry] = Field(default_factory=list)
    progress: ProgressResponse
