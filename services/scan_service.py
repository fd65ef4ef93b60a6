"""
Scan resolution and count recording.

Pure functions over SessionState: each transition returns a new state and
never touches the network. SessionService wires them to IO.

State machine:
    idle --scan hit--> active --confirm--> idle (diff recorded)
    idle --scan miss--> not_found --scan/cancel--> ...
    active --cancel--> idle (nothing recorded)
    active --scan--> active (previous item dropped unconfirmed)
"""

from datetime import datetime, timezone
from typing import Any, Optional
import structlog

from exceptions import NoActiveItemError
from models.scan import (
    ColumnMapping,
    DiffEntry,
    Item,
    Row,
    ScanStatus,
    SessionState,
)
from utils.number_utils import format_quantity, to_number
from utils.text_utils import norm_variants

logger = structlog.get_logger(__name__)

LookupIndex = dict[str, Row]

MISSING_COLUMNS_MESSAGE = "Missing required columns: Barcode, Name, and On Hand."


# ===================
# LOOKUP INDEX
# ===================

def build_lookup_index(
    rows: list[Row],
    columns: Optional[ColumnMapping],
) -> LookupIndex:
    """
    Map every normalized barcode variant to its row.

    Duplicate barcodes are not rejected: the later row wins.
    """
    if columns is None:
        return {}

    index: LookupIndex = {}
    for row in rows:
        for variant in norm_variants(row.get(columns.barcode)):
            index[variant] = row

    logger.debug("lookup_index_built", rows=len(rows), keys=len(index))
    return index


def lookup(index: LookupIndex, code: Any) -> Optional[Row]:
    """Try each variant of code in order; first hit wins."""
    for variant in norm_variants(code):
        row = index.get(variant)
        if row is not None:
            return row
    return None


def item_from_row(row: Row, columns: ColumnMapping) -> Item:
    """Typed view of a row."""
    reserved = row.get(columns.reserved) if columns.reserved else None
    return Item(
        barcode=str(row.get(columns.barcode) or "").strip(),
        name=str(row.get(columns.name) or "").strip(),
        on_hand=to_number(row.get(columns.on_hand)),
        reserved=to_number(reserved),
    )


# ===================
# TRANSITIONS
# ===================

def apply_scan(state: SessionState, index: LookupIndex, code: str) -> SessionState:
    """
    Resolve a scanned code.

    A hit makes the item active (replacing any unconfirmed one) with its
    on-hand quantity as the candidate; a miss moves to not_found.
    """
    code = (code or "").strip()
    if not code:
        return state

    if state.columns is None:
        return state.model_copy(update={"error": MISSING_COLUMNS_MESSAGE})

    row = lookup(index, code)
    if row is None:
        logger.debug("scan_not_found", code=code)
        return state.model_copy(update={
            "status": ScanStatus.NOT_FOUND,
            "active": None,
            "candidate_qty": "",
            "not_found": code,
        })

    item = item_from_row(row, state.columns)
    logger.debug("scan_hit", code=code, barcode=item.barcode)
    return state.model_copy(update={
        "status": ScanStatus.ACTIVE,
        "active": item,
        "candidate_qty": format_quantity(item.on_hand),
        "not_found": "",
    })


def upsert_diff(diffs: list[DiffEntry], entry: DiffEntry) -> list[DiffEntry]:
    """Put entry first, dropping any older entry for the same barcode."""
    return [entry] + [d for d in diffs if d.barcode != entry.barcode]


def confirm_qty(
    state: SessionState,
    actual_input: Any = None,
    now: Optional[datetime] = None,
) -> tuple[SessionState, DiffEntry]:
    """
    Record the counted quantity for the active item.

    Args:
        state: Current session
        actual_input: Counted quantity, any type; None uses the candidate
        now: Timestamp override (defaults to current UTC time)

    Returns:
        (new state, recorded entry)

    Raises:
        NoActiveItemError: If no item is active
    """
    item = state.active
    if item is None:
        raise NoActiveItemError()

    raw = state.candidate_qty if actual_input is None else actual_input
    actual = to_number(raw)
    entry = DiffEntry(
        barcode=item.barcode,
        name=item.name,
        prev_on_hand=item.on_hand,
        reserved=item.reserved,
        actual=actual,
        delta=actual - item.on_hand,
        ts=now or datetime.now(timezone.utc),
    )

    logger.info(
        "count_confirmed",
        barcode=entry.barcode,
        prev_on_hand=entry.prev_on_hand,
        actual=entry.actual,
        delta=entry.delta
    )

    new_state = state.model_copy(update={
        "diffs": upsert_diff(state.diffs, entry),
        "status": ScanStatus.IDLE,
        "active": None,
        "candidate_qty": "",
    })
    return new_state, entry


def cancel_active(state: SessionState) -> SessionState:
    """Drop the active item (or not-found notice) without recording."""
    return state.model_copy(update={
        "status": ScanStatus.IDLE,
        "active": None,
        "candidate_qty": "",
        "not_found": "",
    })


def reset_session(state: SessionState) -> SessionState:
    """Clear all recorded counts; the loaded file stays."""
    return cancel_active(state).model_copy(update={"diffs": []})


def progress(state: SessionState) -> dict:
    """Counts shown next to the scanner."""
    return {
        "total_items": len(state.rows),
        "scanned_unique": len({d.barcode for d in state.diffs}),
        "with_differences": sum(1 for d in state.diffs if d.delta != 0),
    }
