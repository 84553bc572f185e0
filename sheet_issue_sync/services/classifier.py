from __future__ import annotations

from collections.abc import Collection, Sequence
from enum import Enum
from typing import Any

"""Row classification: is a fetched row already synced?"""

__all__ = [
    "SyncState",
    "classify_row",
]


class SyncState(Enum):
    SYNCED = "synced"
    ELIGIBLE = "eligible"
    # sync column is not part of the fetched row, status unknown
    OUT_OF_RANGE = "out_of_range"


def classify_row(
    row: Sequence[Any],
    sync_col_index: int,
    start_col_index: int,
    truthy_values: Collection[str],
    range_width: int | None = None,
) -> SyncState:
    """Classify one rectangle row by its sync cell.

    The cell is compared after ``strip()`` by exact membership in
    ``truthy_values`` (no case folding). A sync column left or right of the
    cells present in the row gives ``OUT_OF_RANGE``; deciding what to do with
    that and warning about it is the caller's job.

    When ``range_width`` (columns spanned by the read range) is known, a sync
    column inside the range but past the end of a short row is an empty cell
    the API trimmed, so the row is ``ELIGIBLE``.
    """
    idx = sync_col_index - start_col_index
    if idx < 0:
        return SyncState.OUT_OF_RANGE
    if idx >= len(row):
        if range_width is not None and idx < range_width:
            return SyncState.ELIGIBLE
        return SyncState.OUT_OF_RANGE
    cell = row[idx]
    value = "" if cell is None else str(cell).strip()
    return SyncState.SYNCED if value in truthy_values else SyncState.ELIGIBLE
