from __future__ import annotations

from dataclasses import dataclass

"""RangeOrigin model.

Maps positions inside the fetched rectangle back to absolute spreadsheet
coordinates: rectangle row ``i`` is sheet row ``start_row_number + i`` and
rectangle column ``j`` is sheet column ``start_col_index + j``.
"""

__all__ = [
    "RangeOrigin",
]


@dataclass(frozen=True)
class RangeOrigin:
    """Top-left corner of the configured read range."""
    start_col_index: int  # 0 始まり (A=0)
    start_row_number: int  # 1 始まり

    def row_number_at(self, offset: int) -> int:
        """Absolute sheet row number of the rectangle row at ``offset``."""
        return self.start_row_number + offset
