from __future__ import annotations

import re

from ..models.range_origin import RangeOrigin

"""A1 notation helpers for Google Sheets ranges.

Column letters use bijective base-26 (A=1 .. Z=26, no zero digit), so
``A`` maps to index 0, ``Z`` to 25 and ``AA`` to 26. Indexes are zero based,
row numbers are one based as in the spreadsheet UI.
"""

__all__ = [
    "InvalidColumnError",
    "RangeParseError",
    "column_letter_to_index",
    "index_to_column_letter",
    "parse_range_start",
    "parse_range_width",
    "quote_sheet_name",
    "sheet_range",
    "cell_range",
]

_RANGE_START_PATTERN = re.compile(r"^\$?([A-Za-z]+)\$?(\d+)?$")


class InvalidColumnError(ValueError):
    """Raised when a column reference contains anything but A-Z."""


class RangeParseError(ValueError):
    """Raised when a read range does not start with a column reference."""


def column_letter_to_index(letter: str) -> int:
    """Convert a column letter (``A``, ``z``, ``AB``) to a zero based index."""
    if not letter:
        raise InvalidColumnError("invalid column letter: ''")
    result = 0
    for ch in letter.upper():
        digit = ord(ch) - 64  # A=1
        if digit < 1 or digit > 26:
            raise InvalidColumnError(f"invalid column letter: {letter!r}")
        result = result * 26 + digit
    return result - 1


def index_to_column_letter(index: int) -> str:
    if index < 0:
        raise ValueError(f"column index must be >= 0, got {index}")
    n = index + 1
    letters: list[str] = []
    while n > 0:
        n, remainder = divmod(n - 1, 26)
        letters.append(chr(65 + remainder))
    return "".join(reversed(letters))


def parse_range_start(range_string: str) -> RangeOrigin:
    """Return the origin of an A1 range (``'C5:F'`` -> column 2, row 5).

    Only the part before the first ``:`` is looked at. A ``Sheet!`` prefix and
    ``$`` absolute markers are ignored. Without a row number the range starts
    at row 1 (whole-column ranges such as ``A:Z``).

    Raises:
        RangeParseError: If the start reference is not ``<letters><digits?>``.
    """
    first_ref = range_string.strip().split(":")[0]
    ref = first_ref.split("!")[-1]
    m = _RANGE_START_PATTERN.match(ref)
    if not m:
        raise RangeParseError(
            "read range must start with a column reference (e.g. 'A:Z', 'C5:F'). "
            f"Given: {range_string!r}"
        )
    letters, digits = m.group(1), m.group(2)
    start_row = int(digits) if digits else 1
    if start_row < 1:
        raise RangeParseError(f"read range row must be >= 1. Given: {range_string!r}")
    return RangeOrigin(
        start_col_index=column_letter_to_index(letters),
        start_row_number=start_row,
    )


def parse_range_width(range_string: str) -> int | None:
    """Number of columns spanned by ``range_string``, or None if it has no end column.

    ``'A:Z'`` -> 26, ``'C5:F'`` -> 4. Single references (``'B2'``) and
    malformed ends return None.
    """
    ref = range_string.strip().split("!")[-1]
    if ":" not in ref:
        return None
    start = parse_range_start(range_string)
    m = _RANGE_START_PATTERN.match(ref.split(":", 1)[1])
    if not m:
        return None
    end_index = column_letter_to_index(m.group(1))
    if end_index < start.start_col_index:
        return None
    return end_index - start.start_col_index + 1


def quote_sheet_name(title: str) -> str:
    """Quote a worksheet title for use in an A1 range."""
    safe = title.strip().replace("'", "''")
    return f"'{safe}'"


def sheet_range(sheet_name: str, read_range: str) -> str:
    return f"{quote_sheet_name(sheet_name)}!{read_range.strip()}"


def cell_range(sheet_name: str, column_letter: str, row_number: int) -> str:
    # 書き戻し先は常に単一セル
    return f"{quote_sheet_name(sheet_name)}!{column_letter.upper()}{row_number}"
