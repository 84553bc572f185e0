from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import chevron

from ..sheets.a1 import index_to_column_letter

"""Issue content rendering.

Templates are mustache, rendered with chevron against the context::

    {"row": {"A": "...", "B": "...", ...}, "rowIndex": <sheet row>, "now": <ISO-8601>}

``row`` is keyed by absolute column letter, so with a read range of ``C:F``
the first cell is ``row.C``.
"""

__all__ = [
    "RenderedContent",
    "build_row_view",
    "build_context",
    "render_row",
]


@dataclass(frozen=True)
class RenderedContent:
    title: str
    body: str


def build_row_view(row: Sequence[Any], start_col_index: int) -> dict[str, str]:
    """Map column letters to cell strings for the cells present in ``row``."""
    return {
        index_to_column_letter(start_col_index + offset): "" if cell is None else str(cell)
        for offset, cell in enumerate(row)
    }


def build_context(row_view: dict[str, str], row_number: int, now: str) -> dict[str, Any]:
    return {"row": row_view, "rowIndex": row_number, "now": now}


def render_row(
    title_template: str,
    body_template: str,
    row_view: dict[str, str],
    row_number: int,
    now: str,
) -> RenderedContent | None:
    """Render title and body for one row.

    Returns None when the title is blank after stripping; such rows must not
    produce an issue.
    """
    context = build_context(row_view, row_number, now)
    title = chevron.render(title_template, context)
    if not title.strip():
        return None
    body = chevron.render(body_template, context)
    return RenderedContent(title=title, body=body)
