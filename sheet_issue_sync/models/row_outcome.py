from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Per-row outcome model.

State transitions for one row:
    classified (synced | eligible) -> rendered (content | empty)
    -> (planned | created | create_failed) -> (written back | write-back failed)

A write-back failure never produces a RowOutcome: it is raised as
``WriteBackError`` and aborts the run.
"""

__all__ = [
    "RowStatus",
    "RowOutcome",
]


class RowStatus(Enum):
    """Terminal status of a row within one run."""
    SKIPPED_SYNCED = "skipped_synced"
    SKIPPED_EMPTY_TITLE = "skipped_empty_title"
    SKIPPED_OUT_OF_RANGE = "skipped_out_of_range"
    PLANNED = "planned"
    CREATED = "created"
    CREATE_FAILED = "create_failed"

    @property
    def is_skip(self) -> bool:
        return self in (
            RowStatus.SKIPPED_SYNCED,
            RowStatus.SKIPPED_EMPTY_TITLE,
            RowStatus.SKIPPED_OUT_OF_RANGE,
        )


@dataclass(frozen=True)
class RowOutcome:
    row_number: int  # シート上の絶対行番号
    status: RowStatus
    title: str | None = None
    issue_url: str | None = None
    error: str | None = None
