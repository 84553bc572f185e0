from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the structured per-row error log.

One record is written for every row whose issue creation failed and for the
row whose write-back failed (which also aborts the run). The key set is fixed;
``issue_url`` is null unless an issue was already created for the row.
"""

__all__ = [
    "ErrorRecord",
    "ISSUE_CREATE_FAILED",
    "WRITE_BACK_FAILED",
]

ISSUE_CREATE_FAILED = "ISSUE_CREATE_FAILED"
WRITE_BACK_FAILED = "WRITE_BACK_FAILED"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        spreadsheet_id: Spreadsheet being synced
        sheet: Worksheet title
        row: Absolute sheet row number (1-based)
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Error message from the failing collaborator
        issue_url: URL of the issue created for the row, if any
    """
    timestamp: str
    spreadsheet_id: str
    sheet: str
    row: int
    error_type: str
    message: str
    issue_url: str | None = None

    @staticmethod
    def create(
        spreadsheet_id: str,
        sheet: str,
        row: int,
        error_type: str,
        message: str,
        issue_url: str | None = None,
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            spreadsheet_id=spreadsheet_id,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
            issue_url=issue_url,
        )

    def to_json_line(self) -> str:
        # dataclass -> dict なので余計なキーは入らない
        return json.dumps(asdict(self), ensure_ascii=False)
