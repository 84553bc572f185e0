from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import SyncConfig
from ..models.error_record import ISSUE_CREATE_FAILED, WRITE_BACK_FAILED, ErrorRecord
from ..models.range_origin import RangeOrigin
from ..models.row_outcome import RowOutcome, RowStatus
from ..sheets.a1 import cell_range
from .renderer import build_row_view, render_row

logger = logging.getLogger(__name__)

"""Single-row pipeline: render -> create issue -> write back the sync marker.

Failure policy:
- issue creation failed: recoverable, the row is reported as CREATE_FAILED
  and the run continues
- write-back failed after the issue was created: fatal, WriteBackError is
  raised so the driver stops before touching another row (a re-run would
  otherwise create the same issue again)
"""

__all__ = [
    "RunContext",
    "WriteBackError",
    "process_row",
]


class WriteBackError(Exception):
    """An issue was created but its row could not be marked as synced."""

    def __init__(self, issue_url: str, row_number: int, cause: BaseException) -> None:
        super().__init__(
            f"created issue {issue_url} for row {row_number} but failed to update the "
            f"spreadsheet: {cause}"
        )
        self.issue_url = issue_url
        self.row_number = row_number
        self.cause = cause


@dataclass(frozen=True)
class RunContext:
    """Everything a row needs, passed explicitly instead of module globals."""
    config: SyncConfig
    now: str  # 実行開始時に一度だけ取得した ISO-8601 時刻
    origin: RangeOrigin
    sync_col_index: int
    sheets: Any  # update_cell(range, value) を持つもの (SheetsClient)
    issues: Any  # create_issue(title, body, labels) を持つもの (GitHubIssuesClient)
    error_log: ErrorLogBuffer = field(default_factory=ErrorLogBuffer)


def process_row(ctx: RunContext, row: Sequence[Any], row_number: int) -> RowOutcome:
    """Run the pipeline for one eligible row at absolute sheet row ``row_number``.

    Raises:
        WriteBackError: The issue exists but the sync marker was not written.
    """
    cfg = ctx.config
    row_view = build_row_view(row, ctx.origin.start_col_index)
    content = render_row(cfg.title_template, cfg.body_template, row_view, row_number, ctx.now)
    if content is None:
        logger.info(f"Skipping row {row_number}: empty title after rendering")
        return RowOutcome(row_number=row_number, status=RowStatus.SKIPPED_EMPTY_TITLE)

    if cfg.dry_run:
        logger.info(f"[dry_run] Create issue: {content.title}")
        return RowOutcome(row_number=row_number, status=RowStatus.PLANNED, title=content.title)

    try:
        created = ctx.issues.create_issue(content.title, content.body, list(cfg.labels))
    except Exception as e:
        logger.warning(f"Error processing row {row_number}: {e}")
        ctx.error_log.append(
            ErrorRecord.create(
                spreadsheet_id=cfg.spreadsheet_id,
                sheet=cfg.sheet_name,
                row=row_number,
                error_type=ISSUE_CREATE_FAILED,
                message=str(e),
            )
        )
        return RowOutcome(
            row_number=row_number,
            status=RowStatus.CREATE_FAILED,
            title=content.title,
            error=str(e),
        )

    issue_url = created.url
    target = cell_range(cfg.sheet_name, cfg.sync_column, row_number)
    try:
        ctx.sheets.update_cell(target, cfg.sync_write_back_value)
    except Exception as e:
        logger.critical(
            f"Created issue {issue_url} for row {row_number}, but failed to update "
            f"{target}. Manual fix is required: mark the row as synced before the next "
            f"run to prevent duplicate creation."
        )
        ctx.error_log.append(
            ErrorRecord.create(
                spreadsheet_id=cfg.spreadsheet_id,
                sheet=cfg.sheet_name,
                row=row_number,
                error_type=WRITE_BACK_FAILED,
                message=str(e),
                issue_url=issue_url,
            )
        )
        raise WriteBackError(issue_url, row_number, e) from e

    logger.debug(f"row {row_number}: created {issue_url}, marked {target}")
    return RowOutcome(
        row_number=row_number,
        status=RowStatus.CREATED,
        title=content.title,
        issue_url=issue_url,
    )
