from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import OutOfRangePolicy, SyncConfig
from ..models.row_outcome import RowOutcome, RowStatus
from ..models.run_report import RunCounters, RunReport
from ..sheets.a1 import column_letter_to_index, parse_range_start, parse_range_width, sheet_range
from .classifier import SyncState, classify_row
from .progress import RowProgress
from .row_processor import RunContext, WriteBackError, process_row

logger = logging.getLogger(__name__)

"""Run driver for the sheet -> issue sync.

Fetches the configured range once, then walks its rows strictly in order:
classify -> process -> (sleep). The loop stops early when the per-run limit
is reached (normal termination) or when a write-back fails (abort).
"""

__all__ = [
    "ProcessingError",
    "SyncAbortedError",
    "process_rows",
    "run_sync",
    "utc_now_iso",
]


class ProcessingError(Exception):
    """Base exception for processing errors."""
    pass


class SyncAbortedError(ProcessingError):
    """The run stopped on a fatal row; ``report`` holds the partial counters."""

    def __init__(self, report: RunReport, cause: WriteBackError) -> None:
        super().__init__(str(cause))
        self.report = report
        self.cause = cause


def utc_now_iso() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def process_rows(
    ctx: RunContext,
    values: Sequence[Sequence[Any]],
    *,
    range_width: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunReport:
    """Walk the fetched rectangle and aggregate row outcomes into a RunReport.

    Args:
        ctx: Run context (config, clients, range origin, timestamp)
        values: Fetched rectangle, row ``i`` is sheet row ``start_row_number + i``
        range_width: Columns spanned by the read range, if known
        sleep: Called with seconds between processed rows

    Raises:
        SyncAbortedError: A write-back failed; the partial report is attached.
    """
    cfg = ctx.config
    start_time = datetime.now(UTC)
    counters = RunCounters()
    start_row_index = max(0, cfg.data_start_row - ctx.origin.start_row_number)
    limit = cfg.max_issues_per_run
    delay_seconds = cfg.rate_limit_delay / 1000 if cfg.rate_limit_delay > 0 else 0.0
    warned_out_of_range = False

    candidates = values[start_row_index:]
    with RowProgress(len(candidates)) as progress:
        for offset, row in enumerate(candidates, start=start_row_index):
            # dry run では planned を上限判定に使う
            done = counters.planned if cfg.dry_run else counters.created
            if limit > 0 and done >= limit:
                logger.info(f"Reached max_issues_per_run ({limit}); stopping early")
                break

            row = row or []
            row_number = ctx.origin.row_number_at(offset)
            state = classify_row(
                row,
                ctx.sync_col_index,
                ctx.origin.start_col_index,
                cfg.truthy_values,
                range_width,
            )

            if state is SyncState.OUT_OF_RANGE:
                if not warned_out_of_range:
                    action = (
                        "rows will be skipped"
                        if cfg.out_of_range_policy is OutOfRangePolicy.SKIP
                        else "rows will be treated as unsynced"
                    )
                    logger.warning(
                        f"SYNC_COLUMN ({cfg.sync_column}) is outside READ_RANGE "
                        f"({cfg.read_range}). Existing sync flags cannot be read; {action}."
                    )
                    warned_out_of_range = True
                if cfg.out_of_range_policy is OutOfRangePolicy.SKIP:
                    counters.add(RowOutcome(row_number, RowStatus.SKIPPED_OUT_OF_RANGE))
                    progress.advance(row_number)
                    continue
                state = SyncState.ELIGIBLE

            if state is SyncState.SYNCED:
                counters.add(RowOutcome(row_number, RowStatus.SKIPPED_SYNCED))
                progress.advance(row_number)
                continue

            try:
                outcome = process_row(ctx, row, row_number)
            except WriteBackError as e:
                # Issue は作成済みなので created に数え URL も報告する
                counters.processed += 1
                counters.record_created(e.issue_url)
                report = counters.to_report(
                    start_time, datetime.now(UTC), dry_run=cfg.dry_run, aborted=True
                )
                logger.error(f"Aborting run at row {row_number}; remaining rows were not processed")
                raise SyncAbortedError(report, e) from e

            counters.add(outcome)
            progress.advance(row_number)
            progress.set_postfix(
                created=counters.created, failed=counters.failed, skipped=counters.skipped
            )

            if not outcome.status.is_skip and delay_seconds > 0:
                sleep(delay_seconds)

    return counters.to_report(start_time, datetime.now(UTC), dry_run=cfg.dry_run)


def run_sync(
    config: SyncConfig,
    sheets: Any,
    issues: Any,
    *,
    error_log: ErrorLogBuffer | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunReport:
    """Fetch the read range once and sync its rows to issues.

    Args:
        config: Validated configuration
        sheets: Object with ``get_values(range)`` and ``update_cell(range, value)``
        issues: Object with ``create_issue(title, body, labels)``
        error_log: Buffer for per-row error records (flushed before returning)

    Raises:
        SyncAbortedError: A write-back failed after its issue was created.
        SheetsClientError: The range could not be fetched.
    """
    origin = parse_range_start(config.read_range)
    range_width = parse_range_width(config.read_range)
    sync_col_index = column_letter_to_index(config.sync_column)

    read_range = sheet_range(config.sheet_name, config.read_range)
    values = sheets.get_values(read_range)
    logger.info(f"Fetched {len(values)} rows from {read_range}")

    if error_log is None:
        error_log = ErrorLogBuffer()
    ctx = RunContext(
        config=config,
        now=utc_now_iso(),
        origin=origin,
        sync_col_index=sync_col_index,
        sheets=sheets,
        issues=issues,
        error_log=error_log,
    )
    try:
        return process_rows(ctx, values, range_width=range_width, sleep=sleep)
    finally:
        try:
            path = error_log.flush()
        except OSError as e:
            # エラーログ書き込み失敗で実行結果自体は失敗にしない
            logger.warning(f"failed to write error log: {e}")
        else:
            if path is not None:
                logger.info(f"Error log written to {path}")
