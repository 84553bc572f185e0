from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .row_outcome import RowOutcome, RowStatus

"""Run report model and the counter accumulator used by the run driver."""

__all__ = [
    "MAX_REPORTED_URLS",
    "RunReport",
    "RunCounters",
]

MAX_REPORTED_URLS = 100


@dataclass(frozen=True)
class RunReport:
    """Aggregated result of one sync run.

    Counters are exact; ``created_urls`` keeps only the first
    ``MAX_REPORTED_URLS`` issue URLs in creation order.
    """
    processed: int  # 描画済みかつタイトル非空で作成を試みた行
    created: int  # 実際に作成された Issue 数 (dry run では増えない)
    skipped: int  # 同期済み / 空タイトル / 範囲外 (skip ポリシー時)
    failed: int  # Issue 作成に失敗した行 (回復可能)
    planned: int  # dry run で作成予定とした行
    created_urls: tuple[str, ...]
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    dry_run: bool = False
    aborted: bool = False  # 書き戻し失敗で中断した場合 True


@dataclass
class RunCounters:
    """Mutable accumulator folded over RowOutcome values during the loop."""
    processed: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0
    planned: int = 0
    created_urls: list[str] = field(default_factory=list)

    def add(self, outcome: RowOutcome) -> None:
        status = outcome.status
        if status.is_skip:
            self.skipped += 1
            return
        self.processed += 1
        if status is RowStatus.PLANNED:
            self.planned += 1
        elif status is RowStatus.CREATE_FAILED:
            self.failed += 1
        elif status is RowStatus.CREATED:
            self.record_created(outcome.issue_url)

    def record_created(self, issue_url: str | None) -> None:
        self.created += 1
        if issue_url and len(self.created_urls) < MAX_REPORTED_URLS:
            self.created_urls.append(issue_url)

    def to_report(
        self,
        start_time: datetime,
        end_time: datetime,
        *,
        dry_run: bool = False,
        aborted: bool = False,
    ) -> RunReport:
        return RunReport(
            processed=self.processed,
            created=self.created,
            skipped=self.skipped,
            failed=self.failed,
            planned=self.planned,
            created_urls=tuple(self.created_urls),
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            dry_run=dry_run,
            aborted=aborted,
        )
