from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Config dataclasses for the sheet -> issue sync tool.

These are produced by ``sheet_issue_sync.config.loader`` after validation and
coercion; nothing downstream re-parses raw strings.
"""

__all__ = [
    "DEFAULT_TRUTHY_VALUES",
    "OutOfRangePolicy",
    "SyncConfig",
]

DEFAULT_TRUTHY_VALUES: tuple[str, ...] = ("TRUE", "true", "True", "1", "はい", "済")


class OutOfRangePolicy(Enum):
    """What to do with rows whose sync column lies outside the read range.

    - PROCESS: treat the row as unsynced (may create duplicates on re-runs)
    - SKIP: leave the row alone and count it as skipped
    """
    PROCESS = "process"
    SKIP = "skip"


@dataclass(frozen=True)
class SyncConfig:
    """Validated, immutable configuration for one sync run.

    Invariant: spreadsheet_id, sheet_name, title_template, body_template,
    sync_column, github_token and repository are non-empty and
    data_start_row >= 1.
    """
    spreadsheet_id: str
    sheet_name: str
    title_template: str
    body_template: str
    sync_column: str  # 大文字化済み列記号 (例: "F")
    github_token: str
    repository: str  # "owner/repo"
    access_token: str | None = None  # Google OAuth access token
    credentials_file: str | None = None  # service account JSON (access_token が無い場合)
    read_range: str = "A:Z"
    data_start_row: int = 2
    truthy_values: frozenset[str] = frozenset(DEFAULT_TRUTHY_VALUES)
    labels: tuple[str, ...] = ()
    max_issues_per_run: int = 10  # 0 = unlimited
    rate_limit_delay: int = 1000  # milliseconds between processed rows
    dry_run: bool = False
    sync_write_back_value: str = "TRUE"
    github_api_url: str = "https://api.github.com"
    out_of_range_policy: OutOfRangePolicy = OutOfRangePolicy.PROCESS

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.repository.split("/", 1)[1]
