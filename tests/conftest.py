# Shared pytest fixtures
from __future__ import annotations
import re
import tempfile
from pathlib import Path

import pytest

from sheet_issue_sync.config.loader import ENV_KEYS
from sheet_issue_sync.logging.error_log import ErrorLogBuffer
from sheet_issue_sync.logging.init import reset_logging
from sheet_issue_sync.models.config_models import SyncConfig
from sheet_issue_sync.models.range_origin import RangeOrigin
from sheet_issue_sync.services.row_processor import RunContext
from sheet_issue_sync.sheets.a1 import column_letter_to_index
from sheet_issue_sync.tracker.github_issues import CreatedIssue, IssueCreationError

_CELL_RE = re.compile(r"^'(?P<sheet>(?:[^']|'')+)'!(?P<col>[A-Z]+)(?P<row>\d+)$")


class FakeSheet:
    """In-memory worksheet: a rectangle starting at (start_col, start_row)."""

    def __init__(self, values, *, start_col: str = "A", start_row: int = 1, fail_write_rows=()):
        self.values = [list(r) for r in values]
        self.start_col_index = column_letter_to_index(start_col)
        self.start_row = start_row
        self.fail_write_rows = set(fail_write_rows)
        self.get_calls: list[str] = []
        self.writes: list[tuple[str, str]] = []

    def get_values(self, range_expression: str) -> list[list[str]]:
        self.get_calls.append(range_expression)
        return [list(r) for r in self.values]

    def update_cell(self, range_expression: str, value: str) -> None:
        m = _CELL_RE.match(range_expression)
        assert m, f"unexpected write range: {range_expression}"
        row_number = int(m.group("row"))
        if row_number in self.fail_write_rows:
            raise RuntimeError(f"quota exceeded writing {range_expression}")
        self.writes.append((range_expression, value))
        r = row_number - self.start_row
        c = column_letter_to_index(m.group("col")) - self.start_col_index
        while len(self.values) <= r:
            self.values.append([])
        row = self.values[r]
        while len(row) <= c:
            row.append("")
        row[c] = value

    def cell(self, column: str, row_number: int) -> str:
        row = self.values[row_number - self.start_row]
        c = column_letter_to_index(column) - self.start_col_index
        return row[c] if c < len(row) else ""


class FakeIssues:
    """Issue tracker double recording create calls."""

    def __init__(self, *, fail_titles=()):
        self.fail_titles = set(fail_titles)
        self.created: list[dict] = []

    def create_issue(self, title, body, labels=None):
        if title in self.fail_titles:
            raise IssueCreationError("HTTP 422: Validation Failed")
        number = len(self.created) + 1
        self.created.append({"title": title, "body": body, "labels": list(labels or [])})
        return CreatedIssue(url=f"https://github.com/acme/tracker/issues/{number}", number=number)


@pytest.fixture(autouse=True)
def _reset_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove every variable the loader or CLI would read from the real environment."""
    for names in ENV_KEYS.values():
        for name in names:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)
    return monkeypatch


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """spreadsheet_id: sheet-123
sheet_name: Tasks
read_range: "A:F"
data_start_row: 2
title_template: "Row {{rowIndex}}: {{row.A}}"
body_template: "{{row.B}}"
sync_column: F
labels: [bug, "from-sheet"]
max_issues_per_run: 5
rate_limit_delay: 0
github_token: ghp_test
repository: acme/tracker
access_token: ya29.test
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sync.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def base_config() -> SyncConfig:
    return SyncConfig(
        spreadsheet_id="sheet-123",
        sheet_name="Tasks",
        title_template="Row {{rowIndex}}: {{row.A}}",
        body_template="{{row.B}} ({{now}})",
        sync_column="C",
        github_token="ghp_test",
        repository="acme/tracker",
        access_token="ya29.test",
        read_range="A:C",
        data_start_row=2,
        max_issues_per_run=0,
        rate_limit_delay=0,
    )


@pytest.fixture()
def make_context(tmp_path: Path):
    def _make(config: SyncConfig, sheets, issues, *, origin: RangeOrigin | None = None) -> RunContext:
        origin = origin or RangeOrigin(start_col_index=0, start_row_number=1)
        return RunContext(
            config=config,
            now="2024-05-01T09:30:00.000Z",
            origin=origin,
            sync_col_index=column_letter_to_index(config.sync_column),
            sheets=sheets,
            issues=issues,
            error_log=ErrorLogBuffer(logs_dir=tmp_path / "logs"),
        )
    return _make


@pytest.fixture()
def make_sheet():
    return FakeSheet


@pytest.fixture()
def make_issues():
    return FakeIssues
