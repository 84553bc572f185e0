from __future__ import annotations

import dataclasses
import json
from pathlib import Path

from sheet_issue_sync.logging.error_log import ErrorLogBuffer
from sheet_issue_sync.services.orchestrator import run_sync

"""Integration: run_sync over an in-memory sheet and tracker.

Covers the full fetch -> classify -> render -> create -> write-back cycle,
rerun idempotence, and a read range that does not start at A1.
"""


def _config(base_config, **kw):
    return dataclasses.replace(base_config, title_template="{{row.A}}", **kw)


def _sheet_rows():
    return [
        ["Title", "Detail", "Synced"],
        ["Broken login", "Steps: open /login", ""],
        ["Old item", "already filed", "TRUE"],
        ["", "no title", ""],
        ["Slow search", "p95 > 2s", "済"],
        ["Typo on footer"],
    ]


def test_run_sync_full_cycle(base_config, make_sheet, make_issues, tmp_path: Path):
    cfg = _config(base_config, labels=("from-sheet",))
    sheet = make_sheet(_sheet_rows())
    issues = make_issues()

    report = run_sync(cfg, sheet, issues, error_log=ErrorLogBuffer(tmp_path / "logs"), sleep=lambda s: None)

    assert sheet.get_calls == ["'Tasks'!A:C"]
    assert [c["title"] for c in issues.created] == ["Broken login", "Typo on footer"]
    assert issues.created[0]["labels"] == ["from-sheet"]
    assert issues.created[0]["body"].startswith("Steps: open /login (")
    # 短い行 (末尾セル省略) も書き戻される
    assert sheet.cell("C", 6) == "TRUE"
    assert sheet.cell("C", 2) == "TRUE"
    assert (report.processed, report.created, report.skipped, report.failed) == (2, 2, 3, 0)
    assert not (tmp_path / "logs").exists()


def test_rerun_creates_nothing(base_config, make_sheet, make_issues, tmp_path: Path):
    cfg = _config(base_config)
    sheet = make_sheet(_sheet_rows())
    issues = make_issues()

    run_sync(cfg, sheet, issues, error_log=ErrorLogBuffer(tmp_path / "logs"), sleep=lambda s: None)
    second = run_sync(cfg, sheet, issues, error_log=ErrorLogBuffer(tmp_path / "logs"), sleep=lambda s: None)

    assert second.created == 0
    assert second.processed == 0
    assert second.skipped == 5  # 空タイトル行はスキップ扱い
    assert len(issues.created) == 2


def test_offset_read_range(base_config, make_sheet, make_issues, tmp_path: Path):
    # C5:E の矩形: 先頭行は sheet row 5, 先頭列は C
    cfg = dataclasses.replace(
        base_config,
        read_range="C5:E",
        data_start_row=6,
        sync_column="E",
        title_template="{{row.C}} @ {{rowIndex}}",
        body_template="{{row.D}}",
    )
    sheet = make_sheet(
        [["Title", "Detail", "Synced"], ["alpha", "a", ""], ["beta", "b", "TRUE"], ["gamma", "c"]],
        start_col="C",
        start_row=5,
    )
    issues = make_issues()

    report = run_sync(cfg, sheet, issues, error_log=ErrorLogBuffer(tmp_path / "logs"), sleep=lambda s: None)

    assert sheet.get_calls == ["'Tasks'!C5:E"]
    assert [c["title"] for c in issues.created] == ["alpha @ 6", "gamma @ 8"]
    assert [w[0] for w in sheet.writes] == ["'Tasks'!E6", "'Tasks'!E8"]
    assert report.created == 2


def test_partial_failure_writes_error_log(base_config, make_sheet, make_issues, tmp_path: Path):
    sheet = make_sheet(_sheet_rows())
    issues = make_issues(fail_titles={"Broken login"})
    logs = tmp_path / "logs"

    report = run_sync(_config(base_config), sheet, issues, error_log=ErrorLogBuffer(logs), sleep=lambda s: None)

    assert report.failed == 1
    assert report.created == 1
    assert sheet.cell("C", 2) == ""
    files = list(logs.glob("errors-*.log"))
    assert len(files) == 1
    rec = json.loads(files[0].read_text(encoding="utf-8").strip())
    assert rec["row"] == 2
    assert rec["error_type"] == "ISSUE_CREATE_FAILED"
    assert rec["issue_url"] is None
