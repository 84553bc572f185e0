from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path

from sheet_issue_sync.models.run_report import RunReport
from sheet_issue_sync.services.outputs import build_outputs, write_action_outputs

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
REPORT = RunReport(
    processed=3,
    created=2,
    skipped=4,
    failed=1,
    planned=0,
    created_urls=("https://github.com/acme/tracker/issues/7", "https://github.com/acme/tracker/issues/8"),
    start_time=T0,
    end_time=T0,
    elapsed_seconds=0.0,
)


def test_build_outputs():
    out = build_outputs(REPORT)
    assert out["processed_count"] == "3"
    assert out["created_count"] == "2"
    assert out["skipped_count"] == "4"
    assert out["failed_count"] == "1"
    assert out["planned_count"] == "0"
    assert json.loads(out["created_issue_urls"]) == list(REPORT.created_urls)
    assert out["summary_markdown"].startswith("Processed: 3\n")


def test_write_action_outputs_noop_outside_actions():
    assert write_action_outputs(REPORT, env={}) == []


def test_write_action_outputs(tmp_path: Path):
    output = tmp_path / "output"
    summary = tmp_path / "summary.md"
    written = write_action_outputs(
        REPORT, env={"GITHUB_OUTPUT": str(output), "GITHUB_STEP_SUMMARY": str(summary)}
    )
    assert written == [output, summary]

    text = output.read_text(encoding="utf-8")
    assert "processed_count=3\n" in text
    assert "created_issue_urls=" in text
    # multi-line value uses the heredoc form
    m = re.search(r"summary_markdown<<(\S+)\n(.*?)\n\1\n", text, re.S)
    assert m is not None
    assert "- https://github.com/acme/tracker/issues/8" in m.group(2)

    assert summary.read_text(encoding="utf-8").startswith("Processed: 3")
