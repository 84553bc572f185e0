from __future__ import annotations

import json
import os
import uuid
from pathlib import Path

from ..models.run_report import RunReport
from .summary import render_summary_markdown

"""GitHub Actions output publishing.

When the tool runs as a workflow step, ``GITHUB_OUTPUT`` names a file that
step outputs are appended to and ``GITHUB_STEP_SUMMARY`` a markdown file shown
on the run page. Outside Actions neither variable is set and nothing happens.
"""

__all__ = [
    "build_outputs",
    "write_action_outputs",
]


def build_outputs(report: RunReport) -> dict[str, str]:
    return {
        "processed_count": str(report.processed),
        "created_count": str(report.created),
        "skipped_count": str(report.skipped),
        "failed_count": str(report.failed),
        "planned_count": str(report.planned),
        "created_issue_urls": json.dumps(list(report.created_urls)),
        "summary_markdown": render_summary_markdown(report),
    }


def _format_output(name: str, value: str) -> str:
    if "\n" not in value:
        return f"{name}={value}\n"
    # 複数行は heredoc 形式 (区切り文字は値と衝突しないランダム値)
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def write_action_outputs(report: RunReport, env: dict[str, str] | None = None) -> list[Path]:
    """Append outputs/step summary to the files named by the Actions env vars.

    Returns the paths that were written.
    """
    env = dict(os.environ) if env is None else env
    written: list[Path] = []

    output_file = env.get("GITHUB_OUTPUT")
    if output_file:
        path = Path(output_file)
        with path.open("a", encoding="utf-8") as f:
            for name, value in build_outputs(report).items():
                f.write(_format_output(name, value))
        written.append(path)

    summary_file = env.get("GITHUB_STEP_SUMMARY")
    if summary_file:
        path = Path(summary_file)
        with path.open("a", encoding="utf-8") as f:
            f.write(render_summary_markdown(report) + "\n")
        written.append(path)

    return written
