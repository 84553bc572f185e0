from __future__ import annotations

from ..models.run_report import RunReport

"""Summary rendering for a finished (or aborted) run.

Two forms:
- the SUMMARY log line (single line, ``key=value`` pairs)
- the markdown summary published as an action output / step summary
"""

__all__ = [
    "render_summary_line",
    "render_summary_markdown",
    "run_status",
]


def _format_seconds(value: float) -> str:
    # 科学表記 (5e-05) を避ける
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def run_status(report: RunReport) -> str:
    """``aborted`` on a fatal write-back, ``partial`` with failed rows, else ``ok``."""
    if report.aborted:
        return "aborted"
    if report.failed > 0:
        return "partial"
    return "ok"


def render_summary_line(report: RunReport) -> str:
    """Render the SUMMARY line.

    Format::

        SUMMARY processed={n} created={n} skipped={n} failed={n} planned={n}
        urls={n} elapsed_sec={s} status={ok|partial|aborted}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = RunReport(processed=2, created=2, skipped=1, failed=0, planned=0,
        ...               created_urls=("u1", "u2"), start_time=t, end_time=t,
        ...               elapsed_seconds=0.0)
        >>> render_summary_line(r)
        'SUMMARY processed=2 created=2 skipped=1 failed=0 planned=0 urls=2 elapsed_sec=0 status=ok'
    """
    return (
        f"SUMMARY processed={report.processed} "
        f"created={report.created} "
        f"skipped={report.skipped} "
        f"failed={report.failed} "
        f"planned={report.planned} "
        f"urls={len(report.created_urls)} "
        f"elapsed_sec={_format_seconds(report.elapsed_seconds)} "
        f"status={run_status(report)}"
    )


def render_summary_markdown(report: RunReport) -> str:
    lines = [
        f"Processed: {report.processed}",
        f"Created: {report.created}",
        f"Skipped: {report.skipped}",
        f"Failed: {report.failed}",
    ]
    if report.dry_run:
        lines.append(f"Planned: {report.planned}")
    if report.aborted:
        lines.append("Aborted: spreadsheet write-back failed, see log for the affected row")
    lines.append("")
    lines.extend(f"- {url}" for url in report.created_urls)
    return "\n".join(lines)
