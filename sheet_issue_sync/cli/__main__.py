from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from sheet_issue_sync.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from sheet_issue_sync.logging.init import log_summary, setup_logging
from sheet_issue_sync.models.run_report import RunReport
from sheet_issue_sync.services.orchestrator import SyncAbortedError, run_sync
from sheet_issue_sync.services.outputs import write_action_outputs
from sheet_issue_sync.services.summary import render_summary_line
from sheet_issue_sync.sheets.client import SheetsClient, SheetsClientError, build_sheets_service
from sheet_issue_sync.tracker.github_issues import GitHubIssuesClient

"""CLI entrypoint.

Flow:
- load .env, then config (YAML file + environment + flags)
- build the Sheets and GitHub clients
- run the sync and print the SUMMARY line
- publish GitHub Actions outputs when running inside a workflow

Exit codes: 0 run completed (failed issue creations are only counted), 1 fatal
(configuration, fetch, or a write-back failure that aborted the run).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True: .env の値で既存環境変数を上書きする。
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="sheet-issue-sync",
        description="Create GitHub issues from unsynced Google Sheets rows",
    )
    p.add_argument("--config", type=Path, default=None, help="YAML config file (default: config/sync.yml if present)")
    p.add_argument("--env-file", type=Path, default=Path(".env"), help="dotenv file to load first")
    p.add_argument("--dry-run", action="store_true", default=None, help="Render and log issues without creating them")
    p.add_argument("--max-issues", type=int, default=None, help="Override max_issues_per_run (0 = unlimited)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _report(report: RunReport) -> None:
    summary_line = render_summary_line(report)
    # log_summary が "SUMMARY " を付けるので取り除く
    log_summary(summary_line[len("SUMMARY "):])
    write_action_outputs(report)


def main(argv: list[str] | None = None) -> int:
    # None のときのみシステム引数を読む ([] はテストからの明示指定)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")
    logger.info("sheet-issue-sync: start")

    _load_env_file(args.env_file, override=True)

    config_path = args.config
    if config_path is None and DEFAULT_CONFIG_PATH.exists():
        config_path = DEFAULT_CONFIG_PATH
    overrides = {
        "dry_run": True if args.dry_run else None,
        "max_issues_per_run": args.max_issues,
    }
    try:
        cfg = load_config(config_path, overrides=overrides)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if cfg.dry_run:
        logger.info("dry run: no issues will be created and no cells written")

    try:
        service = build_sheets_service(
            access_token=cfg.access_token, credentials_file=cfg.credentials_file
        )
    except SheetsClientError as e:
        logger.error(f"sheets: {e}")
        return EXIT_FATAL
    sheets = SheetsClient(cfg.spreadsheet_id, service=service)
    issues = GitHubIssuesClient(cfg.github_token, cfg.repository, api_url=cfg.github_api_url)

    try:
        report = run_sync(cfg, sheets, issues)
    except SyncAbortedError as e:
        logger.error(f"processing: {e}")
        _report(e.report)
        return EXIT_FATAL
    except SheetsClientError as e:
        logger.error(f"sheets: {e}")
        return EXIT_FATAL

    _report(report)
    logger.info("sheet-issue-sync: done")

    # 作成失敗は件数のみ報告する
    if report.failed > 0:
        logger.warning(f"{report.failed} issue creation(s) failed; see the error log")
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
