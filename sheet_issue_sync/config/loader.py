from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DEFAULT_TRUTHY_VALUES, OutOfRangePolicy, SyncConfig
from ..sheets.a1 import InvalidColumnError, RangeParseError, column_letter_to_index, parse_range_start

logger = logging.getLogger(__name__)

"""Config loader.

Responsibilities:
- Load the optional YAML file (``config/sync.yml`` by default)
- Overlay environment variables (empty values count as unset)
- Validate the merged mapping against ``config_schema.json``
- Coerce strings into a frozen SyncConfig, applying defaults

Precedence (low -> high): YAML file, environment, CLI overrides.
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/sync.yml")

# config key -> environment variables (first non-empty wins)
ENV_KEYS: dict[str, tuple[str, ...]] = {
    "access_token": ("GOOGLE_OAUTH_ACCESS_TOKEN", "ACCESS_TOKEN"),
    "credentials_file": ("GOOGLE_SERVICE_ACCOUNT_FILE",),
    "spreadsheet_id": ("SPREADSHEET_ID",),
    "sheet_name": ("SHEET_NAME",),
    "read_range": ("READ_RANGE",),
    "data_start_row": ("DATA_START_ROW",),
    "boolean_truthy_values": ("BOOLEAN_TRUTHY_VALUES",),
    "title_template": ("TITLE_TEMPLATE",),
    "body_template": ("BODY_TEMPLATE",),
    "sync_column": ("SYNC_COLUMN",),
    "labels": ("LABELS",),
    "max_issues_per_run": ("MAX_ISSUES_PER_RUN",),
    "rate_limit_delay": ("RATE_LIMIT_DELAY",),
    "dry_run": ("DRY_RUN",),
    "sync_write_back_value": ("SYNC_WRITE_BACK_VALUE",),
    "github_token": ("GITHUB_TOKEN",),
    "repository": ("GITHUB_REPOSITORY",),
    "github_api_url": ("GITHUB_API_URL",),
    "out_of_range_policy": ("SYNC_COLUMN_OUT_OF_RANGE",),
}


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate merged config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the data
            fails validation (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file must contain a mapping: {path}")
    return data


def _env_overlay(env: Mapping[str, str]) -> dict[str, str]:
    overlay: dict[str, str] = {}
    for key, names in ENV_KEYS.items():
        for name in names:
            value = env.get(name)
            if value:  # 空文字は未設定扱い
                overlay[key] = value
                break
    return overlay


def parse_labels(raw: Any) -> tuple[str, ...]:
    """Normalise the label input to a tuple of label names.

    Accepted forms: a list of strings and/or ``{"name": ...}`` objects, a JSON
    array string of the same, or a comma separated string. A string that looks
    like a JSON array but does not parse falls back to CSV with a warning.
    """
    if raw is None:
        return ()
    items: list[Any]
    if isinstance(raw, list):
        items = raw
    else:
        text = str(raw).strip()
        if not text:
            return ()
        items = []
        parsed = False
        if text.startswith("[") and text.endswith("]"):
            try:
                loaded = json.loads(text)
            except json.JSONDecodeError as e:
                logger.warning(
                    f"Could not parse labels input as JSON array, falling back to CSV. Error: {e}"
                )
            else:
                if isinstance(loaded, list):
                    items = loaded
                    parsed = True
        if not parsed:
            items = [part.strip() for part in text.split(",")]

    labels: list[str] = []
    for item in items:
        if isinstance(item, dict) and isinstance(item.get("name"), str):
            name = item["name"]
        else:
            name = str(item)
        name = name.strip()
        if name:
            labels.append(name)
    return tuple(labels)


def _parse_truthy(raw: Any) -> frozenset[str]:
    if raw is None:
        return frozenset(DEFAULT_TRUTHY_VALUES)
    if isinstance(raw, list):
        return frozenset(str(v) for v in raw)
    try:
        parsed = json.loads(raw)
        if not isinstance(parsed, list):
            raise ValueError("Input is not a JSON array.")
    except ValueError as e:
        raise ConfigError(
            f"'boolean_truthy_values' must be a valid JSON array. Input: {raw}. Error: {e}"
        ) from e
    return frozenset(str(v) for v in parsed)


def _parse_int(raw: Any, default: int) -> int | None:
    """int(raw), ``default`` when unset, None when unparseable."""
    if raw is None:
        return default
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() == "true"


def _coerce(data: dict[str, Any]) -> SyncConfig:
    access_token = data.get("access_token") or None
    credentials_file = data.get("credentials_file") or None
    if not access_token and not credentials_file:
        raise ConfigError(
            "GOOGLE_OAUTH_ACCESS_TOKEN is not found. Provide an OAuth access token "
            "(e.g. from google-github-actions/auth with token_format: 'access_token') "
            "or set GOOGLE_SERVICE_ACCOUNT_FILE."
        )

    data_start_row = _parse_int(data.get("data_start_row"), 2)
    if data_start_row is None:
        data_start_row = 2
    if data_start_row < 1:
        raise ConfigError(
            f"data_start_row must be a positive integer, but got {data_start_row}."
        )

    max_issues = _parse_int(data.get("max_issues_per_run"), 10)
    if max_issues is None:
        logger.warning(
            f"Invalid 'max_issues_per_run' input: '{data.get('max_issues_per_run')}'. "
            "Treating as unlimited."
        )
        max_issues = 0

    delay = _parse_int(data.get("rate_limit_delay"), 1000)
    if delay is None:
        logger.warning(
            f"Invalid 'rate_limit_delay' input: '{data.get('rate_limit_delay')}'. "
            "Using default 1000ms."
        )
        delay = 1000

    read_range = str(data.get("read_range") or "A:Z").strip()
    # シート名は sheet_name でのみ指定する (書き戻し先と一致させるため)
    if "!" in read_range:
        raise ConfigError(
            f"read_range must not include a sheet name (got {read_range!r}); "
            "set sheet_name and give only the cell range, e.g. 'B2:D'."
        )
    try:
        parse_range_start(read_range)
    except (RangeParseError, InvalidColumnError) as e:
        raise ConfigError(str(e)) from e

    sync_column = data["sync_column"].strip().upper()
    try:
        column_letter_to_index(sync_column)
    except InvalidColumnError as e:
        raise ConfigError(f"SYNC_COLUMN: {e}") from e

    return SyncConfig(
        spreadsheet_id=data["spreadsheet_id"],
        sheet_name=data["sheet_name"],
        title_template=data["title_template"],
        body_template=data["body_template"],
        sync_column=sync_column,
        github_token=data["github_token"],
        repository=data["repository"],
        access_token=access_token,
        credentials_file=credentials_file,
        read_range=read_range,
        data_start_row=data_start_row,
        truthy_values=_parse_truthy(data.get("boolean_truthy_values")),
        labels=parse_labels(data.get("labels")),
        max_issues_per_run=max(0, max_issues),
        rate_limit_delay=max(0, delay),
        dry_run=_parse_bool(data.get("dry_run", False)),
        sync_write_back_value=data.get("sync_write_back_value") or "TRUE",
        github_api_url=data.get("github_api_url") or "https://api.github.com",
        out_of_range_policy=OutOfRangePolicy(data.get("out_of_range_policy") or "process"),
    )


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> SyncConfig:
    """Build the run configuration.

    Args:
        path: YAML file to read; None means environment only
        env: Environment mapping (defaults to ``os.environ``)
        overrides: Values from CLI flags, applied last

    Raises:
        ConfigError: On any missing, malformed or invalid setting.
    """
    data: dict[str, Any] = _read_yaml(path) if path is not None else {}
    data.update(_env_overlay(os.environ if env is None else env))
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    _validate_config_schema(data)
    return _coerce(data)
