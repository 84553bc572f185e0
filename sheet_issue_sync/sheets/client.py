from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

"""Google Sheets client: read one rectangle, write one cell.

This is the only module that talks to the Sheets REST API. Everything it
raises is a :class:`SheetsClientError` subclass so the CLI can report a clean
message instead of a googleapiclient traceback.
"""

__all__ = [
    "SCOPES",
    "SheetsClientError",
    "SheetsCredentialsError",
    "SheetsApiResponseError",
    "SheetsClient",
    "build_sheets_service",
]

SCOPES: Sequence[str] = ("https://www.googleapis.com/auth/spreadsheets",)

# HTTP エラー応答, トークン更新失敗 (RefreshError), 通信エラー (TransportError, socket)
_API_ERRORS = (HttpError, GoogleAuthError, OSError)


class SheetsClientError(RuntimeError):
    """Base error raised for Sheets API failures."""


class SheetsCredentialsError(SheetsClientError):
    """Raised when no usable Google credential was configured."""


class SheetsApiResponseError(SheetsClientError):
    """Raised when the Google API returns an error response."""


def build_sheets_service(
    *, access_token: str | None = None, credentials_file: str | None = None
) -> Any:
    """Build a Sheets v4 service from an OAuth access token or a service account file.

    The access token wins when both are given (it is what CI auth actions
    export).
    """
    if access_token:
        credentials: Any = Credentials(token=access_token)
    elif credentials_file:
        path = Path(credentials_file)
        if not path.exists():
            raise SheetsCredentialsError(f"service account file not found: {path}")
        try:
            credentials = service_account.Credentials.from_service_account_file(
                str(path), scopes=list(SCOPES)
            )
        except (ValueError, OSError) as exc:
            raise SheetsCredentialsError(f"invalid service account file {path}: {exc}") from exc
    else:
        raise SheetsCredentialsError(
            "no Google credential configured (set GOOGLE_OAUTH_ACCESS_TOKEN or "
            "GOOGLE_SERVICE_ACCOUNT_FILE)"
        )
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def _stringify(cell: Any) -> str:
    return "" if cell is None else str(cell)


class SheetsClient:
    """Thin wrapper over ``spreadsheets().values()`` for a single spreadsheet."""

    def __init__(self, spreadsheet_id: str, *, service: Any) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._service = service

    @property
    def spreadsheet_id(self) -> str:
        return self._spreadsheet_id

    def get_values(self, range_expression: str) -> list[list[str]]:
        """Return the cell values of ``range_expression`` row by row.

        Rows may be shorter than others (the API trims trailing empty cells).
        An empty range yields an empty list.
        """
        try:
            response = (
                self._service.spreadsheets()
                .values()
                .get(
                    spreadsheetId=self._spreadsheet_id,
                    range=range_expression,
                    majorDimension="ROWS",
                )
                .execute()
            )
        except _API_ERRORS as exc:
            raise SheetsApiResponseError(
                f"failed to read {range_expression}: {exc}"
            ) from exc
        rows = response.get("values") or []
        return [[_stringify(cell) for cell in row] for row in rows]

    def update_cell(self, range_expression: str, value: str) -> None:
        """Overwrite a single cell, interpreting ``value`` as typed by a user."""
        try:
            (
                self._service.spreadsheets()
                .values()
                .update(
                    spreadsheetId=self._spreadsheet_id,
                    range=range_expression,
                    valueInputOption="USER_ENTERED",
                    body={"values": [[value]]},
                )
                .execute()
            )
        except _API_ERRORS as exc:
            raise SheetsApiResponseError(
                f"failed to update {range_expression}: {exc}"
            ) from exc
