from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Protocol

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from gspread.exceptions import GSpreadException

from skintracker.core.errors import UpstreamFetchError, UpstreamWriteError


LOG = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
_UPSTREAM_ERRORS = (GSpreadException, GoogleAuthError, OSError)


class RowStore(Protocol):
    def get_range(self, sheet_id: str, range_spec: str) -> list[list[str]]: ...

    def append_rows(self, sheet_id: str, range_spec: str, rows: list[list[Any]]) -> None: ...


def build_credentials(*, info: dict[str, Any] | None = None, filename: str | None = None) -> Credentials:
    if info:
        return Credentials.from_service_account_info(info, scopes=SCOPES)
    if filename:
        return Credentials.from_service_account_file(filename, scopes=SCOPES)
    raise ValueError("service account credentials are required")


class GoogleSheetsRowStore:
    """Row store backed by Google Sheets through gspread.

    Spreadsheets are opened lazily and kept per sheet id. Every gspread,
    auth or transport failure is re-raised as an upstream error.
    """

    def __init__(self, credentials: Credentials, *, client: gspread.Client | None = None) -> None:
        self._credentials = credentials
        self._client = client
        self._sheets: dict[str, gspread.Spreadsheet] = {}
        self._lock = Lock()

    def _spreadsheet(self, sheet_id: str) -> gspread.Spreadsheet:
        with self._lock:
            existing = self._sheets.get(sheet_id)
            if existing is not None:
                return existing
            if self._client is None:
                self._client = gspread.authorize(self._credentials)
            spreadsheet = self._client.open_by_key(sheet_id)
            self._sheets[sheet_id] = spreadsheet
            return spreadsheet

    def get_range(self, sheet_id: str, range_spec: str) -> list[list[str]]:
        try:
            payload = self._spreadsheet(sheet_id).values_get(range_spec)
        except _UPSTREAM_ERRORS as exc:
            raise UpstreamFetchError(f"read {range_spec} failed: {exc}") from exc

        rows = payload.get("values") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            return []
        return [[str(cell) for cell in row] for row in rows if isinstance(row, list)]

    def append_rows(self, sheet_id: str, range_spec: str, rows: list[list[Any]]) -> None:
        if not rows:
            return
        try:
            self._spreadsheet(sheet_id).values_append(
                range_spec,
                params={"valueInputOption": "RAW"},
                body={"values": rows},
            )
        except _UPSTREAM_ERRORS as exc:
            raise UpstreamWriteError(f"append to {range_spec} failed: {exc}") from exc
        LOG.info("appended %s row(s) to %s", len(rows), range_spec)
