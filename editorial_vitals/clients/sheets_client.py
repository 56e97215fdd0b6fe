from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Sequence

import requests
from googleapiclient.discovery import build

from editorial_vitals.clients.google_credentials import load_service_account_credentials
from editorial_vitals.models import Cell

logger = logging.getLogger(__name__)


def rows_to_csv_text(rows: Sequence[Sequence[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()


class SheetsRowStore:
    """Append-only row log backed by one Google Sheets tab."""

    SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
    API_RETRIES = 3

    def __init__(
        self,
        credentials_path: str,
        spreadsheet_id: str,
        tab_name: str = "Data",
    ) -> None:
        self.credentials_path = credentials_path.strip()
        self.spreadsheet_id = spreadsheet_id.strip()
        self.tab_name = tab_name.strip() or "Data"
        self._service = None

    def _get_service(self):
        if self._service is None:
            if not self.spreadsheet_id:
                raise RuntimeError("Google Sheets spreadsheet ID is missing.")
            self._service = build(
                "sheets",
                "v4",
                credentials=load_service_account_credentials(
                    self.credentials_path,
                    self.SCOPES,
                    "Google Sheets",
                ),
                cache_discovery=False,
            )
        return self._service

    @property
    def _range(self) -> str:
        escaped = self.tab_name.replace("'", "''")
        return f"'{escaped}'!A1"

    def append_row(self, row: Sequence[Cell]) -> None:
        service = self._get_service()
        (
            service.spreadsheets()
            .values()
            .append(
                spreadsheetId=self.spreadsheet_id,
                range=self._range,
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": [list(row)]},
            )
            .execute(num_retries=self.API_RETRIES)
        )
        logger.debug("Appended %s cells to %s", len(row), self._range)

    def read_text(self) -> str:
        service = self._get_service()
        escaped = self.tab_name.replace("'", "''")
        payload = (
            service.spreadsheets()
            .values()
            .get(spreadsheetId=self.spreadsheet_id, range=f"'{escaped}'")
            .execute(num_retries=self.API_RETRIES)
        )
        values = payload.get("values", []) if isinstance(payload, dict) else []
        if not isinstance(values, list):
            return ""
        return rows_to_csv_text([row for row in values if isinstance(row, list)])


class LocalCsvRowStore:
    """Append-only CSV file; same contract as the sheet, for local runs and tests."""

    def __init__(self, path: str, header: Sequence[str] = ()) -> None:
        self.path = Path(path)
        self.header = tuple(header)

    def append_row(self, row: Sequence[Cell]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        write_header = bool(self.header) and (
            not self.path.exists() or self.path.stat().st_size == 0
        )
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle, lineterminator="\n")
            if write_header:
                writer.writerow(self.header)
            writer.writerow(["" if value is None else value for value in row])

    def read_text(self) -> str:
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding="utf-8")


class PublishedCsvSource:
    """Read-only access to a sheet published to the web as CSV."""

    def __init__(self, url: str, timeout_sec: int = 40) -> None:
        self.url = url.strip()
        self.timeout_sec = max(1, int(timeout_sec))

    def read_text(self) -> str:
        if not self.url:
            raise RuntimeError("Published CSV URL is missing.")
        response = requests.get(self.url, timeout=self.timeout_sec)
        response.raise_for_status()
        # Published sheets are UTF-8 even when the header omits the charset.
        return response.content.decode("utf-8", errors="replace")
