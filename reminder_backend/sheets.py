"""
Spreadsheet abstraction for Google Sheets and an in-memory test implementation.

Ranges use A1 notation (`Sheet!A:C`, `Sheet!A5:C5`) with 1-based rows.
Structural requests (deleteDimension) use 0-based, end-exclusive indexes.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Optional, Protocol

import google.auth
import httplib2
from google.auth import exceptions as google_auth_exceptions
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build

from reminder_backend.errors import AuthenticationError, NotFoundError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

Rows = list[list[str]]


class SheetsClient(Protocol):
    """Defines the operations the app needs from the spreadsheet."""

    def get_values(self, range_: str) -> Rows:
        ...

    def append_rows(
        self, range_: str, values: list[list[Any]], value_input_option: str = "USER_ENTERED"
    ) -> None:
        ...

    def update_values(
        self, range_: str, values: list[list[Any]], value_input_option: str = "USER_ENTERED"
    ) -> None:
        ...

    def batch_update(self, requests: list[dict]) -> None:
        ...

    def list_sheets(self) -> dict[str, int]:
        ...

    def get_sheet_id(self, title: str) -> int:
        ...


def add_sheet_request(
    title: str, *, row_count: int | None = None, column_count: int | None = None
) -> dict:
    properties: dict[str, Any] = {"title": title}
    if row_count or column_count:
        properties["gridProperties"] = {
            "rowCount": row_count or 1000,
            "columnCount": column_count or 26,
        }
    return {"addSheet": {"properties": properties}}


def delete_rows_request(sheet_id: int, start_index: int, end_index: int) -> dict:
    return {
        "deleteDimension": {
            "range": {
                "sheetId": sheet_id,
                "dimension": "ROWS",
                "startIndex": start_index,
                "endIndex": end_index,
            }
        }
    }


def bold_header_request(sheet_id: int, headers: list[str]) -> dict:
    return {
        "updateCells": {
            "range": {
                "sheetId": sheet_id,
                "startRowIndex": 0,
                "endRowIndex": 1,
                "startColumnIndex": 0,
                "endColumnIndex": len(headers),
            },
            "rows": [
                {
                    "values": [
                        {
                            "userEnteredValue": {"stringValue": header},
                            "userEnteredFormat": {"textFormat": {"bold": True}},
                        }
                        for header in headers
                    ]
                }
            ],
            "fields": "userEnteredValue,userEnteredFormat.textFormat.bold",
        }
    }


def colored_header_request(sheet_id: int) -> dict:
    return {
        "repeatCell": {
            "range": {"sheetId": sheet_id, "startRowIndex": 0, "endRowIndex": 1},
            "cell": {
                "userEnteredFormat": {
                    "backgroundColor": {"red": 0.2, "green": 0.6, "blue": 0.86},
                    "textFormat": {
                        "foregroundColor": {"red": 1, "green": 1, "blue": 1},
                        "bold": True,
                    },
                }
            },
            "fields": "userEnteredFormat(backgroundColor,textFormat)",
        }
    }


_RANGE_PATTERN = re.compile(
    r"^(?P<sheet>[^!]+)!(?P<c1>[A-Z]+)(?P<r1>\d*)(?::(?P<c2>[A-Z]+)(?P<r2>\d*))?$"
)


@dataclass(frozen=True)
class A1Range:
    sheet: str
    start_col: int
    end_col: int
    start_row: Optional[int]
    end_row: Optional[int]


def _column_number(letters: str) -> int:
    number = 0
    for char in letters:
        number = number * 26 + (ord(char) - ord("A") + 1)
    return number


def parse_a1_range(range_: str) -> A1Range:
    match = _RANGE_PATTERN.match(range_)
    if not match:
        raise ValueError(f"Unsupported range: {range_}")
    start_col = _column_number(match.group("c1"))
    end_col = _column_number(match.group("c2")) if match.group("c2") else start_col
    start_row = int(match.group("r1")) if match.group("r1") else None
    end_row = int(match.group("r2")) if match.group("r2") else None
    if match.group("c2") is None:
        end_row = start_row
    return A1Range(
        sheet=match.group("sheet").strip("'"),
        start_col=start_col,
        end_col=end_col,
        start_row=start_row,
        end_row=end_row,
    )


def _cell_text(value: Any) -> str:
    # Formatted values as the Sheets API returns them after USER_ENTERED input.
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if value is None:
        return ""
    return str(value)


def _trim_row(row: list[str]) -> list[str]:
    end = len(row)
    while end and row[end - 1] == "":
        end -= 1
    return row[:end]


@dataclass
class InMemorySheetsClient:
    """Test double for spreadsheet interactions."""

    sheets: dict[str, Rows] = field(default_factory=dict)
    sheet_ids: dict[str, int] = field(default_factory=dict)
    requests_log: list[dict] = field(default_factory=list)

    def __post_init__(self):
        self._lock = Lock()
        self.sheets = {title: [list(row) for row in rows] for title, rows in self.sheets.items()}
        for title in self.sheets:
            self.sheet_ids.setdefault(title, self._next_sheet_id())

    def _next_sheet_id(self) -> int:
        return max(self.sheet_ids.values(), default=-1) + 1

    def _sheet(self, title: str) -> Rows:
        if title not in self.sheets:
            raise NotFoundError(f"Unable to parse range: {title}")
        return self.sheets[title]

    def add_sheet(self, title: str, rows: Rows | None = None) -> int:
        with self._lock:
            self.sheets[title] = [list(row) for row in rows or []]
            sheet_id = self._next_sheet_id()
            self.sheet_ids[title] = sheet_id
            return sheet_id

    def get_values(self, range_: str) -> Rows:
        parsed = parse_a1_range(range_)
        with self._lock:
            rows = self._sheet(parsed.sheet)
            first = (parsed.start_row or 1) - 1
            last = parsed.end_row if parsed.end_row is not None else len(rows)
            result = [
                _trim_row(list(row[parsed.start_col - 1 : parsed.end_col]))
                for row in rows[first:last]
            ]
        while result and not result[-1]:
            result.pop()
        return result

    def append_rows(
        self, range_: str, values: list[list[Any]], value_input_option: str = "USER_ENTERED"
    ) -> None:
        parsed = parse_a1_range(range_)
        with self._lock:
            rows = self._sheet(parsed.sheet)
            while rows and not any(rows[-1]):
                rows.pop()
            for value_row in values:
                row = [""] * (parsed.start_col - 1) + [_cell_text(v) for v in value_row]
                rows.append(row)

    def update_values(
        self, range_: str, values: list[list[Any]], value_input_option: str = "USER_ENTERED"
    ) -> None:
        parsed = parse_a1_range(range_)
        with self._lock:
            rows = self._sheet(parsed.sheet)
            top = (parsed.start_row or 1) - 1
            for offset, value_row in enumerate(values):
                index = top + offset
                while len(rows) <= index:
                    rows.append([])
                row = rows[index]
                needed = parsed.start_col - 1 + len(value_row)
                if len(row) < needed:
                    row.extend([""] * (needed - len(row)))
                for col, value in enumerate(value_row):
                    row[parsed.start_col - 1 + col] = _cell_text(value)

    def batch_update(self, requests: list[dict]) -> None:
        for request in requests:
            self.requests_log.append(request)
            if "addSheet" in request:
                title = request["addSheet"]["properties"]["title"]
                if title in self.sheets:
                    raise ValueError(f'A sheet with the name "{title}" already exists.')
                self.add_sheet(title)
            elif "deleteDimension" in request:
                target = request["deleteDimension"]["range"]
                with self._lock:
                    title = self._title_for_id(target["sheetId"])
                    del self.sheets[title][target["startIndex"] : target["endIndex"]]
            # Formatting requests have no observable effect on values.

    def _title_for_id(self, sheet_id: int) -> str:
        for title, candidate in self.sheet_ids.items():
            if candidate == sheet_id:
                return title
        raise NotFoundError(f"No grid with id: {sheet_id}")

    def list_sheets(self) -> dict[str, int]:
        with self._lock:
            return {title: self.sheet_ids[title] for title in self.sheets}

    def get_sheet_id(self, title: str) -> int:
        sheet_ids = self.list_sheets()
        if title not in sheet_ids:
            raise NotFoundError(f"Sheet not found: {title}")
        return sheet_ids[title]


@dataclass
class GoogleSheetsClient:
    """
    Google Sheets v4 client authenticated with a service account.
    """

    spreadsheet_id: str
    credentials_file: Optional[str] = None
    timeout_seconds: float = 10.0

    def __post_init__(self):
        try:
            if self.credentials_file:
                self._credentials = service_account.Credentials.from_service_account_file(
                    self.credentials_file, scopes=SCOPES
                )
            else:
                self._credentials, _ = google.auth.default(scopes=SCOPES)
        except (OSError, ValueError, google_auth_exceptions.GoogleAuthError) as exc:
            logger.error("Failed to initialize Google Sheets credentials: %s", exc)
            raise AuthenticationError("Google Sheets authentication failed") from exc

        self._service = build(
            "sheets", "v4", http=self._new_http(), cache_discovery=False
        )
        self._sheet_ids: dict[str, int] = {}

    def _new_http(self) -> AuthorizedHttp:
        # httplib2 connections are not thread-safe; each request gets its own.
        return AuthorizedHttp(
            self._credentials, http=httplib2.Http(timeout=self.timeout_seconds)
        )

    def _execute(self, request):
        return request.execute(http=self._new_http())

    def get_values(self, range_: str) -> Rows:
        response = self._execute(
            self._service.spreadsheets()
            .values()
            .get(spreadsheetId=self.spreadsheet_id, range=range_)
        )
        return response.get("values", [])

    def append_rows(
        self, range_: str, values: list[list[Any]], value_input_option: str = "USER_ENTERED"
    ) -> None:
        self._execute(
            self._service.spreadsheets()
            .values()
            .append(
                spreadsheetId=self.spreadsheet_id,
                range=range_,
                valueInputOption=value_input_option,
                body={"values": values},
            )
        )

    def update_values(
        self, range_: str, values: list[list[Any]], value_input_option: str = "USER_ENTERED"
    ) -> None:
        self._execute(
            self._service.spreadsheets()
            .values()
            .update(
                spreadsheetId=self.spreadsheet_id,
                range=range_,
                valueInputOption=value_input_option,
                body={"values": values},
            )
        )

    def batch_update(self, requests: list[dict]) -> None:
        self._execute(
            self._service.spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id, body={"requests": requests}
            )
        )
        if any("addSheet" in request for request in requests):
            self._sheet_ids.clear()

    def list_sheets(self) -> dict[str, int]:
        response = self._execute(
            self._service.spreadsheets().get(
                spreadsheetId=self.spreadsheet_id,
                fields="sheets.properties(sheetId,title)",
            )
        )
        sheet_ids = {
            sheet["properties"]["title"]: sheet["properties"]["sheetId"]
            for sheet in response.get("sheets", [])
        }
        self._sheet_ids = dict(sheet_ids)
        return sheet_ids

    def get_sheet_id(self, title: str) -> int:
        if title not in self._sheet_ids:
            self.list_sheets()
        if title not in self._sheet_ids:
            raise NotFoundError(f"Sheet not found: {title}")
        return self._sheet_ids[title]
