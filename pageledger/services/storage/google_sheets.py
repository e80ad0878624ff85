"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the durable backend because the owner
can open the ledger in a browser, it needs no database, and Google keeps
the backups.

LAYOUT: one row per Page. The page's entries are embedded in that row
as a JSON column, so a page and its entries are always written together
by a single range update. This is what makes mutations page-granular.

LIMITS:
- No transactions across rows (a mutation never spans two pages)
- A cell holds at most 50,000 characters, which caps entries per page
- Every call is a network round trip; fine for a personal ledger
"""

import json
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import Retrying, stop_after_attempt, wait_exponential

from pageledger.config import get_settings
from pageledger.errors import (
    LedgerError,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from pageledger.models.audit import AUDIT_COLUMNS, AuditEvent
from pageledger.models.page import Entry, Page, PageType
from pageledger.services.storage.interface import (
    AuditStorageInterface,
    PageStorageInterface,
)


logger = structlog.get_logger(__name__)

PAGE_COLUMNS = [
    "id",
    "created_at",
    "updated_at",
    "title",
    "type",
    "entries_json",
]

# Google Sheets hard limit per cell
MAX_CELL_CHARS = 50_000

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


@contextmanager
def _backend_call(action: str) -> Iterator[None]:
    """Re-raise anything gspread throws as StorageError."""
    try:
        yield
    except LedgerError:
        raise
    except Exception as e:
        raise StorageError(f"Failed to {action}: {e}") from e


class GoogleSheetsClient:
    """
    Authorized handle on the ledger spreadsheet.

    Only establishing the connection is retried. Reads and writes are
    attempted once; retrying a write is the caller's call.
    """

    def __init__(self):
        settings = get_settings()
        self._settings = settings.google_sheets
        self._retry_attempts = settings.app.connect_retry_attempts
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None

    def _authorize(self) -> gspread.Client:
        path = self._settings.credentials_path
        try:
            credentials = Credentials.from_service_account_file(path, scopes=SCOPES)
        except FileNotFoundError as e:
            raise StorageConnectionError(f"Service account key not found: {path}") from e
        except ValueError as e:
            raise StorageConnectionError(f"Unreadable service account key {path}: {e}") from e
        return gspread.authorize(credentials)

    def connect(self) -> gspread.Client:
        """Authorize once per client, retrying with exponential backoff."""
        if self._client is None:
            for attempt in Retrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                reraise=True,
            ):
                with attempt:
                    self._client = self._authorize()
            logger.info("sheets_connected", spreadsheet_id=self._settings.spreadsheet_id)
        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            try:
                self._spreadsheet = self.connect().open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound as e:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def _worksheet(self, title: str, header: list[str], rows: int) -> gspread.Worksheet:
        """Open a worksheet, creating it with a header row on first use."""
        spreadsheet = self.get_spreadsheet()
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(header))
            sheet.append_row(header)
            logger.info("worksheet_created", title=title)
            return sheet

    def get_pages_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.pages_sheet_name, PAGE_COLUMNS, rows=1000)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsPageStorage(PageStorageInterface):
    """
    Page storage with one worksheet row per page.

    The entry list is JSON-serialized into the last column.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _page_to_row(self, page: Page) -> list:
        entries_json = json.dumps(
            [entry.model_dump(mode="json") for entry in page.entries]
        )
        if len(entries_json) > MAX_CELL_CHARS:
            raise StorageError(
                f"Page {page.id} has too many entries to fit in one sheet cell"
            )
        return [
            str(page.id),
            page.created_at.isoformat(),
            page.updated_at.isoformat(),
            page.title,
            page.type.value,
            entries_json,
        ]

    def _row_to_page(self, row: list) -> Page:
        cells = dict(zip(PAGE_COLUMNS, list(row) + [""] * len(PAGE_COLUMNS)))
        try:
            entries = json.loads(cells["entries_json"]) if cells["entries_json"] else []
            return Page(
                id=UUID(cells["id"]),
                created_at=datetime.fromisoformat(cells["created_at"]),
                updated_at=datetime.fromisoformat(cells["updated_at"]),
                title=cells["title"],
                type=PageType(cells["type"]),
                entries=[Entry(**item) for item in entries],
            )
        except (TypeError, ValueError) as e:
            raise StorageError(f"Corrupt page row {cells['id']!r}: {e}") from e

    def _find_row(self, sheet: gspread.Worksheet, page_id: UUID) -> Optional[int]:
        cell = sheet.find(str(page_id), in_column=1)
        return cell.row if cell else None

    async def save_page(self, page: Page) -> bool:
        row = self._page_to_row(page)
        with _backend_call("save page"):
            sheet = self._client.get_pages_sheet()
            if self._find_row(sheet, page.id) is not None:
                raise StorageError(f"Page already exists: {page.id}")
            sheet.append_row(row, value_input_option="RAW")
        return True

    async def get_page_by_id(self, page_id: UUID) -> Optional[Page]:
        with _backend_call("get page"):
            sheet = self._client.get_pages_sheet()
            row_idx = self._find_row(sheet, page_id)
            if row_idx is None:
                return None
            return self._row_to_page(sheet.row_values(row_idx))

    async def update_page(self, page: Page) -> bool:
        """Rewrite the page's row with a single range update."""
        row = self._page_to_row(page)
        with _backend_call("update page"):
            sheet = self._client.get_pages_sheet()
            row_idx = self._find_row(sheet, page.id)
            if row_idx is None:
                raise NotFoundError(f"Page not found: {page.id}")
            sheet.update(
                range_name=f"A{row_idx}:{rowcol_to_a1(row_idx, len(PAGE_COLUMNS))}",
                values=[row],
                value_input_option="RAW",
            )
        return True

    async def delete_page(self, page_id: UUID) -> bool:
        with _backend_call("delete page"):
            sheet = self._client.get_pages_sheet()
            row_idx = self._find_row(sheet, page_id)
            if row_idx is None:
                return False
            sheet.delete_rows(row_idx)
        return True

    async def list_pages(self) -> list[Page]:
        """All pages in sheet order. A corrupt row fails the whole listing."""
        with _backend_call("list pages"):
            rows = self._client.get_pages_sheet().get_all_values()[1:]  # Skip header
        return [self._row_to_page(row) for row in rows if row and row[0]]


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Audit trail kept in its own worksheet.

    Appends never raise: a lost audit row must not fail a ledger call.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_events(self) -> list[AuditEvent]:
        with _backend_call("read audit events"):
            rows = self._client.get_audit_sheet().get_all_values()[1:]

        events = []
        for row in rows:
            if not row or not row[0]:
                continue
            try:
                events.append(AuditEvent.from_sheets_row(row))
            except ValueError as e:
                logger.warning("audit_row_skipped", event_id=row[0], error=str(e))
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            logger.error("audit_append_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._read_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        # Newest first; sheet order breaks timestamp ties
        events = list(reversed(self._read_events()))
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
