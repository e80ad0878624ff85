"""
Main Orchestrator for Page Ledger

This module ties together all the components and exposes the operation
surface that request handlers, CLIs or UIs call into:

    create_page / list_pages / get_page / update_page / delete_page
    add_entry / update_entry / remove_entry
    get_page_summary / get_totals / find_entries

Inputs and outputs are plain data or pydantic models, never framework types.

DESIGN DECISION: The orchestrator enforces the boundaries:
- Pages are resolved through the store before any entry is touched
- Every successful mutation is audited
- Every failure is audited and then re-raised unchanged
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
from uuid import UUID

import structlog

from pageledger.audit import AuditLogger, configure_logging
from pageledger.config import get_settings
from pageledger.errors import (
    LedgerError,
    NotFoundError,
    StorageConnectionError,
    StorageError,
    ValidationError,
)
from pageledger.ledger import EntryMutator, LedgerStore
from pageledger.models.page import (
    Entry,
    LedgerTotals,
    Page,
    PageSummary,
    RecordId,
)
from pageledger.queries import filter_by_number, ledger_totals, summarize_page
from pageledger.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPageStorage,
    InMemoryAuditStorage,
    InMemoryPageStorage,
    PageStorageInterface,
)
from pageledger.validation import LedgerValidator, parse_record_id


logger = structlog.get_logger(__name__)

_ENTRY_FIELDS = ("no", "money", "interest", "date")


def _entry_changes(before: Entry, after: Entry) -> dict[str, str]:
    """Fields that differ between two versions of an entry, as text."""
    return {
        name: str(getattr(after, name))
        for name in _ENTRY_FIELDS
        if getattr(before, name) != getattr(after, name)
    }


class LedgerService:
    """
    The ledger's operation surface.

    Owns one store, one mutator and an optional audit logger. Without an
    explicit storage backend it runs on in-memory storage.
    """

    def __init__(
        self,
        page_storage: Optional[PageStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
    ):
        validator = validator or LedgerValidator()
        self._store = LedgerStore(page_storage or InMemoryPageStorage(), validator)
        self._mutator = EntryMutator(self._store, validator)
        self._audit_logger = audit_logger

    @property
    def store(self) -> LedgerStore:
        return self._store

    async def _audit_failure(
        self,
        operation: str,
        error: LedgerError,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger is None:
            return
        if isinstance(error, ValidationError):
            await self._audit_logger.log_validation_failed(
                operation=operation,
                issues=[issue.model_dump() for issue in error.issues],
                correlation_id=correlation_id,
            )
        elif isinstance(error, NotFoundError):
            await self._audit_logger.log_not_found(
                operation=operation,
                error_message=error.message,
                correlation_id=correlation_id,
            )
        elif isinstance(error, StorageError):
            await self._audit_logger.log_storage_failed(
                operation=operation,
                error_message=error.message,
                correlation_id=correlation_id,
            )

    @asynccontextmanager
    async def _operation(
        self,
        name: str,
        correlation_id: Optional[UUID],
    ) -> AsyncIterator[None]:
        try:
            yield
        except LedgerError as e:
            logger.warning("operation_failed", operation=name, kind=e.kind, error=e.message)
            await self._audit_failure(name, e, correlation_id)
            raise
        except Exception as e:
            logger.error("operation_crashed", operation=name, error=str(e), exc_info=True)
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"operation": name},
                    correlation_id=correlation_id,
                )
            raise

    # -------------------------------------------------------------------------
    # Pages
    # -------------------------------------------------------------------------

    async def create_page(
        self,
        title: Any,
        page_type: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Page:
        async with self._operation("create_page", correlation_id):
            page = await self._store.create(title, page_type)

        if self._audit_logger:
            await self._audit_logger.log_page_created(
                page_id=page.id,
                title=page.title,
                page_type=page.type.value,
                correlation_id=correlation_id,
            )
        return page

    async def list_pages(self) -> list[Page]:
        """All pages, newest first."""
        async with self._operation("list_pages", None):
            return await self._store.list()

    async def get_page(
        self,
        page_id: Optional[RecordId],
        correlation_id: Optional[UUID] = None,
    ) -> Page:
        async with self._operation("get_page", correlation_id):
            return await self._store.get(page_id)

    async def update_page(
        self,
        page_id: Optional[RecordId],
        data: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Page:
        async with self._operation("update_page", correlation_id):
            page = await self._store.update(page_id, data)

        if self._audit_logger:
            await self._audit_logger.log_page_updated(
                page_id=page.id,
                changes={"title": page.title, "type": page.type.value},
                correlation_id=correlation_id,
            )
        return page

    async def delete_page(
        self,
        page_id: Optional[RecordId],
        correlation_id: Optional[UUID] = None,
    ) -> Page:
        """Remove a page with all its entries; returns the removed page."""
        async with self._operation("delete_page", correlation_id):
            page = await self._store.delete(page_id)

        if self._audit_logger:
            await self._audit_logger.log_page_deleted(
                page_id=page.id,
                title=page.title,
                entry_count=len(page.entries),
                correlation_id=correlation_id,
            )
        return page

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    async def add_entry(
        self,
        page_id: Optional[RecordId],
        data: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Page:
        async with self._operation("add_entry", correlation_id):
            page = await self._store.get(page_id)
            updated = await self._mutator.add_entry(page, data)

        if self._audit_logger:
            entry = updated.entries[-1]
            await self._audit_logger.log_entry_added(
                page_id=updated.id,
                entry_id=entry.id,
                no=entry.no,
                money=str(entry.money),
                correlation_id=correlation_id,
            )
        return updated

    async def update_entry(
        self,
        page_id: Optional[RecordId],
        entry_id: Optional[RecordId],
        data: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Page:
        async with self._operation("update_entry", correlation_id):
            page = await self._store.get(page_id)
            updated = await self._mutator.update_entry(page, entry_id, data)

        if self._audit_logger:
            # The mutator only succeeds for an id present in both versions
            parsed = parse_record_id(entry_id)
            await self._audit_logger.log_entry_updated(
                page_id=updated.id,
                entry_id=parsed,
                changes=_entry_changes(page.find_entry(parsed), updated.find_entry(parsed)),
                correlation_id=correlation_id,
            )
        return updated

    async def remove_entry(
        self,
        page_id: Optional[RecordId],
        entry_id: Optional[RecordId],
        correlation_id: Optional[UUID] = None,
    ) -> Page:
        async with self._operation("remove_entry", correlation_id):
            page = await self._store.get(page_id)
            updated = await self._mutator.remove_entry(page, entry_id)

        if self._audit_logger:
            await self._audit_logger.log_entry_removed(
                page_id=updated.id,
                entry_id=parse_record_id(entry_id),
                correlation_id=correlation_id,
            )
        return updated

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    async def get_page_summary(self, page_id: Optional[RecordId]) -> PageSummary:
        async with self._operation("get_page_summary", None):
            page = await self._store.get(page_id)
        return summarize_page(page)

    async def get_totals(self) -> LedgerTotals:
        """Headline deoya / neoya totals across all pages."""
        async with self._operation("get_totals", None):
            pages = await self._store.list()
        return ledger_totals(pages)

    async def find_entries(self, page_id: Optional[RecordId], query: str) -> list[Entry]:
        """Entries of a page whose number contains `query`."""
        async with self._operation("find_entries", None):
            page = await self._store.get(page_id)
        return filter_by_number(page.entries, query)


def create_app_components(
    use_storage: bool = True,
) -> tuple[LedgerService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False to run entirely in memory.

    Returns:
        (ledger_service, sheets_client)
    """
    app_settings = get_settings().app
    configure_logging(app_settings.effective_log_level)

    sheets_client = None
    page_storage: PageStorageInterface
    audit_storage: Optional[AuditStorageInterface] = None

    if use_storage and app_settings.uses_google_sheets:
        try:
            sheets_client = GoogleSheetsClient()
        except ValueError as e:
            # Missing or invalid GOOGLE_SHEETS_* settings
            raise StorageConnectionError(f"Google Sheets is not configured: {e}") from e
        page_storage = GoogleSheetsPageStorage(sheets_client)
        if app_settings.audit_enabled:
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
    else:
        page_storage = InMemoryPageStorage()
        if app_settings.audit_enabled:
            audit_storage = InMemoryAuditStorage()

    logger.info(
        "ledger_ready",
        backend="google_sheets" if sheets_client else "memory",
        audit_persisted=audit_storage is not None,
    )

    ledger_service = LedgerService(
        page_storage=page_storage,
        audit_logger=AuditLogger(audit_storage),
    )

    return ledger_service, sheets_client
