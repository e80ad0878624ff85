"""
In-Memory Storage Implementation

Used for tests and for running the ledger without any external backend.
Records are kept in their serialized (JSON-compatible) form, so every
read hands out a fresh copy and callers can never mutate stored state
by holding on to a returned object.
"""

from typing import Any, Optional
from uuid import UUID

from pageledger.errors import NotFoundError, StorageError
from pageledger.models.audit import AuditEvent
from pageledger.models.page import Page
from pageledger.services.storage.interface import (
    AuditStorageInterface,
    PageStorageInterface,
)


class InMemoryPageStorage(PageStorageInterface):
    """
    Page storage backed by a dict.

    Replacing one dict value is the atomic single-record write the
    ledger relies on. Insertion order of the dict is the listing order.
    """

    def __init__(self):
        self._records: dict[str, dict[str, Any]] = {}

    def _serialize(self, page: Page) -> dict[str, Any]:
        return page.model_dump(mode="json")

    def _deserialize(self, record: dict[str, Any]) -> Page:
        try:
            return Page.model_validate(record)
        except ValueError as e:
            raise StorageError(f"Corrupt page record {record.get('id')}: {e}") from e

    async def save_page(self, page: Page) -> bool:
        key = str(page.id)
        if key in self._records:
            raise StorageError(f"Page already exists: {page.id}")
        self._records[key] = self._serialize(page)
        return True

    async def get_page_by_id(self, page_id: UUID) -> Optional[Page]:
        record = self._records.get(str(page_id))
        if record is None:
            return None
        return self._deserialize(record)

    async def update_page(self, page: Page) -> bool:
        key = str(page.id)
        if key not in self._records:
            raise NotFoundError(f"Page not found: {page.id}")
        self._records[key] = self._serialize(page)
        return True

    async def delete_page(self, page_id: UUID) -> bool:
        return self._records.pop(str(page_id), None) is not None

    async def list_pages(self) -> list[Page]:
        return [self._deserialize(record) for record in self._records.values()]

    def count(self) -> int:
        """Number of stored pages."""
        return len(self._records)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy(deep=True))
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        # Newest first; append order breaks timestamp ties
        events = list(reversed(self._events))
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
