"""
Abstract Storage Interface

DESIGN DECISION: The ledger only ever talks to these interfaces, so the
backend is chosen at startup (Google Sheets or in-memory) and nothing
above this layer knows which one is in use.

The unit of storage is the whole Page. Entries are embedded in the
page record and are never written on their own, so every backend only
has to guarantee an atomic write of a single page record.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from pageledger.errors import (
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from pageledger.models.audit import AuditEvent
from pageledger.models.page import Page


class PageStorageInterface(ABC):
    """
    Persistence of whole page records.

    Reads return fresh objects; mutating a returned page never changes
    stored state until it is written back with update_page.
    Any backend failure is raised as StorageError.
    """

    @abstractmethod
    async def save_page(self, page: Page) -> bool:
        """
        Insert a page that does not exist yet.

        Raises:
            StorageError: write failed, or a page with this id already exists
        """
        pass

    @abstractmethod
    async def get_page_by_id(self, page_id: UUID) -> Optional[Page]:
        """The stored page, or None when there is no such record."""
        pass

    @abstractmethod
    async def update_page(self, page: Page) -> bool:
        """
        Replace a stored page record, entries included, in one write.

        Raises:
            NotFoundError: no record with this page's id
            StorageError: write failed; the old record is left as it was
        """
        pass

    @abstractmethod
    async def delete_page(self, page_id: UUID) -> bool:
        """Drop a page record. False when there was nothing to drop."""
        pass

    @abstractmethod
    async def list_pages(self) -> list[Page]:
        """Every stored page, in the order they were first saved."""
        pass


class AuditStorageInterface(ABC):
    """
    Append-only store for audit events.

    Events are never updated or removed once appended.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append one event; returns False if it could not be stored."""
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events of one caller action, oldest first."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        History of one page or entry, oldest first.

        Args:
            entity_type: 'page' or 'entry'
            entity_id: identity of the page or entry
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Up to `limit` events, newest first."""
        pass


__all__ = [
    "AuditStorageInterface",
    "NotFoundError",
    "PageStorageInterface",
    "StorageConnectionError",
    "StorageError",
]
