"""
Ledger Store

The collection of all pages: creation, lookup, listing, update and
deletion. The store is the only component that writes to the page
storage backend, and it always writes whole pages.

CONSISTENCY: last write wins at page granularity. Two overlapping
mutations of the same page are not serialized; callers that need strict
ordering must serialize their own calls.
"""

from typing import Any, Optional

import structlog

from pageledger.errors import NotFoundError
from pageledger.models.page import Page, RecordId, utc_now
from pageledger.services.storage import PageStorageInterface
from pageledger.validation import LedgerValidator, parse_record_id


logger = structlog.get_logger(__name__)


class LedgerStore:
    """
    Page-level operations over a storage backend.

    Every method awaits the backend before returning, so a returned value
    always reflects a completed write.
    """

    def __init__(
        self,
        storage: PageStorageInterface,
        validator: Optional[LedgerValidator] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()

    async def create(self, title: Any, page_type: Any) -> Page:
        """
        Create an empty page.

        Raises:
            ValidationError: blank title or unknown type (nothing is written)
        """
        payload = self._validator.validate_page_create(title, page_type)

        now = utc_now()
        page = Page(
            title=payload.title,
            type=payload.type,
            entries=[],
            created_at=now,
            updated_at=now,
        )
        await self._storage.save_page(page)

        logger.info("page_created", page_id=str(page.id), page_type=page.type.value)
        return page

    async def get(self, page_id: Optional[RecordId]) -> Page:
        """
        Resolve a page by identity.

        Raises:
            NotFoundError: unknown or malformed identity
        """
        parsed = parse_record_id(page_id)
        page = await self._storage.get_page_by_id(parsed) if parsed else None
        if page is None:
            raise NotFoundError(f"Page not found: {page_id}")
        return page

    async def update(self, page_id: Optional[RecordId], data: Any) -> Page:
        """
        Change a page's title and/or type. Entries are left alone.

        Raises:
            ValidationError: a supplied field is invalid
            NotFoundError: the page does not exist
        """
        payload = self._validator.validate_page_update(data)
        page = await self.get(page_id)

        changes = payload.model_dump(exclude_none=True)
        updated = page.model_copy(update={**changes, "updated_at": utc_now()})
        await self._storage.update_page(updated)

        logger.info("page_updated", page_id=str(page.id), fields=sorted(changes))
        return updated

    async def delete(self, page_id: Optional[RecordId]) -> Page:
        """
        Permanently remove a page and all its entries.

        Returns:
            The removed page, for caller confirmation

        Raises:
            NotFoundError: the page does not exist
        """
        page = await self.get(page_id)
        if not await self._storage.delete_page(page.id):
            # Deleted by someone else between the read and the delete
            raise NotFoundError(f"Page not found: {page_id}")

        logger.info("page_deleted", page_id=str(page.id), entry_count=len(page.entries))
        return page

    async def persist(self, page: Page) -> Page:
        """
        Rewrite a whole page record, stamping `updated_at`.

        Used by the entry mutator: an entry change is always stored as a
        rewrite of its owning page.

        Raises:
            NotFoundError: the page was deleted in the meantime
        """
        page.updated_at = utc_now()
        await self._storage.update_page(page)
        logger.debug("page_persisted", page_id=str(page.id), entry_count=len(page.entries))
        return page

    async def list(self) -> list[Page]:
        """
        Snapshot of all pages, newest first.

        Pages created in the same instant are ordered by reverse
        insertion, so the most recently stored page still comes first.
        """
        pages = await self._storage.list_pages()
        return sorted(reversed(pages), key=lambda page: page.created_at, reverse=True)
