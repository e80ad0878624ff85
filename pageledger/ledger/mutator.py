"""
Entry Mutator

Append, update-by-identity and remove-by-identity of entries inside a
resolved page.

Every mutation follows the same round trip:
    copy the page -> change the copy -> persist the whole copy -> return it

The caller's page object is never modified. If persisting fails the copy
is simply dropped, so no half-applied change is ever visible.
"""

from typing import Any, Optional

import structlog

from pageledger.errors import NotFoundError
from pageledger.ledger.store import LedgerStore
from pageledger.models.page import Page, RecordId
from pageledger.validation import LedgerValidator, parse_record_id


logger = structlog.get_logger(__name__)


class EntryMutator:
    """Entry-level operations, persisted through the ledger store."""

    def __init__(
        self,
        store: LedgerStore,
        validator: Optional[LedgerValidator] = None,
    ):
        self._store = store
        self._validator = validator or LedgerValidator()

    async def add_entry(self, page: Page, data: Any) -> Page:
        """
        Append a new entry at the end of the page.

        Raises:
            ValidationError: `no` or `money` missing or not numeric
        """
        payload = self._validator.validate_entry_create(data)
        entry = payload.to_entry()

        working = page.model_copy(deep=True)
        working.append_entry(entry)
        updated = await self._store.persist(working)

        logger.info("entry_added", page_id=str(page.id), entry_id=str(entry.id))
        return updated

    async def update_entry(
        self,
        page: Page,
        entry_id: Optional[RecordId],
        data: Any,
    ) -> Page:
        """
        Overwrite the supplied fields of one entry, in place.

        Raises:
            ValidationError: no entry id, or a supplied field is invalid
            NotFoundError: no entry with that id in the page
        """
        parsed = self._validator.require_entry_id(entry_id)
        payload = self._validator.validate_entry_update(data)

        working = page.model_copy(deep=True)
        current = working.find_entry(parsed) if parsed else None
        if current is None:
            raise NotFoundError(f"Entry not found: {entry_id}")

        changes = payload.changes()
        working.replace_entry(current.model_copy(update=changes))
        updated = await self._store.persist(working)

        logger.info(
            "entry_updated",
            page_id=str(page.id),
            entry_id=str(current.id),
            fields=sorted(changes),
        )
        return updated

    async def remove_entry(self, page: Page, entry_id: Optional[RecordId]) -> Page:
        """
        Remove exactly one entry; the rest keep their relative order.

        Raises:
            NotFoundError: entry id missing or unknown
        """
        parsed = parse_record_id(entry_id)
        working = page.model_copy(deep=True)
        if parsed is None or working.find_entry(parsed) is None:
            raise NotFoundError(f"Entry not found: {entry_id}")

        working.remove_entry(parsed)
        updated = await self._store.persist(working)

        logger.info("entry_removed", page_id=str(page.id), entry_id=str(parsed))
        return updated
