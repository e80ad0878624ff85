"""
Shared pytest fixtures.

Everything runs on in-memory storage; no external services are touched.
"""

from uuid import UUID

import pytest
import pytest_asyncio

from pageledger.audit import AuditLogger
from pageledger.errors import StorageError
from pageledger.ledger import EntryMutator, LedgerStore
from pageledger.models.page import Page
from pageledger.orchestrator import LedgerService
from pageledger.services.storage import InMemoryAuditStorage, InMemoryPageStorage


class FlakyPageStorage(InMemoryPageStorage):
    """In-memory storage whose writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    async def save_page(self, page: Page) -> bool:
        if self.fail_writes:
            raise StorageError("backend unavailable")
        return await super().save_page(page)

    async def update_page(self, page: Page) -> bool:
        if self.fail_writes:
            raise StorageError("backend unavailable")
        return await super().update_page(page)

    async def delete_page(self, page_id: UUID) -> bool:
        if self.fail_writes:
            raise StorageError("backend unavailable")
        return await super().delete_page(page_id)


@pytest.fixture
def page_storage() -> FlakyPageStorage:
    return FlakyPageStorage()


@pytest.fixture
def store(page_storage) -> LedgerStore:
    return LedgerStore(page_storage)


@pytest.fixture
def mutator(store) -> EntryMutator:
    return EntryMutator(store)


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def service(page_storage, audit_storage) -> LedgerService:
    return LedgerService(
        page_storage=page_storage,
        audit_logger=AuditLogger(audit_storage),
    )


@pytest_asyncio.fixture
async def neoya_page(store) -> Page:
    """An empty neoya page already persisted."""
    return await store.create("Jan", "neoya")
