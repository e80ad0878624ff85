"""Services package."""

from pageledger.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPageStorage,
    InMemoryAuditStorage,
    InMemoryPageStorage,
    NotFoundError,
    PageStorageInterface,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsPageStorage",
    "InMemoryAuditStorage",
    "InMemoryPageStorage",
    "NotFoundError",
    "PageStorageInterface",
    "StorageConnectionError",
    "StorageError",
]
