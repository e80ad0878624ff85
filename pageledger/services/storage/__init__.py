"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the durable backend; the in-memory backend serves tests
and local runs. Both are swappable behind the same interface.
"""

from pageledger.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    PageStorageInterface,
    StorageConnectionError,
    StorageError,
)
from pageledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryPageStorage,
)
from pageledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPageStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "PageStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryPageStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsPageStorage",
]
