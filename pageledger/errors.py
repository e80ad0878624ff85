"""
Error taxonomy for the ledger core.

Every error raised by the core carries a ``kind`` tag so that callers
(route handlers, CLIs) can map it to a response without isinstance chains.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for all ledger operations."""

    kind: str = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Plain-data view of the error for callers."""
        return {"kind": self.kind, "message": self.message}


class ValidationError(LedgerError):
    """
    Caller-supplied data violates a field contract.

    Raised before any write, so store state is never touched.
    """

    kind = "validation_error"

    def __init__(self, message: str, issues: Optional[list] = None):
        super().__init__(message)
        self.issues = issues or []

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["issues"] = [issue.model_dump() for issue in self.issues]
        return result


class NotFoundError(LedgerError):
    """Referenced page or entry does not exist."""

    kind = "not_found"


class StorageError(LedgerError):
    """The persistence layer could not complete a read or write."""

    kind = "storage_failure"


class StorageConnectionError(StorageError):
    """Could not connect to the storage backend."""
    pass
