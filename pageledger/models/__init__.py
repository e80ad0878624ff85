"""
Data Models Package

This package contains all Pydantic models used in the Page Ledger system.
All data flowing through the system must conform to these schemas.
"""

from pageledger.models.page import (
    Entry,
    EntryCreate,
    EntryUpdate,
    LedgerTotals,
    Page,
    PageCreate,
    PageSummary,
    PageType,
    PageUpdate,
    RecordId,
    ValidationIssue,
    utc_now,
)
from pageledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Entry",
    "EntryCreate",
    "EntryUpdate",
    "LedgerTotals",
    "Page",
    "PageCreate",
    "PageSummary",
    "PageType",
    "PageUpdate",
    "RecordId",
    "ValidationIssue",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
