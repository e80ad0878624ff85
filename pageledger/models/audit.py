"""
Audit Models for Page Ledger

Every mutation of the ledger, and every rejected call, is logged for
audit purposes. This provides:
1. Traceability of all changes to pages and entries
2. Debugging information when things go wrong
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from pageledger.models.page import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Page lifecycle
    PAGE_CREATED = "page_created"
    PAGE_UPDATED = "page_updated"
    PAGE_DELETED = "page_deleted"

    # Entry mutations
    ENTRY_ADDED = "entry_added"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_REMOVED = "entry_removed"

    # Rejected calls
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"

    # System events
    STORAGE_FAILED = "storage_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


MAX_DESCRIPTION_CHARS = 500

# Column order of an audit row in the spreadsheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_code",
    "error_message",
]


class AuditEvent(BaseModel):
    """
    One immutable record in the audit trail.

    Successful mutations carry the page or entry they touched in
    `entity_type` / `entity_id`. Rejected calls carry an `error_code`
    equal to the kind of the error that was raised.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="UTC instant the event was recorded"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="'page' or 'entry'; None for rejected calls"
    )
    entity_id: Optional[UUID] = None
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Shared by every event of one caller action"
    )

    description: str = Field(..., max_length=MAX_DESCRIPTION_CHARS)
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def clip_description(cls, v: Any) -> Any:
        # Descriptions embed caller text such as titles
        if isinstance(v, str) and len(v) > MAX_DESCRIPTION_CHARS:
            return v[: MAX_DESCRIPTION_CHARS - 3] + "..."
        return v

    def to_log_dict(self) -> dict:
        """Flat JSON-safe view for structured logging."""
        data = self.model_dump(mode="json")
        data["timestamp"] = self.timestamp.isoformat()
        return data

    def to_sheets_row(self) -> list:
        """Cells in AUDIT_COLUMNS order; absent values become empty strings."""
        data = self.to_log_dict()
        data["details_json"] = json.dumps(self.details, default=str) if self.details else ""
        return [
            "" if data.get(column) is None else data[column]
            for column in AUDIT_COLUMNS
        ]

    @classmethod
    def from_sheets_row(cls, row: list) -> "AuditEvent":
        """
        Rebuild an event from a spreadsheet row.

        Short rows are padded; raises ValueError on unreadable cells.
        """
        cells = dict(zip(AUDIT_COLUMNS, list(row) + [""] * len(AUDIT_COLUMNS)))
        data = {column: value or None for column, value in cells.items()}
        details_json = data.pop("details_json")
        data["details"] = json.loads(details_json) if details_json else {}
        data["description"] = data["description"] or ""
        return cls.model_validate(data)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.page_created(page_id, title, page_type)
        event = AuditEventBuilder.entry_removed(page_id, entry_id)
    """

    @staticmethod
    def page_created(
        page_id: UUID,
        title: str,
        page_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAGE_CREATED,
            entity_type="page",
            entity_id=page_id,
            correlation_id=correlation_id,
            description=f"Page created: {title} ({page_type})",
            details={
                "title": title,
                "type": page_type,
            },
        )

    @staticmethod
    def page_updated(
        page_id: UUID,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAGE_UPDATED,
            entity_type="page",
            entity_id=page_id,
            correlation_id=correlation_id,
            description=f"Page updated: {', '.join(sorted(changes)) or 'no fields'}",
            details={"changes": changes},
        )

    @staticmethod
    def page_deleted(
        page_id: UUID,
        title: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAGE_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="page",
            entity_id=page_id,
            correlation_id=correlation_id,
            description=f"Page deleted: {title} with {entry_count} entries",
            details={
                "title": title,
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def entry_added(
        page_id: UUID,
        entry_id: UUID,
        no: int,
        money: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_ADDED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry #{no} added: {money}",
            details={
                "page_id": str(page_id),
                "no": no,
                "money": money,
            },
        )

    @staticmethod
    def entry_updated(
        page_id: UUID,
        entry_id: UUID,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_UPDATED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry updated: {', '.join(sorted(changes)) or 'no fields'}",
            details={
                "page_id": str(page_id),
                "changes": changes,
            },
        )

    @staticmethod
    def entry_removed(
        page_id: UUID,
        entry_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_REMOVED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description="Entry removed",
            details={"page_id": str(page_id)},
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"{operation} rejected with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
            error_code="validation_error",
        )

    @staticmethod
    def not_found(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOT_FOUND,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"{operation} referenced a missing record",
            details={"operation": operation},
            error_code="not_found",
            error_message=error_message,
        )

    @staticmethod
    def storage_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Storage failure during {operation}",
            details={"operation": operation},
            error_code="storage_failure",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_code=error_type,
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
