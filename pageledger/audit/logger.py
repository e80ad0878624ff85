"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Complete traceability of page and entry mutations
2. Debugging capability
3. History the user can inspect in the audit sheet

The audit logger:
- Always logs locally through structlog
- Persists to an audit backend when one is configured
- Never lets a failed audit write change the outcome of a ledger call
- Supports correlation IDs to trace related events
"""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from pageledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from pageledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output through the standard library at `level`.

    structlog renders JSON itself, so the handler prints the bare message.
    """
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("pageledger").setLevel(level)


_LEVELS = {
    AuditSeverity.DEBUG: logging.DEBUG,
    AuditSeverity.INFO: logging.INFO,
    AuditSeverity.WARNING: logging.WARNING,
    AuditSeverity.ERROR: logging.ERROR,
    AuditSeverity.CRITICAL: logging.CRITICAL,
}


class AuditLogger:
    """
    Writes audit events to the local log and, when configured, to an
    audit storage backend.

    Without storage it still logs every event locally.
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        self._storage = storage
        self._logger = structlog.get_logger("pageledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False when the event could not be logged or stored; the
        failure is logged, never raised, so it cannot fail a ledger call
        that has already been committed.
        """
        try:
            self._logger.log(_LEVELS[event.severity], "audit_event", **event.to_log_dict())
            if self._storage is None:
                return True
            return await self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_event_failed",
                event_id=str(event.event_id),
                error=str(e),
            )
            return False

    async def log_page_created(
        self,
        page_id: UUID,
        title: str,
        page_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log page creation."""
        await self.log(AuditEventBuilder.page_created(
            page_id=page_id,
            title=title,
            page_type=page_type,
            correlation_id=correlation_id,
        ))

    async def log_page_updated(
        self,
        page_id: UUID,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a title/type change."""
        await self.log(AuditEventBuilder.page_updated(
            page_id=page_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_page_deleted(
        self,
        page_id: UUID,
        title: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log page deletion."""
        await self.log(AuditEventBuilder.page_deleted(
            page_id=page_id,
            title=title,
            entry_count=entry_count,
            correlation_id=correlation_id,
        ))

    async def log_entry_added(
        self,
        page_id: UUID,
        entry_id: UUID,
        no: int,
        money: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entry_added(
            page_id=page_id,
            entry_id=entry_id,
            no=no,
            money=money,
            correlation_id=correlation_id,
        ))

    async def log_entry_updated(
        self,
        page_id: UUID,
        entry_id: UUID,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entry_updated(
            page_id=page_id,
            entry_id=entry_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_entry_removed(
        self,
        page_id: UUID,
        entry_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.entry_removed(
            page_id=page_id,
            entry_id=entry_id,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        operation: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected payload."""
        await self.log(AuditEventBuilder.validation_failed(
            operation=operation,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_not_found(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.not_found(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_storage_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.storage_failed(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an unexpected error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a caller action (e.g., one request).
    Pass it through all subsequent operations.
    """
    return uuid4()
