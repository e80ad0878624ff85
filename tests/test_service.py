"""
Integration tests for the ledger service.

These drive the full operation surface on in-memory storage and check
both the results and the audit trail they leave behind.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from pageledger.audit import AuditLogger, create_correlation_id
from pageledger.config import AppSettings, GoogleSheetsSettings, validate_all_settings
from pageledger.errors import (
    NotFoundError,
    StorageConnectionError,
    StorageError,
    ValidationError,
)
from pageledger.models.audit import AuditEventType
from pageledger.orchestrator import LedgerService, create_app_components
from pageledger.services.storage import InMemoryPageStorage


class CrashingPageStorage(InMemoryPageStorage):
    """Storage whose page rewrites fail with a non-ledger error."""

    async def update_page(self, page):
        raise RuntimeError("disk on fire")


class TestPageOperations:
    """Tests for the page half of the service."""

    @pytest.mark.asyncio
    async def test_create_list_get(self, service):
        page = await service.create_page("Jan", "neoya")

        assert [p.id for p in await service.list_pages()] == [page.id]
        assert (await service.get_page(page.id)).title == "Jan"

    @pytest.mark.asyncio
    async def test_empty_title_is_rejected_and_audited(self, service, audit_storage):
        correlation_id = create_correlation_id()

        with pytest.raises(ValidationError) as exc_info:
            await service.create_page("", "deoya", correlation_id=correlation_id)

        assert exc_info.value.kind == "validation_error"
        assert await service.list_pages() == []

        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [AuditEventType.VALIDATION_FAILED]
        assert events[0].details["issues"][0]["field"] == "title"

    @pytest.mark.asyncio
    async def test_update_page(self, service):
        page = await service.create_page("Jan", "neoya")

        updated = await service.update_page(page.id, {"type": "deoya"})

        assert updated.type.value == "deoya"
        assert updated.title == "Jan"

    @pytest.mark.asyncio
    async def test_delete_page(self, service, audit_storage):
        page = await service.create_page("Jan", "neoya")
        await service.add_entry(page.id, {"no": 1, "money": 100})

        removed = await service.delete_page(page.id)

        assert len(removed.entries) == 1
        assert await service.list_pages() == []
        events = await audit_storage.get_events_by_entity("page", page.id)
        assert [e.event_type for e in events] == [
            AuditEventType.PAGE_CREATED,
            AuditEventType.PAGE_DELETED,
        ]

    @pytest.mark.asyncio
    async def test_get_unknown_page_is_audited(self, service, audit_storage):
        with pytest.raises(NotFoundError):
            await service.get_page(uuid4())

        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.NOT_FOUND
        assert events[0].details["operation"] == "get_page"


class TestEntryOperations:
    """Tests for the entry half of the service."""

    @pytest.mark.asyncio
    async def test_jan_neoya_scenario(self, service):
        page = await service.create_page("Jan", "neoya")
        await service.add_entry(page.id, {"no": 1, "money": 100, "interest": 5})
        page = await service.add_entry(page.id, {"no": 2, "money": 200})

        summary = await service.get_page_summary(page.id)
        assert summary.total_money == Decimal("300")
        assert summary.total_interest == Decimal("5")
        assert summary.interest_applies is True

        page = await service.remove_entry(page.id, page.entries[0].id)

        summary = await service.get_page_summary(page.id)
        assert [e.no for e in page.entries] == [2]
        assert summary.total_money == Decimal("200")
        assert summary.total_interest == Decimal("0")

    @pytest.mark.asyncio
    async def test_add_entry_to_unknown_page(self, service):
        with pytest.raises(NotFoundError):
            await service.add_entry(uuid4(), {"no": 1, "money": 1})

    @pytest.mark.asyncio
    async def test_remove_nonexistent_entry(self, service):
        page = await service.create_page("Jan", "deoya")
        page = await service.add_entry(page.id, {"no": 1, "money": 1})

        with pytest.raises(NotFoundError):
            await service.remove_entry(page.id, uuid4())

        assert len((await service.get_page(page.id)).entries) == 1

    @pytest.mark.asyncio
    async def test_update_entry_audits_changed_fields(self, service, audit_storage):
        page = await service.create_page("Jan", "deoya")
        page = await service.add_entry(page.id, {"no": 1, "money": 100})
        entry_id = page.entries[0].id

        await service.update_entry(page.id, str(entry_id), {"money": 120, "no": 1})

        events = await audit_storage.get_events_by_entity("entry", entry_id)
        assert [e.event_type for e in events] == [
            AuditEventType.ENTRY_ADDED,
            AuditEventType.ENTRY_UPDATED,
        ]
        assert events[1].details["changes"] == {"money": "120"}

    @pytest.mark.asyncio
    async def test_storage_failure_is_reported(self, service, page_storage, audit_storage):
        page = await service.create_page("Jan", "deoya")
        page_storage.fail_writes = True

        with pytest.raises(StorageError) as exc_info:
            await service.add_entry(page.id, {"no": 1, "money": 1})

        assert exc_info.value.to_dict()["kind"] == "storage_failure"
        assert (await service.get_page(page.id)).entries == []
        events = await audit_storage.get_recent_events(limit=1)
        assert events[0].event_type == AuditEventType.STORAGE_FAILED

    @pytest.mark.asyncio
    async def test_unexpected_error_is_audited_and_raised(self, audit_storage):
        service = LedgerService(
            page_storage=CrashingPageStorage(),
            audit_logger=AuditLogger(audit_storage),
        )
        page = await service.create_page("Jan", "deoya")
        correlation_id = create_correlation_id()

        with pytest.raises(RuntimeError):
            await service.add_entry(
                page.id, {"no": 1, "money": 1}, correlation_id=correlation_id
            )

        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [AuditEventType.SYSTEM_ERROR]
        assert events[0].error_code == "RuntimeError"
        assert events[0].details["operation"] == "add_entry"

    @pytest.mark.asyncio
    async def test_out_of_range_number_is_rejected_before_write(self, service):
        page = await service.create_page("Jan", "deoya")

        with pytest.raises(ValidationError) as exc_info:
            await service.add_entry(page.id, {"no": "1e5000", "money": 1})

        assert exc_info.value.issues[0].field == "no"
        assert (await service.get_page(page.id)).entries == []
        assert await service.find_entries(page.id, "1") == []

    @pytest.mark.asyncio
    async def test_long_title_is_created_and_audited(self, service, audit_storage):
        page = await service.create_page("x" * 2000, "neoya")

        assert len(page.title) == 2000
        events = await audit_storage.get_events_by_entity("page", page.id)
        assert [e.event_type for e in events] == [AuditEventType.PAGE_CREATED]
        assert len(events[0].description) <= 500


class TestAggregateOperations:
    """Tests for the read-only aggregate views."""

    @pytest.mark.asyncio
    async def test_totals_by_type(self, service):
        deoya = await service.create_page("Rent", "deoya")
        await service.add_entry(deoya.id, {"no": 1, "money": 10_000})
        neoya = await service.create_page("Jan", "neoya")
        await service.add_entry(neoya.id, {"no": 1, "money": 100})
        await service.add_entry(neoya.id, {"no": 2, "money": 200})

        totals = await service.get_totals()

        assert totals.neoya_total == Decimal("300")
        assert totals.deoya_total == Decimal("10000")
        assert totals.neoya_page_count == 1

    @pytest.mark.asyncio
    async def test_find_entries(self, service):
        page = await service.create_page("Jan", "deoya")
        for no in (1, 10, 3):
            await service.add_entry(page.id, {"no": no, "money": 1})

        found = await service.find_entries(page.id, "1")

        assert [e.no for e in found] == [1, 10]

    @pytest.mark.asyncio
    async def test_summary_of_unknown_page(self, service):
        with pytest.raises(NotFoundError):
            await service.get_page_summary(uuid4())


class TestServiceWithoutAudit:
    """The service works without an audit logger."""

    @pytest.mark.asyncio
    async def test_default_construction(self):
        service = LedgerService()
        page = await service.create_page("Jan", "deoya")

        with pytest.raises(ValidationError):
            await service.add_entry(page.id, {"money": 5})

        assert (await service.get_page(page.id)).entries == []


class TestAppComponents:
    """Tests for the application factory."""

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")

        service, sheets_client = create_app_components()

        assert isinstance(service, LedgerService)
        assert sheets_client is None

    def test_storage_disabled(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")

        _, sheets_client = create_app_components(use_storage=False)

        assert sheets_client is None

    def test_unconfigured_sheets_backend_fails_loudly(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        with pytest.raises(StorageConnectionError):
            create_app_components()

    def test_settings_check_for_memory_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        assert validate_all_settings() == {"app": True}

    def test_settings_check_reports_missing_sheets_config(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        results = validate_all_settings()

        assert results["app"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results

    def test_debug_mode_forces_debug_logging(self, monkeypatch):
        monkeypatch.setenv("DEBUG_MODE", "true")
        monkeypatch.setenv("LOG_LEVEL", "warning")

        app = AppSettings()

        assert app.log_level == "WARNING"
        assert app.effective_log_level == "DEBUG"

    def test_sheets_settings_read_dotenv(self, monkeypatch, tmp_path):
        key_file = tmp_path / "service_account.json"
        key_file.write_text("{}")
        (tmp_path / ".env").write_text(
            f"GOOGLE_SHEETS_CREDENTIALS_PATH={key_file}\n"
            "GOOGLE_SHEETS_SPREADSHEET_ID=sheet-from-dotenv\n"
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        sheets = GoogleSheetsSettings()

        assert sheets.credentials_path == str(key_file)
        assert sheets.spreadsheet_id == "sheet-from-dotenv"
