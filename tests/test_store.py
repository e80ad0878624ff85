"""
Tests for the ledger store (page lifecycle) on in-memory storage.
"""

import pytest
from uuid import uuid4

from pageledger.errors import NotFoundError, StorageError, ValidationError
from pageledger.models.page import PageType


class TestCreate:
    """Tests for page creation."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, store):
        page = await store.create("Jan", "neoya")

        fetched = await store.get(page.id)

        assert fetched == page
        assert fetched.type == PageType.NEOYA
        assert fetched.entries == []
        assert fetched.created_at == fetched.updated_at

    @pytest.mark.asyncio
    async def test_get_by_string_id(self, store):
        page = await store.create("Jan", "deoya")
        assert (await store.get(str(page.id))).id == page.id

    @pytest.mark.asyncio
    async def test_empty_title_writes_nothing(self, store, page_storage):
        with pytest.raises(ValidationError):
            await store.create("", "deoya")

        assert page_storage.count() == 0
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_unknown_type_writes_nothing(self, store, page_storage):
        with pytest.raises(ValidationError):
            await store.create("Jan", "weekly")

        assert page_storage.count() == 0

    @pytest.mark.asyncio
    async def test_duplicate_titles_allowed(self, store):
        first = await store.create("Jan", "deoya")
        second = await store.create("Jan", "deoya")
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_storage_failure_surfaces(self, store, page_storage):
        page_storage.fail_writes = True

        with pytest.raises(StorageError):
            await store.create("Jan", "deoya")


class TestGet:
    """Tests for page lookup."""

    @pytest.mark.asyncio
    async def test_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            await store.get(uuid4())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_id", [None, "", "garbage"])
    async def test_malformed_id_is_not_found(self, store, page_id):
        with pytest.raises(NotFoundError):
            await store.get(page_id)

    @pytest.mark.asyncio
    async def test_repeated_reads_are_equal(self, store, neoya_page):
        assert await store.get(neoya_page.id) == await store.get(neoya_page.id)

    @pytest.mark.asyncio
    async def test_returned_page_is_a_copy(self, store, neoya_page):
        fetched = await store.get(neoya_page.id)
        fetched.title = "changed locally"

        assert (await store.get(neoya_page.id)).title == "Jan"


class TestList:
    """Tests for listing."""

    @pytest.mark.asyncio
    async def test_newest_first(self, store):
        a = await store.create("A", "deoya")
        b = await store.create("B", "neoya")
        c = await store.create("C", "deoya")

        pages = await store.list()

        assert [p.id for p in pages] == [c.id, b.id, a.id]

    @pytest.mark.asyncio
    async def test_listing_is_a_snapshot(self, store, neoya_page):
        listed = await store.list()

        await store.update(neoya_page.id, {"title": "Renamed"})

        assert listed[0].title == "Jan"


class TestUpdate:
    """Tests for title / type changes."""

    @pytest.mark.asyncio
    async def test_title_only(self, store, neoya_page):
        updated = await store.update(neoya_page.id, {"title": "February"})

        assert updated.title == "February"
        assert updated.type == PageType.NEOYA
        assert updated.updated_at >= neoya_page.updated_at
        assert updated.created_at == neoya_page.created_at
        assert (await store.get(neoya_page.id)).title == "February"

    @pytest.mark.asyncio
    async def test_type_only(self, store, neoya_page):
        updated = await store.update(neoya_page.id, {"type": "deoya"})

        assert updated.title == "Jan"
        assert updated.type == PageType.DEOYA

    @pytest.mark.asyncio
    async def test_entries_untouched(self, store, mutator, neoya_page):
        page = await mutator.add_entry(neoya_page, {"no": 1, "money": 100})

        updated = await store.update(page.id, {"title": "Renamed"})

        assert updated.entries == page.entries

    @pytest.mark.asyncio
    async def test_invalid_type_leaves_page_unchanged(self, store, neoya_page):
        with pytest.raises(ValidationError):
            await store.update(neoya_page.id, {"type": "yearly"})

        assert await store.get(neoya_page.id) == neoya_page

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, store, neoya_page):
        with pytest.raises(ValidationError):
            await store.update(neoya_page.id, {"title": ""})

    @pytest.mark.asyncio
    async def test_unknown_page(self, store):
        with pytest.raises(NotFoundError):
            await store.update(uuid4(), {"title": "X"})


class TestDelete:
    """Tests for page deletion."""

    @pytest.mark.asyncio
    async def test_delete_returns_removed_page(self, store, mutator, neoya_page):
        page = await mutator.add_entry(neoya_page, {"no": 1, "money": 100})

        removed = await store.delete(page.id)

        assert removed.id == page.id
        assert len(removed.entries) == 1
        with pytest.raises(NotFoundError):
            await store.get(page.id)

    @pytest.mark.asyncio
    async def test_delete_twice(self, store, neoya_page):
        await store.delete(neoya_page.id)

        with pytest.raises(NotFoundError):
            await store.delete(neoya_page.id)

    @pytest.mark.asyncio
    async def test_delete_leaves_other_pages(self, store, neoya_page):
        other = await store.create("Feb", "deoya")

        await store.delete(neoya_page.id)

        assert [p.id for p in await store.list()] == [other.id]
