"""
Gallery Backend — In-Memory Store Tests
=========================================

What we test:
    ✅ Listing is newest first, with insertion order breaking timestamp ties
    ✅ Inserted records get fresh ids, equal created/updated timestamps
    ✅ Update changes only title and updated_at
    ✅ Delete removes exactly one record; unknown ids are a no-op
    ✅ Callers cannot mutate store state through returned lists
    ✅ Duplicate account emails are rejected
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from gallery.stores import DuplicateAccountError, InMemoryCredentialStore, InMemoryImageStore


FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class TestInMemoryImageStore:

    def setup_method(self):
        self.store = InMemoryImageStore()

    @pytest.mark.asyncio
    async def test_empty_store_lists_nothing(self):
        assert await self.store.list_all() == []
        assert await self.store.count() == 0

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_timestamps(self):
        image = await self.store.insert("Sunset", "https://cdn/x.jpg", "image-gallery/x")

        assert image.id
        assert image.title == "Sunset"
        assert image.created_at == image.updated_at
        assert image.created_at.tzinfo is not None
        assert await self.store.count() == 1

    @pytest.mark.asyncio
    async def test_ids_are_unique(self):
        a = await self.store.insert("a", "u1", "r1")
        b = await self.store.insert("b", "u2", "r2")
        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_list_newest_first(self):
        await self.store.insert("first", "u1", "r1")
        await self.store.insert("second", "u2", "r2")
        await self.store.insert("third", "u3", "r3")

        titles = [image.title for image in await self.store.list_all()]
        assert titles == ["third", "second", "first"]

    @pytest.mark.asyncio
    async def test_timestamp_ties_favour_later_insert(self):
        with patch("gallery.stores.memory.datetime") as mock_dt:
            mock_dt.now.return_value = FIXED_NOW
            await self.store.insert("older", "u1", "r1")
            await self.store.insert("newer", "u2", "r2")

        listed = await self.store.list_all()
        assert listed[0].created_at == listed[1].created_at
        assert [image.title for image in listed] == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_list_returns_a_copy(self):
        await self.store.insert("a", "u1", "r1")
        listed = await self.store.list_all()
        listed.clear()
        assert await self.store.count() == 1

    @pytest.mark.asyncio
    async def test_update_title_changes_only_title_and_updated_at(self):
        original = await self.store.insert("old", "u1", "r1")

        with patch("gallery.stores.memory.datetime") as mock_dt:
            mock_dt.now.return_value = original.created_at + timedelta(seconds=5)
            updated = await self.store.update_title(original.id, "new")

        assert updated.title == "new"
        assert updated.id == original.id
        assert updated.url == original.url
        assert updated.remote_object_id == original.remote_object_id
        assert updated.created_at == original.created_at
        assert updated.updated_at > original.updated_at

    @pytest.mark.asyncio
    async def test_update_unknown_id_returns_none(self):
        assert await self.store.update_title("999", "whatever") is None

    @pytest.mark.asyncio
    async def test_delete_removes_exactly_one(self):
        keep = await self.store.insert("keep", "u1", "r1")
        drop = await self.store.insert("drop", "u2", "r2")

        removed = await self.store.delete_by_id(drop.id)

        assert removed.id == drop.id
        remaining = await self.store.list_all()
        assert [image.id for image in remaining] == [keep.id]

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_noop(self):
        await self.store.insert("a", "u1", "r1")
        assert await self.store.delete_by_id("does-not-exist") is None
        assert await self.store.count() == 1


class TestInMemoryCredentialStore:

    def setup_method(self):
        self.store = InMemoryCredentialStore()

    @pytest.mark.asyncio
    async def test_find_by_email_is_exact(self):
        await self.store.create("admin@gmail.com", "hash", is_admin=True)

        assert (await self.store.find_by_email("admin@gmail.com")).is_admin is True
        assert await self.store.find_by_email("Admin@gmail.com") is None
        assert await self.store.find_by_email("nobody@gmail.com") is None

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self):
        await self.store.create("admin@gmail.com", "hash", is_admin=True)
        with pytest.raises(DuplicateAccountError):
            await self.store.create("admin@gmail.com", "other", is_admin=False)
