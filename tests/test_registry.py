"""Tests for visitledger.registry: the append-only id list."""

import asyncio
import json

import pytest

from visitledger.errors import CommitFailed, StoreError
from visitledger.record_store import MemoryRecordStore
from visitledger.registry import KeyRegistry
from visitledger.types import REGISTRY_KEY


class TestLoad:
    @pytest.mark.asyncio
    async def test_absent_registry_is_empty(self, store):
        assert await KeyRegistry(store).load() == []

    @pytest.mark.asyncio
    async def test_empty_blob_is_empty(self):
        store = MemoryRecordStore({REGISTRY_KEY: b""})
        assert await KeyRegistry(store).load() == []

    @pytest.mark.asyncio
    async def test_returns_ids_in_order(self):
        store = MemoryRecordStore({REGISTRY_KEY: b'["b","a","c"]'})
        assert await KeyRegistry(store).load() == ["b", "a", "c"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("blob", [b"{not json", b'{"ids": []}', b"[1, 2]"])
    async def test_malformed_registry_degrades_to_empty(self, blob, caplog):
        store = MemoryRecordStore({REGISTRY_KEY: blob})
        with caplog.at_level("WARNING", logger="visitledger.registry"):
            assert await KeyRegistry(store).load() == []
        assert "malformed registry" in caplog.text

    @pytest.mark.asyncio
    async def test_read_error_propagates(self):
        store = MemoryRecordStore(unreadable={REGISTRY_KEY})
        with pytest.raises(StoreError):
            await KeyRegistry(store).load()


class TestAppend:
    @pytest.mark.asyncio
    async def test_append_to_empty(self, store):
        registry = KeyRegistry(store)
        await registry.append("one")
        assert json.loads(store.snapshot()[REGISTRY_KEY]) == ["one"]

    @pytest.mark.asyncio
    async def test_append_preserves_order(self, store):
        registry = KeyRegistry(store)
        for visit_id in ("one", "two", "three"):
            await registry.append(visit_id)
        assert await registry.load() == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_append_over_malformed_registry_starts_fresh(self):
        store = MemoryRecordStore({REGISTRY_KEY: b"garbage"})
        registry = KeyRegistry(store)
        assert await registry.append("new") == ["new"]

    @pytest.mark.asyncio
    async def test_failed_write_leaves_registry_unchanged(self):
        store = MemoryRecordStore({REGISTRY_KEY: b'["a"]'}, fail_on={REGISTRY_KEY})
        with pytest.raises(CommitFailed):
            await KeyRegistry(store).append("b")
        assert store.snapshot()[REGISTRY_KEY] == b'["a"]'


class TestConcurrentAppend:
    """The append is an unsynchronized read-modify-write. These tests pin
    the lost-update behavior so a change to it is a deliberate decision."""

    @pytest.mark.asyncio
    async def test_concurrent_appends_lose_an_id(self, store):
        registry = KeyRegistry(store)

        await asyncio.gather(registry.append("first"), registry.append("second"))

        final = await registry.load()
        assert len(final) == 1
        assert final[0] in ("first", "second")

    @pytest.mark.asyncio
    async def test_race_with_existing_entries(self):
        store = MemoryRecordStore({REGISTRY_KEY: b'["old"]'})
        registry = KeyRegistry(store)

        await asyncio.gather(registry.append("x"), registry.append("y"))

        final = await registry.load()
        assert final[0] == "old"
        assert len(final) == 2

    @pytest.mark.asyncio
    async def test_sequential_appends_keep_both(self, store):
        registry = KeyRegistry(store)
        await registry.append("first")
        await registry.append("second")
        assert await registry.load() == ["first", "second"]
