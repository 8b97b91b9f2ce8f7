"""
Context Store and object key Tests
"""

import pytest

from detection_context.core.errors import StoreUnavailableError
from detection_context.schemas.context import (
    CollectionEntry,
    ContextEntry,
    clean_composite_id,
    compute_object_key,
)
from detection_context.services.context_store import ContextStore

from conftest import DETECTION_ID, FakeCollection


@pytest.mark.parametrize(
    "composite_id, entry_type, expected",
    [
        ("abc123", "note", "abc123_note"),
        ("abc:ind:def-1.2", "translation_es", "abcinddef-1.2_translation_es"),
        ("a b/c_d?e", "translation_fr", "abcde_translation_fr"),
        ("", "note", "_note"),
    ],
)
def test_compute_object_key(composite_id, entry_type, expected):
    assert compute_object_key(composite_id, entry_type) == expected


def test_underscore_in_id_is_stripped():
    key = compute_object_key("ldt:abc_def:1", "translation_es")
    assert key == "ldtabcdef1_translation_es"
    assert key.split("_", 1) == ["ldtabcdef1", "translation_es"]


def test_compute_object_key_is_stable():
    composite_id = "ldt:0123456789abcdef:4294967297"
    keys = {compute_object_key(composite_id, "translation_de") for _ in range(5)}
    assert keys == {clean_composite_id(composite_id) + "_translation_de"}


def test_collection_entry_for_translation():
    entry = CollectionEntry.for_translation("id:with:colons", "es")
    assert entry.composite_id == "id:with:colons"
    assert entry.type == "translation_es"
    assert entry.title == "Detection translation (es)"
    assert entry.object_key == "idwithcolons_translation_es"
    assert entry.model_dump(by_alias=True) == {
        "compositeId": "id:with:colons",
        "title": "Detection translation (es)",
        "type": "translation_es",
        "objectKey": "idwithcolons_translation_es",
    }


@pytest.mark.asyncio
async def test_list_entries_tags_each_entry_with_its_key(store):
    entries = await store.list_entries(DETECTION_ID)
    assert len(entries) == 1
    assert entries[0].object_key == f"{DETECTION_ID}_note"
    assert entries[0].title == "Note"
    assert entries[0].content == "Note content"


@pytest.mark.asyncio
async def test_list_entries_drops_failed_reads(collection, store):
    collection.records[f"{DETECTION_ID}_broken"] = {"title": "Broken", "content": "x"}
    collection.failing_reads.add(f"{DETECTION_ID}_broken")

    entries = await store.list_entries(DETECTION_ID)
    assert [entry.object_key for entry in entries] == [f"{DETECTION_ID}_note"]


@pytest.mark.asyncio
async def test_list_entries_drops_empty_records(collection, store):
    collection.records[f"{DETECTION_ID}_empty"] = {}
    entries = await store.list_entries(DETECTION_ID)
    assert [entry.object_key for entry in entries] == [f"{DETECTION_ID}_note"]


@pytest.mark.asyncio
async def test_list_entries_only_for_detection(collection, store):
    collection.records["other-id_note"] = {"title": "Other", "content": "other"}
    entries = await store.list_entries(DETECTION_ID)
    assert all(entry.object_key.startswith(DETECTION_ID) for entry in entries)


@pytest.mark.asyncio
async def test_list_failure_raises_store_unavailable(collection, store):
    collection.list_error = ConnectionError("collection offline")
    with pytest.raises(StoreUnavailableError, match="collection offline"):
        await store.list_entries(DETECTION_ID)


@pytest.mark.asyncio
async def test_write_and_delete_entry(collection, store):
    entry = ContextEntry(composite_id=DETECTION_ID, title="Tip", content="<p>Check host</p>", type="tip")
    await store.write_entry(f"{DETECTION_ID}_tip", entry)

    assert collection.records[f"{DETECTION_ID}_tip"] == {
        "objectKey": f"{DETECTION_ID}_tip",
        "compositeId": DETECTION_ID,
        "title": "Tip",
        "content": "<p>Check host</p>",
        "type": "tip",
    }

    await store.delete_entry(f"{DETECTION_ID}_tip")
    assert f"{DETECTION_ID}_tip" not in collection.records


@pytest.mark.asyncio
async def test_write_overwrites_same_key(collection, store):
    key = compute_object_key(DETECTION_ID, "translation_es")
    await store.write_entry(key, ContextEntry(composite_id=DETECTION_ID, title="v1", content="one", type="translation_es"))
    await store.write_entry(key, ContextEntry(composite_id=DETECTION_ID, title="v2", content="two", type="translation_es"))

    entries = {entry.object_key: entry for entry in await store.list_entries(DETECTION_ID)}
    assert entries[key].content == "two"


@pytest.mark.asyncio
async def test_write_failure_raises_store_unavailable():
    class BrokenCollection(FakeCollection):
        async def write(self, object_key, record):
            raise TimeoutError("write timed out")

        async def delete(self, object_key):
            raise TimeoutError("delete timed out")

    store = ContextStore(BrokenCollection())
    with pytest.raises(StoreUnavailableError):
        await store.write_entry("k_note", ContextEntry(title="t", content="c", type="note"))
    with pytest.raises(StoreUnavailableError):
        await store.delete_entry("k_note")
