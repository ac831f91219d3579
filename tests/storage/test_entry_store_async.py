"""Tests for EntryStore.get_entries_async — the aiofiles read path."""

import asyncio

from helpers import Item


async def test_matches_sync_read(store):
    store.add_entries([Item(1, "a"), Item(2, "b")])
    entries = await store.get_entries_async()
    assert [(e.id, e.name) for e in entries] == [(e.id, e.name) for e in store.get_entries()]


async def test_blank_document_is_empty(store, store_path, reported):
    store_path.write_text("\n\n")
    assert await store.get_entries_async() == []
    assert reported == []


async def test_missing_file_is_recreated(store, store_path, reported):
    store_path.unlink()
    assert await store.get_entries_async() == []
    assert store_path.exists()
    assert reported == []


async def test_malformed_document_is_reported(store, store_path, reported):
    store_path.write_text("{{{")
    assert await store.get_entries_async() == []
    assert len(reported) == 1
    assert "asynchronously" in reported[0][0]


async def test_waits_for_a_write_in_progress(store):
    store.add_entry(Item(1, "a"))

    with store.guard.hold(writing=True):
        task = asyncio.create_task(store.get_entries_async())
        await asyncio.sleep(0.05)
        assert not task.done()

    entries = await asyncio.wait_for(task, timeout=5)
    assert [e.id for e in entries] == [1]
    assert not store.guard.writing


async def test_sync_call_on_loop_thread_during_async_read(store):
    store.add_entries([Item(1), Item(2)])

    task = asyncio.create_task(store.get_entries_async())
    await asyncio.sleep(0)
    # runs on the loop thread while the read above is suspended
    store.add_entry(Item(3))
    assert [e.id for e in store.get_entries()] == [1, 2, 3]

    entries = await asyncio.wait_for(task, timeout=5)
    assert [e.id for e in entries] in ([1, 2], [1, 2, 3])


async def test_read_overlapping_a_write_is_repeated(store, monkeypatch):
    store.add_entry(Item(1, "old"))
    reads = []
    read_text = store._read_text_async

    async def read_during_write(path):
        content = await read_text(path)
        reads.append(content)
        if len(reads) == 1:
            store.edit_entry(Item(1), lambda item: setattr(item, "name", "new"))
        return content

    monkeypatch.setattr(store, "_read_text_async", read_during_write)
    entries = await store.get_entries_async()

    assert len(reads) == 2
    assert [(e.id, e.name) for e in entries] == [(1, "new")]


async def test_leading_bom_is_ignored(store, store_path, reported):
    store_path.write_bytes('\ufeff[{"id": 4}]'.encode())
    assert [e.id for e in await store.get_entries_async()] == [4]
    assert reported == []


async def test_concurrent_async_reads(store):
    store.add_entries([Item(i) for i in range(5)])
    results = await asyncio.gather(*(store.get_entries_async() for _ in range(10)))
    assert all(len(r) == 5 for r in results)
