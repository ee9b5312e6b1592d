"""Tests for the JSON-backed message store."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from messagehub.errors import MessageNotFound, PersistenceFailure
from messagehub.models import Message
from messagehub.store import MessageStore


class TestLoad:
    async def test_missing_file_is_empty(self, store: MessageStore, data_file: Path):
        assert await store.list() == []
        assert not data_file.exists()

    async def test_loads_existing_file(self, data_file: Path):
        data_file.write_text(
            json.dumps(
                [
                    {"id": 1, "content": "first"},
                    {"id": 2, "content": "second", "word": "two"},
                ]
            )
        )
        store = MessageStore(data_file)
        assert await store.list() == [
            Message(id=1, content="first"),
            Message(id=2, content="second", word="two"),
        ]

    async def test_corrupt_file_raises(self, data_file: Path):
        data_file.write_text("{not json")
        store = MessageStore(data_file)
        with pytest.raises(PersistenceFailure):
            await store.list()
        # The broken file is left alone
        assert data_file.read_text() == "{not json"

    async def test_concurrent_first_access_loads_once(self, data_file: Path):
        data_file.write_text(json.dumps([{"id": 1, "content": "first"}]))
        store = MessageStore(data_file)

        with patch.object(store, "_load", wraps=store._load) as mock_load:
            results = await asyncio.gather(
                store.list(),
                store.count(),
                store.create("second"),
                store.list(),
            )

        mock_load.assert_called_once()
        assert results[2] == Message(id=2, content="second")
        assert [m.id for m in await store.list()] == [1, 2]

    async def test_reload_sees_previous_writes(self, store: MessageStore, data_file: Path):
        await store.create("hello", "greeting")
        await store.update(1, content="hello again")

        reloaded = MessageStore(data_file)
        assert await reloaded.list() == [
            Message(id=1, content="hello again", word="greeting")
        ]


class TestCreate:
    async def test_returns_message(self, store: MessageStore):
        m = await store.create("hello")
        assert m == Message(id=1, content="hello", word=None)

    async def test_ids_follow_insertion_order(self, store: MessageStore):
        created = [await store.create(f"msg-{i}") for i in range(5)]
        assert [m.id for m in created] == [1, 2, 3, 4, 5]
        listed = await store.list()
        assert [m.id for m in listed] == [1, 2, 3, 4, 5]
        assert [m.content for m in listed] == [f"msg-{i}" for i in range(5)]

    async def test_id_continues_from_loaded_file(self, data_file: Path):
        data_file.write_text(json.dumps([{"id": 1, "content": "a"}, {"id": 2, "content": "b"}]))
        store = MessageStore(data_file)
        m = await store.create("c")
        assert m.id == 3

    async def test_persists_whole_collection(self, store: MessageStore, data_file: Path):
        await store.create("hello")
        await store.create("world", "noun")
        assert json.loads(data_file.read_text()) == [
            {"id": 1, "content": "hello"},
            {"id": 2, "content": "world", "word": "noun"},
        ]

    async def test_creates_parent_directory(self, tmp_path: Path):
        path = tmp_path / "nested" / "dir" / "data.json"
        store = MessageStore(path)
        await store.create("hello")
        assert path.exists()

    async def test_no_temp_file_left_behind(self, store: MessageStore, data_file: Path):
        await store.create("hello")
        assert [p.name for p in data_file.parent.iterdir()] == ["data.json"]

    async def test_persist_failure_leaves_collection_unchanged(self, store: MessageStore):
        await store.create("kept")
        with patch.object(store, "_write", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceFailure):
                await store.create("lost")
        assert await store.list() == [Message(id=1, content="kept")]
        # The next create reuses the id the failed call would have taken
        assert (await store.create("next")).id == 2

    async def test_concurrent_creates(self, store: MessageStore, data_file: Path):
        results = await asyncio.gather(*(store.create(f"m{i}") for i in range(10)))
        assert sorted(m.id for m in results) == list(range(1, 11))
        persisted = json.loads(data_file.read_text())
        assert sorted(r["id"] for r in persisted) == list(range(1, 11))
        assert {r["content"] for r in persisted} == {f"m{i}" for i in range(10)}


class TestUpdate:
    async def test_no_fields_is_noop(self, store: MessageStore):
        original = await store.create("hello", "greeting")
        updated = await store.update(1)
        assert updated == original
        assert await store.list() == [original]

    async def test_content_only_keeps_word(self, store: MessageStore):
        await store.create("hello", "greeting")
        updated = await store.update(1, content="bye")
        assert updated == Message(id=1, content="bye", word="greeting")

    async def test_word_only_keeps_content(self, store: MessageStore):
        await store.create("hello")
        updated = await store.update(1, word="greeting")
        assert updated == Message(id=1, content="hello", word="greeting")

    async def test_empty_string_clears_content(self, store: MessageStore):
        await store.create("hello")
        updated = await store.update(1, content="")
        assert updated.content == ""

    async def test_keeps_position(self, store: MessageStore):
        for c in ("a", "b", "c"):
            await store.create(c)
        await store.update(2, content="B")
        assert [m.content for m in await store.list()] == ["a", "B", "c"]

    async def test_persists(self, store: MessageStore, data_file: Path):
        await store.create("hello")
        await store.update(1, word="greeting")
        assert json.loads(data_file.read_text()) == [
            {"id": 1, "content": "hello", "word": "greeting"}
        ]

    async def test_missing_id_raises(self, store: MessageStore, data_file: Path):
        await store.create("hello")
        with pytest.raises(MessageNotFound) as exc_info:
            await store.update(99, content="x")
        assert exc_info.value.message_id == 99
        assert await store.list() == [Message(id=1, content="hello")]

    async def test_persist_failure_leaves_message_unchanged(self, store: MessageStore):
        await store.create("hello")
        with patch.object(store, "_write", side_effect=OSError("read-only")):
            with pytest.raises(PersistenceFailure):
                await store.update(1, content="changed")
        assert await store.get(1) == Message(id=1, content="hello")


class TestRead:
    async def test_get(self, store: MessageStore):
        await store.create("hello")
        assert (await store.get(1)).content == "hello"

    async def test_get_missing(self, store: MessageStore):
        with pytest.raises(MessageNotFound):
            await store.get(1)

    async def test_count(self, store: MessageStore):
        assert await store.count() == 0
        await store.create("a")
        await store.create("b")
        assert await store.count() == 2

    async def test_list_returns_copy(self, store: MessageStore):
        await store.create("a")
        listed = await store.list()
        listed.clear()
        assert len(await store.list()) == 1
