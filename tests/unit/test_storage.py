"""Record store contract, run against both backends.

The database backend runs on a throwaway SQLite file via aiosqlite, so no
PostgreSQL server is needed.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from peulot.config import Settings
from peulot.core.errors import NotFoundError
from peulot.core.types import PeulaComponent, PeulaContent
from peulot.storage import MemStorage, create_storage
from peulot.storage.db import DbStorage


@pytest.fixture(params=["memory", "database"])
async def backend(request, tmp_path):
    if request.param == "memory":
        yield MemStorage()
        return
    pytest.importorskip("aiosqlite")
    db = DbStorage.from_url(f"sqlite+aiosqlite:///{tmp_path / 'peulot.db'}")
    await db.init()
    yield db
    await db.close()


def _content(tag: str = "v1") -> PeulaContent:
    return PeulaContent(components=tuple(
        PeulaComponent(f"{i + 1}. Part", f"{tag} d{i}", f"{tag} b{i}", f"{tag} t{i}") for i in range(9)
    ))


async def _peula(store, title: str = "Trust Circle"):
    return await store.create_peula(
        title=title, topic="Trust", age_group="12-13", duration="60", group_size="15-20",
        goals="Build trust", content=_content(), available_materials=["rope"],
    )


class TestPeulot:
    @pytest.mark.asyncio
    async def test_create_and_get(self, backend):
        created = await _peula(backend)
        fetched = await backend.get_peula(created.id)

        assert fetched.title == "Trust Circle"
        assert fetched.available_materials == ["rope"]
        assert fetched.special_considerations is None
        assert fetched.content == _content()
        assert fetched.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_get_missing(self, backend):
        assert await backend.get_peula("missing") is None

    @pytest.mark.asyncio
    async def test_list_newest_first(self, backend):
        first = await _peula(backend, "First")
        await asyncio.sleep(0.001)
        second = await _peula(backend, "Second")
        assert [p.id for p in await backend.list_peulot()] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_content_sees_current_value(self, backend):
        created = await _peula(backend)
        seen = []

        def mutate(current: PeulaContent) -> PeulaContent:
            seen.append(current)
            return _content("v2")

        updated = await backend.update_peula_content(created.id, mutate)

        assert seen == [_content()]
        assert updated.content == _content("v2")
        assert (await backend.get_peula(created.id)).content == _content("v2")

    @pytest.mark.asyncio
    async def test_update_missing(self, backend):
        with pytest.raises(NotFoundError):
            await backend.update_peula_content("missing", lambda c: c)

    @pytest.mark.asyncio
    async def test_delete_cascades_to_feedback(self, backend):
        keep = await _peula(backend, "Keep")
        drop = await _peula(backend, "Drop")
        await backend.create_feedback(keep.id, 0, "stays")
        await backend.create_feedback(drop.id, 1, "goes")

        await backend.delete_peula(drop.id)
        await backend.delete_peula(drop.id)

        assert await backend.get_peula(drop.id) is None
        assert [f.comment for f in await backend.list_feedback()] == ["stays"]


class TestFeedback:
    @pytest.mark.asyncio
    async def test_oldest_first_and_scoped(self, backend):
        a = await _peula(backend, "A")
        b = await _peula(backend, "B")
        await backend.create_feedback(a.id, 0, "one")
        await asyncio.sleep(0.001)
        await backend.create_feedback(b.id, 3, "two")
        await asyncio.sleep(0.001)
        third = await backend.create_feedback(a.id, 8, "three")

        assert [f.comment for f in await backend.list_feedback()] == ["one", "two", "three"]
        assert [f.comment for f in await backend.list_feedback_for_peula(a.id)] == ["one", "three"]

        await backend.delete_feedback(third.id)
        assert [f.comment for f in await backend.list_feedback_for_peula(a.id)] == ["one"]

    @pytest.mark.asyncio
    async def test_same_timestamp_lists_in_stable_order(self, backend):
        peula = await _peula(backend)
        stamp = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        with patch("peulot.storage.db.utcnow", return_value=stamp), \
             patch("peulot.storage.memory.utcnow", return_value=stamp):
            created = [await backend.create_feedback(peula.id, 2, f"comment {i}") for i in range(6)]

        first = [f.id for f in await backend.list_feedback()]
        assert first == [f.id for f in await backend.list_feedback()]
        assert first == [f.id for f in await backend.list_feedback_for_peula(peula.id)]
        assert sorted(first) == sorted(f.id for f in created)
        if isinstance(backend, DbStorage):
            assert first == sorted(first)


class TestTrainingExamples:
    @pytest.mark.asyncio
    async def test_crud(self, backend):
        first = await backend.create_training_example("Campfire", "Songs", notes="evening")
        await asyncio.sleep(0.001)
        second = await backend.create_training_example("Hike", "Maps")

        listed = await backend.list_training_examples()
        assert [e.id for e in listed] == [second.id, first.id]
        assert listed[1].notes == "evening"

        await backend.delete_training_example(first.id)
        assert [e.id for e in await backend.list_training_examples()] == [second.id]


class TestAnchors:
    @pytest.mark.asyncio
    async def test_create_appends_after_last(self, backend):
        a = await backend.create_anchor("Experiential learning", "Method")
        b = await backend.create_anchor("Safety first", "Safety")
        c = await backend.create_anchor("Pinned", "Method", display_order=10)
        d = await backend.create_anchor("After pinned", "Method")

        assert (a.display_order, b.display_order, c.display_order, d.display_order) == (1, 2, 10, 11)

    @pytest.mark.asyncio
    async def test_update_partial(self, backend):
        anchor = await backend.create_anchor("Old text", "Method")
        updated = await backend.update_anchor(anchor.id, text="New text")

        assert updated.text == "New text"
        assert updated.category == "Method"
        assert await backend.update_anchor("missing", text="x") is None

    @pytest.mark.asyncio
    async def test_reorder_is_one_based(self, backend):
        a = await backend.create_anchor("a", "x")
        b = await backend.create_anchor("b", "x")
        c = await backend.create_anchor("c", "x")

        ordered = await backend.reorder_anchors([c.id, a.id, b.id])

        assert [(x.id, x.display_order) for x in ordered] == [(c.id, 1), (a.id, 2), (b.id, 3)]

    @pytest.mark.asyncio
    async def test_delete(self, backend):
        anchor = await backend.create_anchor("a", "x")
        await backend.delete_anchor(anchor.id)
        assert await backend.list_anchors() == []


class TestCreateStorage:
    def test_memory_backend(self):
        assert isinstance(create_storage(Settings(storage_backend="memory")), MemStorage)

    def test_database_backend(self):
        pytest.importorskip("aiosqlite")
        store = create_storage(Settings(storage_backend="database", database_url="sqlite+aiosqlite:///x.db"))
        assert isinstance(store, DbStorage)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_storage(Settings(storage_backend="redis"))
