"""Tests for services.rag.DocumentStore: in-memory corpus and bounded snapshot."""

import pytest

from conftest import InMemorySnapshotStorage, make_document, make_processed
from services.rag.DocumentStore import CHUNKS_KEY, DOCUMENTS_KEY, DocumentStore
from shared.errors import MalformedInputError


@pytest.fixture
def store(helper_config, storage):
    return DocumentStore(helper_config=helper_config, storage=storage)


class TestMergeAndUpsert:
    def test_upsert_replaces_unprocessed_entry(self, store):
        store.merge_catalog([make_document(1), make_document(2)])

        store.upsert_processed_batch([make_processed(make_document(1), [("alpha", [1.0, 0.0])])])

        assert [doc.id for doc in store.get_documents()] == [1, 2]
        assert store.get_document(1).is_processed
        assert not store.get_document(2).is_processed
        assert store.get_processed_count() == 1

    def test_upsert_appends_new_ids(self, store):
        store.upsert_processed_batch([make_processed(make_document(5), [("alpha", [1.0, 0.0])])])
        assert [doc.id for doc in store.get_documents()] == [5]

    def test_only_embedded_chunks_join_the_chunk_list(self, store):
        doc = make_processed(make_document(1), [("alpha", [1.0, 0.0]), ("beta", None), ("gamma", [0.0, 1.0])])

        store.upsert_processed_batch([doc])

        assert [chunk.text for chunk in store.get_chunks()] == ["alpha", "gamma"]
        assert len(store.get_document(1).chunks) == 3

    def test_unembedded_document_chunks_can_be_appended_later(self, store):
        store.upsert_processed_batch([make_processed(make_document(1), [("alpha", [1.0, 0.0]), ("beta", None)])])

        missing = store.get_unembedded_chunks()
        assert [chunk.text for chunk in missing] == ["beta"]
        assert store.append_embedded_chunks(missing) == 0

        missing[0].embedding = [0.0, 1.0]
        assert store.append_embedded_chunks(missing) == 1
        assert store.append_embedded_chunks(missing) == 0
        assert [chunk.text for chunk in store.get_chunks()] == ["alpha", "beta"]
        assert store.get_unembedded_chunks() == []

    def test_unprocessed_document_is_rejected(self, store):
        processed = make_processed(make_document(1), [("alpha", [1.0, 0.0])])

        with pytest.raises(MalformedInputError):
            store.upsert_processed_batch([processed, make_document(2)])

        assert store.get_documents() == []
        assert store.get_chunks() == []

    def test_catalog_merge_keeps_processed_documents(self, store):
        store.upsert_processed_batch([make_processed(make_document(1), [("alpha", [1.0, 0.0])])])

        store.merge_catalog([make_document(1), make_document(3)])

        assert store.get_document(1).is_processed
        assert [doc.id for doc in store.get_documents()] == [1, 3]

    def test_unprocessed_selection_requires_source(self, store):
        store.merge_catalog([make_document(1), make_document(2, download_link="")])
        assert [doc.id for doc in store.get_unprocessed_documents()] == [1]

    def test_getters_return_copies(self, store):
        store.merge_catalog([make_document(1)])
        store.get_documents().clear()
        store.get_chunks().append(None)
        assert len(store.get_documents()) == 1
        assert store.get_chunks() == []


class TestSnapshot:
    @pytest.mark.asyncio
    async def test_round_trip(self, helper_config, storage, store):
        store.merge_catalog([make_document(2, title="Outsourcing", circular_number="1140")])
        store.upsert_processed_batch([
            make_processed(make_document(1, title="Circular 1133", circular_number="1133"), [("alpha", [1.0, 0.0]), ("beta", [0.0, 1.0])]),
        ])
        await store.do_snapshot()

        restored = DocumentStore(helper_config=helper_config, storage=storage)
        assert await restored.do_restore() is True

        original = {doc.id: doc for doc in store.get_documents()}
        for doc in restored.get_documents():
            assert (doc.id, doc.title, doc.circular_number, doc.download_link) == (
                original[doc.id].id,
                original[doc.id].title,
                original[doc.id].circular_number,
                original[doc.id].download_link,
            )
            assert doc.chunks is None
        assert restored.get_document(1).is_processed
        assert [chunk.text for chunk in restored.get_chunks()] == ["alpha", "beta"]
        assert all(chunk.embedding is None for chunk in restored.get_chunks())

    @pytest.mark.asyncio
    async def test_eviction_keeps_most_recent_chunks(self, helper_config, storage):
        store = DocumentStore(helper_config=helper_config, storage=storage, max_snapshot_chunks=3)
        texts = [f"chunk-{i}" for i in range(5)]
        store.upsert_processed_batch([make_processed(make_document(1), [(text, [1.0, 0.0]) for text in texts])])

        await store.do_snapshot()

        assert [item["text"] for item in storage.data[CHUNKS_KEY]] == ["chunk-2", "chunk-3", "chunk-4"]
        assert len(store.get_chunks()) == 5

    @pytest.mark.asyncio
    async def test_snapshot_failure_keeps_memory(self, helper_config):
        failing = InMemorySnapshotStorage(helper_config=helper_config, fail_puts=True)
        store = DocumentStore(helper_config=helper_config, storage=failing)
        store.upsert_processed_batch([make_processed(make_document(1), [("alpha", [1.0, 0.0])])])

        await store.do_snapshot()

        assert len(store.get_documents()) == 1
        assert store.get_chunks()[0].embedding == [1.0, 0.0]

    @pytest.mark.asyncio
    async def test_restore_without_snapshot(self, store):
        assert await store.do_restore() is False
        assert store.get_documents() == []

    @pytest.mark.asyncio
    async def test_restore_read_failure(self, helper_config):
        store = DocumentStore(helper_config=helper_config, storage=InMemorySnapshotStorage(helper_config=helper_config, fail_gets=True))
        assert await store.do_restore() is False

    @pytest.mark.asyncio
    async def test_restore_malformed_snapshot(self, storage, store):
        storage.data[DOCUMENTS_KEY] = [{"title": "no id"}]
        assert await store.do_restore() is False
        assert store.get_documents() == []

    @pytest.mark.asyncio
    async def test_clear(self, storage, store):
        store.upsert_processed_batch([make_processed(make_document(1), [("alpha", [1.0, 0.0])])])
        await store.do_snapshot()

        await store.do_clear()

        assert store.get_documents() == []
        assert store.get_chunks() == []
        assert storage.data == {}
