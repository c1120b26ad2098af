# tests/test_faiss_store.py
"""Tests for the persistent FAISS store."""
import faiss
import pytest

from conftest import DIMENSION, make_service, words
from core.domain import Chunk
from core.enums import ErrorKind
from core.exceptions import StoreUnavailableError
from infrastructure.faiss_store import FAISSVectorStore


def chunk(content: str, vector, **metadata) -> Chunk:
    return Chunk(content=content, metadata=dict(metadata)).with_embedding(list(vector))


class TestFAISSVectorStore:
    async def test_ranks_by_cosine_not_magnitude(self, tmp_path):
        store = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        await store.add([
            chunk("long but off-axis", [10, 10]),
            chunk("short and aligned", [0.1, 0]),
            chunk("orthogonal", [0, 1]),
        ])
        results = await store.search([1, 0], top_k=3)
        assert [c.content for c in results] == ["short and aligned", "long but off-axis", "orthogonal"]

    async def test_ties_keep_insertion_order(self, tmp_path):
        store = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        await store.add([chunk("first", [1, 0]), chunk("second", [4, 0]), chunk("third", [2, 0])])
        results = await store.search([1, 0], top_k=3)
        assert [c.content for c in results] == ["first", "second", "third"]

    async def test_top_k_bound(self, tmp_path):
        store = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        assert await store.search([1, 0], top_k=5) == []
        await store.add([chunk(str(i), [1, i]) for i in range(3)])
        assert len(await store.search([1, 0], top_k=2)) == 2
        assert len(await store.search([1, 0], top_k=5)) == 3
        assert await store.search([1, 0], top_k=0) == []

    async def test_persists_across_instances(self, tmp_path):
        store = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        ids = await store.add([chunk("kept", [1, 0], chunk_index="0")])

        reopened = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        assert await reopened.count() == 1
        [result] = await reopened.search([1, 0], top_k=1)
        assert result.id == ids[0]
        assert result.content == "kept"
        assert result.metadata == {"chunk_index": "0"}

    async def test_reopen_with_other_dimension_fails(self, tmp_path):
        store = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        await store.add([chunk("a", [1, 0])])
        with pytest.raises(StoreUnavailableError):
            FAISSVectorStore(dimension=3, index_dir=str(tmp_path))

    async def test_dimension_mismatch_rejects_batch(self, tmp_path):
        store = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        with pytest.raises(ValueError):
            await store.add([chunk("a", [1, 0]), chunk("b", [1])])
        assert await store.count() == 0

    async def test_clear_removes_files(self, tmp_path):
        store = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        await store.add([chunk("a", [1, 0])])
        assert await store.clear() == 1
        assert await store.count() == 0
        assert not (tmp_path / "faiss.index").exists()

    async def test_failed_write_leaves_store_unchanged(self, tmp_path, monkeypatch):
        store = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        await store.add([chunk("kept", [1, 0])])

        def disk_full(index, path):
            raise RuntimeError("disk full")

        monkeypatch.setattr(faiss, "write_index", disk_full)
        with pytest.raises(StoreUnavailableError):
            await store.add([chunk("lost", [1, 0]), chunk("lost too", [0, 1])])

        assert await store.count() == 1
        assert [c.content for c in await store.search([1, 0], top_k=5)] == ["kept"]

        monkeypatch.undo()
        await store.add([chunk("next", [0, 1])])
        reopened = FAISSVectorStore(dimension=2, index_dir=str(tmp_path))
        assert sorted(c.content for c in await reopened.search([1, 1], top_k=5)) == ["kept", "next"]

    async def test_failed_write_fails_whole_ingest(self, tmp_path, monkeypatch):
        store = FAISSVectorStore(dimension=DIMENSION, index_dir=str(tmp_path))
        service = make_service(store=store)

        def disk_full(index, path):
            raise RuntimeError("disk full")

        monkeypatch.setattr(faiss, "write_index", disk_full)
        result = await service.ingest(words(1300))

        assert result.error_kind == ErrorKind.INGESTION_FAILURE
        assert result.cause_kind == ErrorKind.STORE_UNAVAILABLE
        assert await store.count() == 0
