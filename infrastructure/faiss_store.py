# infrastructure/faiss_store.py
import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List

import faiss
import numpy as np

from config import settings
from core.domain import Chunk
from core.exceptions import StoreUnavailableError
from core.interfaces import IVectorStore
from infrastructure.vector_stores import check_dimensions

logger = logging.getLogger(settings.LOGGER_NAME)


class FAISSVectorStore(IVectorStore):
    """
    Persistent FAISS store with cosine ranking.

    - Vectors are L2-normalized before indexing, so IndexFlatIP scores are cosine
      similarities; returned chunks carry the normalized vector.
    - _rows keeps FAISS row -> chunk record; row order is insertion order and
      breaks ties between equal scores.
    - Each add is written to disk on a copy of the index and rows, which replace
      the live ones only after the write succeeds. Mutations share one lock.
    """

    def __init__(self, dimension: int, index_dir: str = settings.VECTOR_DB_PATH):
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension
        self._index: Any = faiss.IndexFlatIP(dimension)
        self._rows: List[Dict[str, Any]] = []
        self._lock = asyncio.Lock()

        self._index_path = Path(index_dir) / "faiss.index"
        self._rows_path = Path(index_dir) / "faiss_rows.json"

        self._index_path.parent.mkdir(parents=True, exist_ok=True)
        self._load_index()

    @property
    def dimension(self) -> int:
        return self._dimension

    def _load_index(self):
        """Loads index and row records from disk, if present"""
        if not self._index_path.exists():
            return
        try:
            index = faiss.read_index(str(self._index_path))
            with open(self._rows_path, 'r', encoding='utf-8') as f:
                rows = json.load(f)["rows"]
        except (RuntimeError, OSError, ValueError, KeyError) as e:
            logger.error(f"[FAISS] Failed to load index from {self._index_path}: {e}")
            raise StoreUnavailableError(f"Cannot load FAISS index: {e}") from e

        if index.d != self._dimension:
            raise StoreUnavailableError(
                f"FAISS index at {self._index_path} has dimension {index.d}, "
                f"expected {self._dimension}"
            )
        if index.ntotal != len(rows):
            raise StoreUnavailableError(
                f"FAISS index holds {index.ntotal} vectors but {len(rows)} row records"
            )
        self._index = index
        self._rows = rows
        logger.info(f"[FAISS] Loaded {len(rows)} chunks from {self._index_path}")

    def _save_index(self, index: Any, rows: List[Dict[str, Any]]):
        """Writes index and rows to disk (called under self._lock)."""
        faiss.write_index(index, str(self._index_path))
        with open(self._rows_path, 'w', encoding='utf-8') as f:
            json.dump({"rows": rows}, f, ensure_ascii=False)

    @staticmethod
    def _normalized(vectors: np.ndarray) -> np.ndarray:
        vectors = np.ascontiguousarray(vectors, dtype='float32')
        faiss.normalize_L2(vectors)
        return vectors

    async def add(self, chunks: List[Chunk]) -> List[str]:
        if not chunks:
            return []
        check_dimensions(chunks, self._dimension)

        embeddings = self._normalized(np.array([c.embedding for c in chunks], dtype='float32'))
        rows = [
            {"id": str(uuid.uuid4()), "content": c.content, "metadata": dict(c.metadata)}
            for c in chunks
        ]

        async with self._lock:
            # Work on a copy; the live index only changes once the batch is on disk
            try:
                index = faiss.clone_index(self._index)
                await asyncio.to_thread(index.add, embeddings)
                new_rows = self._rows + rows
                await asyncio.to_thread(self._save_index, index, new_rows)
            except (RuntimeError, OSError) as e:
                logger.error(f"[FAISS] Failed to add chunks: {e}")
                raise StoreUnavailableError(f"Vector store unavailable: {e}") from e
            self._index = index
            self._rows = new_rows

        return [row["id"] for row in rows]

    async def search(self, query_embedding: List[float], top_k: int) -> List[Chunk]:
        if top_k < 0:
            raise ValueError(f"top_k must be >= 0, got {top_k}")
        if len(query_embedding) != self._dimension:
            raise ValueError(
                f"Query embedding dimension {len(query_embedding)}, expected {self._dimension}"
            )

        async with self._lock:
            total = self._index.ntotal
            if top_k == 0 or total == 0:
                return []
            query = self._normalized(np.array([query_embedding], dtype='float32'))
            try:
                scores, indices = await asyncio.to_thread(
                    self._index.search, query, min(top_k, total)
                )
            except RuntimeError as e:
                logger.error(f"[FAISS] Search failed: {e}")
                raise StoreUnavailableError(f"Vector store unavailable: {e}") from e

            hits = [
                (float(score), int(row))
                for score, row in zip(scores[0], indices[0])
                if row != -1
            ]
            # Highest similarity first, lower row (older chunk) first on ties
            hits.sort(key=lambda hit: (-hit[0], hit[1]))
            return [self._chunk_at(row) for _, row in hits]

    def _chunk_at(self, row: int) -> Chunk:
        record = self._rows[row]
        return Chunk(
            id=record["id"],
            content=record["content"],
            embedding=tuple(float(x) for x in self._index.reconstruct(row)),
            metadata=dict(record["metadata"]),
        )

    async def count(self) -> int:
        return self._index.ntotal

    async def clear(self) -> int:
        async with self._lock:
            removed = self._index.ntotal
            try:
                for path in (self._index_path, self._rows_path):
                    if path.exists():
                        await asyncio.to_thread(path.unlink)
            except OSError as e:
                logger.error(f"[FAISS] Clear failed: {e}")
                raise StoreUnavailableError(f"Vector store unavailable: {e}") from e
            self._index = faiss.IndexFlatIP(self._dimension)
            self._rows = []
        return removed

    def __repr__(self) -> str:
        return f"FAISSVectorStore(dimension={self._dimension}, path={str(self._index_path)!r})"
