# infrastructure/vector_stores.py
"""Concrete implementations of vector stores"""
import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

import numpy as np

from config import settings
from core.domain import Chunk
from core.exceptions import StoreUnavailableError
from core.interfaces import IVectorStore

logger = logging.getLogger(settings.LOGGER_NAME)


def check_dimensions(chunks: List[Chunk], dimension: int) -> None:
    """Reject the whole batch if any chunk has the wrong embedding size."""
    for position, chunk in enumerate(chunks):
        if len(chunk.embedding) != dimension:
            raise ValueError(
                f"Chunk {position} has embedding dimension {len(chunk.embedding)}, "
                f"expected {dimension}"
            )


def cosine_distances(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """1 - cos(row, query) for every row; zero vectors are treated as orthogonal."""
    row_norms = np.linalg.norm(matrix, axis=1)
    query_norm = np.linalg.norm(query)
    denom = row_norms * query_norm
    dots = matrix @ query
    similarity = np.divide(dots, denom, out=np.zeros_like(dots), where=denom != 0)
    return 1.0 - similarity


class InMemoryVectorStore(IVectorStore):
    """
    Exact cosine search over a numpy matrix held in process memory.

    Rows are kept in insertion order, and a stable argsort makes equal
    distances come back in that order. Mutations run under one asyncio.Lock.
    """

    def __init__(self, dimension: int):
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension
        self._matrix = np.empty((0, dimension), dtype='float32')
        self._chunks: List[Chunk] = []
        self._lock = asyncio.Lock()

    @property
    def dimension(self) -> int:
        return self._dimension

    async def add(self, chunks: List[Chunk]) -> List[str]:
        if not chunks:
            return []
        check_dimensions(chunks, self._dimension)

        stored = [chunk.with_id(str(uuid.uuid4())) for chunk in chunks]
        vectors = np.array([c.embedding for c in stored], dtype='float32')

        async with self._lock:
            self._matrix = np.vstack([self._matrix, vectors])
            self._chunks.extend(stored)

        return [c.id for c in stored]

    async def search(self, query_embedding: List[float], top_k: int) -> List[Chunk]:
        if top_k < 0:
            raise ValueError(f"top_k must be >= 0, got {top_k}")
        if len(query_embedding) != self._dimension:
            raise ValueError(
                f"Query embedding dimension {len(query_embedding)}, expected {self._dimension}"
            )

        async with self._lock:
            matrix = self._matrix
            chunks = list(self._chunks)

        if top_k == 0 or not chunks:
            return []

        distances = cosine_distances(matrix, np.asarray(query_embedding, dtype='float32'))
        order = np.argsort(distances, kind='stable')[:top_k]
        return [chunks[i] for i in order]

    async def count(self) -> int:
        return len(self._chunks)

    async def clear(self) -> int:
        async with self._lock:
            removed = len(self._chunks)
            self._matrix = np.empty((0, self._dimension), dtype='float32')
            self._chunks = []
        return removed

    def __repr__(self) -> str:
        return f"InMemoryVectorStore(dimension={self._dimension}, chunks={len(self._chunks)})"


class ChromaDBVectorStore(IVectorStore):
    """
    ChromaDB collection in cosine space.

    Chroma does not promise an order for equal distances, so every chunk gets a
    ``_seq`` metadata counter and results are re-sorted by (distance, _seq).
    """

    SEQ_KEY = "_seq"

    def __init__(self, client: Any, dimension: int, collection_name: str = "rag_chunks"):
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._client = client
        self._dimension = dimension
        self._collection_name = collection_name
        self._collection: Any = None
        self._next_seq: Optional[int] = None
        self._lock = asyncio.Lock()
        self._init_lock = asyncio.Lock()

    @property
    def dimension(self) -> int:
        return self._dimension

    async def _ensure_collection(self):
        """Lazy initialization of collection.

        Collection and sequence counter are published together, so a caller
        never sees one without the other.
        """
        if self._collection is not None:
            return
        async with self._init_lock:
            if self._collection is not None:
                return
            try:
                collection = await asyncio.to_thread(
                    self._client.get_or_create_collection,
                    name=self._collection_name,
                    metadata={"hnsw:space": "cosine"},
                )
                next_seq = await asyncio.to_thread(collection.count)
            except Exception as e:
                logger.error(f"Cannot open ChromaDB collection '{self._collection_name}': {e}")
                raise StoreUnavailableError(f"Vector store unavailable: {e}") from e
            self._next_seq = next_seq
            self._collection = collection

    async def add(self, chunks: List[Chunk]) -> List[str]:
        if not chunks:
            return []
        check_dimensions(chunks, self._dimension)

        async with self._lock:
            await self._ensure_collection()
            seq0 = self._next_seq or 0
            ids = [str(uuid.uuid4()) for _ in chunks]
            metadatas: List[Dict[str, Any]] = [
                {**chunk.metadata, self.SEQ_KEY: seq0 + i} for i, chunk in enumerate(chunks)
            ]
            try:
                await asyncio.to_thread(
                    self._collection.add,
                    ids=ids,
                    documents=[c.content for c in chunks],
                    embeddings=[list(c.embedding) for c in chunks],
                    metadatas=metadatas,
                )
            except Exception as e:
                logger.error(f"Failed to add chunks to ChromaDB: {e}")
                raise StoreUnavailableError(f"Vector store unavailable: {e}") from e
            self._next_seq = seq0 + len(chunks)

        return ids

    async def search(self, query_embedding: List[float], top_k: int) -> List[Chunk]:
        if top_k < 0:
            raise ValueError(f"top_k must be >= 0, got {top_k}")
        if len(query_embedding) != self._dimension:
            raise ValueError(
                f"Query embedding dimension {len(query_embedding)}, expected {self._dimension}"
            )
        await self._ensure_collection()

        try:
            total = await asyncio.to_thread(self._collection.count)
            if top_k == 0 or total == 0:
                return []
            results = await asyncio.to_thread(
                self._collection.query,
                query_embeddings=[list(query_embedding)],
                n_results=min(top_k, total),
                include=['metadatas', 'documents', 'distances', 'embeddings'],
            )
        except Exception as e:
            logger.error(f"Search failed in ChromaDB: {e}")
            raise StoreUnavailableError(f"Vector store unavailable: {e}") from e

        ids = results['ids'][0] if results.get('ids') else []
        rows = []
        for i, chunk_id in enumerate(ids):
            metadata = dict(results['metadatas'][0][i] or {})
            seq = metadata.pop(self.SEQ_KEY, i)
            embeddings = results.get('embeddings')
            embedding = embeddings[0][i] if embeddings is not None else []
            chunk = Chunk(
                id=chunk_id,
                content=results['documents'][0][i],
                embedding=tuple(float(x) for x in embedding),
                metadata={k: str(v) for k, v in metadata.items()},
            )
            rows.append((float(results['distances'][0][i]), seq, chunk))

        rows.sort(key=lambda row: (row[0], row[1]))
        return [chunk for _, _, chunk in rows[:top_k]]

    async def count(self) -> int:
        await self._ensure_collection()
        try:
            return await asyncio.to_thread(self._collection.count)
        except Exception as e:
            logger.error(f"Failed to get count: {e}")
            raise StoreUnavailableError(f"Vector store unavailable: {e}") from e

    async def clear(self) -> int:
        async with self._lock:
            removed = await self.count()
            try:
                await asyncio.to_thread(self._client.delete_collection, name=self._collection_name)
            except Exception as e:
                logger.error(f"Failed to clear collection: {e}")
                raise StoreUnavailableError(f"Vector store unavailable: {e}") from e
            self._collection = None
            self._next_seq = None
        return removed

    def __repr__(self) -> str:
        return f"ChromaDBVectorStore(collection={self._collection_name!r})"
