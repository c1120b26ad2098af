# core/domain.py
"""Domain models for the RAG system"""
from dataclasses import dataclass, field, replace
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class RagOptions:
    """Chunking and retrieval configuration, fixed for the lifetime of a service."""
    chunk_size: int = 500
    chunk_overlap: int = 100
    top_k: int = 5
    max_num_chunks: int = 10000
    preview_length: int = 100

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size), got {self.chunk_overlap} "
                f"with chunk_size {self.chunk_size}"
            )
        if self.top_k < 0:
            raise ValueError(f"top_k must be >= 0, got {self.top_k}")
        if self.max_num_chunks <= 0:
            raise ValueError(f"max_num_chunks must be positive, got {self.max_num_chunks}")
        if self.preview_length <= 0:
            raise ValueError(f"preview_length must be positive, got {self.preview_length}")


@dataclass(frozen=True)
class Document:
    """Ingestion input; never persisted itself"""
    content: str


@dataclass(frozen=True)
class Chunk:
    """A span of a document together with its embedding.

    ``id`` is empty until the vector store assigns one on ``add``.
    """
    content: str
    embedding: Tuple[float, ...] = ()
    metadata: Dict[str, str] = field(default_factory=dict)
    id: str = ""

    def with_embedding(self, embedding: List[float]) -> "Chunk":
        return replace(self, embedding=tuple(float(x) for x in embedding))

    def with_id(self, chunk_id: str) -> "Chunk":
        return replace(self, id=chunk_id)


@dataclass(frozen=True)
class Prompt:
    """What the generation provider receives"""
    system: str
    user: str


@dataclass(frozen=True)
class GenerationResult:
    """Output of the generation provider"""
    text: str
    used_context: Tuple[Chunk, ...] = ()


@dataclass(frozen=True)
class ChatResponse:
    """Answer plus truncated previews of the retrieved chunks, in rank order"""
    answer: str
    sources: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ServiceStatus:
    chunks_available: int
    ready_for_queries: bool
    vector_store: str
    embedding_model: str
    llm_model: str
