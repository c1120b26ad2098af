# tests/conftest.py
"""
Pytest configuration and shared fakes.

Configures:
- pytest-asyncio runs in auto mode (see pyproject.toml)
- deterministic embedding / generation fakes so no Ollama is needed
"""
import re
import zlib
from typing import List, Optional

import pytest

from core.domain import Chunk, GenerationResult, Prompt, RagOptions
from core.exceptions import EmbeddingError, GenerationError, StoreUnavailableError
from core.interfaces import IEmbeddingService, IGenerationService, IVectorStore
from infrastructure.vector_stores import InMemoryVectorStore
from services.ingestion_service import DocumentIngestor
from services.query_engine import QueryEngine
from services.rag_service import RAGService
from services.text_chunker import TokenTextChunker

DIMENSION = 32
_WORD_RE = re.compile(r"[a-z0-9]+")


def bag_of_words(text: str, dimension: int = DIMENSION) -> List[float]:
    """Hash each lowercase word into a bucket; texts sharing words point the same way."""
    vector = [0.0] * dimension
    for word in _WORD_RE.findall(text.lower()):
        vector[zlib.crc32(word.encode()) % dimension] += 1.0
    return vector


class FakeEmbeddingService(IEmbeddingService):
    def __init__(self, dimension: int = DIMENSION, fail: bool = False):
        self.dimension = dimension
        self.fail = fail
        self.calls: List[List[str]] = []

    @property
    def model_name(self) -> str:
        return "fake-embed"

    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.fail:
            raise EmbeddingError("Cannot connect to embedding service")
        return [bag_of_words(t, self.dimension) for t in texts]

    async def generate_query_embedding(self, query: str) -> List[float]:
        vectors = await self.generate_embeddings([query])
        return vectors[0]


class FakeGenerationService(IGenerationService):
    def __init__(self, answer: Optional[str] = "Spring Boot is a Java framework.", error: Optional[Exception] = None):
        self.answer = answer
        self.error = error
        self.prompts: List[Prompt] = []
        self.contexts: List[List[Chunk]] = []

    @property
    def model_name(self) -> str:
        return "fake-llm"

    async def generate(self, prompt: Prompt, context: List[Chunk]) -> GenerationResult:
        self.prompts.append(prompt)
        self.contexts.append(list(context))
        if self.error is not None:
            raise self.error
        return GenerationResult(text=self.answer or "", used_context=tuple(context))


class UnreachableVectorStore(IVectorStore):
    """Every call fails the way a dead database connection would"""

    @property
    def dimension(self) -> int:
        return DIMENSION

    async def add(self, chunks: List[Chunk]) -> List[str]:
        raise StoreUnavailableError("Connection refused")

    async def search(self, query_embedding: List[float], top_k: int) -> List[Chunk]:
        raise StoreUnavailableError("Connection refused")

    async def count(self) -> int:
        raise StoreUnavailableError("Connection refused")

    async def clear(self) -> int:
        raise StoreUnavailableError("Connection refused")


def make_service(
    store: Optional[IVectorStore] = None,
    embedder: Optional[IEmbeddingService] = None,
    generator: Optional[IGenerationService] = None,
    options: Optional[RagOptions] = None,
) -> RAGService:
    options = options or RagOptions()
    store = store or InMemoryVectorStore(DIMENSION)
    embedder = embedder or FakeEmbeddingService()
    generator = generator or FakeGenerationService()
    ingestor = DocumentIngestor(TokenTextChunker(options), embedder, store)
    engine = QueryEngine(embedder, store, generator, options, system_prompt="Answer from context.")
    return RAGService(ingestor, engine, store)


def words(count: int, prefix: str = "w") -> str:
    return " ".join(f"{prefix}{i}" for i in range(count))


@pytest.fixture
def store():
    return InMemoryVectorStore(DIMENSION)


@pytest.fixture
def embedder():
    return FakeEmbeddingService()


@pytest.fixture
def generator():
    return FakeGenerationService()


@pytest.fixture
def rag_service(store, embedder, generator):
    return make_service(store=store, embedder=embedder, generator=generator)


@pytest.fixture
def unreachable_store():
    return UnreachableVectorStore()


@pytest.fixture
def generation_error():
    return GenerationError("Cannot connect to LLM service")


@pytest.fixture
def service_factory():
    return make_service


@pytest.fixture
def make_words():
    return words
