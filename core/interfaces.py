# core/interfaces.py
"""Core interfaces for the RAG system"""
from abc import ABC, abstractmethod
from typing import List

from core.domain import ChatResponse, Chunk, GenerationResult, Prompt, ServiceStatus
from core.result import Result

# ============= Vector Store Interface =============
class IVectorStore(ABC):
    """Interface for vector storage operations.

    Implementations raise StoreUnavailableError when the backend cannot be
    reached; nothing is retried here.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Embedding dimension D accepted by this store"""
        pass

    @abstractmethod
    async def add(self, chunks: List[Chunk]) -> List[str]:
        """Append embedded chunks in order; returns the assigned ids"""
        pass

    @abstractmethod
    async def search(self, query_embedding: List[float], top_k: int) -> List[Chunk]:
        """Return at most top_k chunks, most similar first, ties in insertion order"""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Get total number of chunks"""
        pass

    @abstractmethod
    async def clear(self) -> int:
        """Remove every chunk; returns how many were removed"""
        pass

# ============= Embedding Service Interface =============
class IEmbeddingService(ABC):
    """Interface for embedding generation"""

    @property
    @abstractmethod
    def model_name(self) -> str:
        pass

    @abstractmethod
    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Generate one embedding per text, same order"""
        pass

    @abstractmethod
    async def generate_query_embedding(self, query: str) -> List[float]:
        """Generate embedding for search query"""
        pass

# ============= Generation Service Interface =============
class IGenerationService(ABC):
    """Interface for the chat model"""

    @property
    @abstractmethod
    def model_name(self) -> str:
        pass

    @abstractmethod
    async def generate(self, prompt: Prompt, context: List[Chunk]) -> GenerationResult:
        """
        Run the model on the assembled prompt.

        Raises GenerationError when the model cannot be reached and
        NoResultError when it returns nothing usable.
        """
        pass

# ============= Text Chunker Interface =============
class ITextChunker(ABC):
    """Pure text -> chunk texts splitter"""

    @abstractmethod
    def split(self, content: str) -> List[str]:
        pass

# ============= RAG Service Interface =============
class IRAGService(ABC):
    """Entry point used by the HTTP layer"""

    @abstractmethod
    async def ingest(self, content: str) -> Result[int]:
        """Chunk, embed and store content; value is the number of chunks created"""
        pass

    @abstractmethod
    async def ask(self, question: str) -> Result[ChatResponse]:
        """Answer a question from retrieved context"""
        pass

    @abstractmethod
    async def clear_all(self) -> Result[int]:
        """Remove every stored chunk; value is the number removed"""
        pass

    @abstractmethod
    async def get_status(self) -> ServiceStatus:
        pass
