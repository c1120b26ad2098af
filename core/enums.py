# core/enums.py
"""Shared enumerations used across the application."""
from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories reported by ingest/ask."""
    VALIDATION = "VALIDATION"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    EMBEDDING_FAILURE = "EMBEDDING_FAILURE"
    GENERATION_FAILURE = "GENERATION_FAILURE"
    NO_RESULT = "NO_RESULT"
    INGESTION_FAILURE = "INGESTION_FAILURE"


class VectorStoreType(str, Enum):
    """Supported vector store backends."""
    MEMORY = "memory"
    CHROMADB = "chromadb"
    FAISS = "faiss"

    @staticmethod
    def from_string(value: str) -> 'VectorStoreType':
        try:
            return VectorStoreType(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown vector store type: {value}") from None


class EmbeddingProvider(str, Enum):
    """Supported embedding backends."""
    OLLAMA = "ollama"
    SENTENCE_TRANSFORMERS = "sentence-transformers"

    @staticmethod
    def from_string(value: str) -> 'EmbeddingProvider':
        try:
            return EmbeddingProvider(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown embedding provider: {value}") from None
