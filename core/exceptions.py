# core/exceptions.py
"""Exception taxonomy for ingestion and retrieval"""
from typing import Optional

from core.enums import ErrorKind


class RAGError(Exception):
    """Base error; every subclass carries the ErrorKind it reports."""

    kind: ErrorKind = ErrorKind.GENERATION_FAILURE

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self):
        # Format used for logging
        return f"[{self.kind.value}] {self.message}"


class ValidationError(RAGError):
    """Blank or malformed input"""
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class StoreUnavailableError(RAGError):
    """Vector store cannot be reached or rejected the operation"""
    kind = ErrorKind.STORE_UNAVAILABLE


class EmbeddingError(RAGError):
    """Embedding provider unreachable, erroring or returning unusable vectors"""
    kind = ErrorKind.EMBEDDING_FAILURE


class GenerationError(RAGError):
    """Generation provider unreachable or erroring"""
    kind = ErrorKind.GENERATION_FAILURE


class NoResultError(RAGError):
    """Generation provider answered with nothing usable"""
    kind = ErrorKind.NO_RESULT


class IngestionError(RAGError):
    """Ingestion aborted because embedding or storage failed"""
    kind = ErrorKind.INGESTION_FAILURE

    def __init__(self, message: str, cause: RAGError):
        self.cause = cause
        super().__init__(message)

    @property
    def cause_kind(self) -> ErrorKind:
        return self.cause.kind
