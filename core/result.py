# core/result.py
"""Tagged result returned by the service façade instead of raising"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from core.enums import ErrorKind
from core.exceptions import IngestionError, RAGError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either ``value`` (ok) or ``error_kind`` + ``message`` (failed).

    ``cause_kind`` is only set for INGESTION_FAILURE and names the collaborator
    that broke (EMBEDDING_FAILURE or STORE_UNAVAILABLE).
    """
    value: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    cause_kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    def unwrap(self) -> T:
        if not self.ok:
            raise RuntimeError(f"unwrap() on failed result: [{self.error_kind}] {self.message}")
        return self.value  # type: ignore[return-value]

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: RAGError) -> "Result[T]":
        cause_kind = error.cause_kind if isinstance(error, IngestionError) else None
        return cls(error_kind=error.kind, message=error.message, cause_kind=cause_kind)
