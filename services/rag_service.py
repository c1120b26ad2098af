# services/rag_service.py
import logging

from config import settings
from core.domain import ChatResponse, Document, ServiceStatus
from core.exceptions import RAGError, ValidationError
from core.interfaces import IRAGService, IVectorStore
from core.result import Result
from services.ingestion_service import DocumentIngestor
from services.query_engine import QueryEngine

logger = logging.getLogger(settings.LOGGER_NAME)


def require_text(value: str, field: str, message: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message, field=field)
    return value


class RAGService(IRAGService):
    """
    Entry point for ingest/ask.

    Collaborator failures come back as a failed Result tagged with their
    ErrorKind; they are logged here and never retried.
    """

    def __init__(
        self,
        ingestor: DocumentIngestor,
        query_engine: QueryEngine,
        vector_store: IVectorStore,
    ):
        self.ingestor = ingestor
        self.query_engine = query_engine
        self.vector_store = vector_store

    async def ingest(self, content: str) -> Result[int]:
        try:
            require_text(content, "content", "Content cannot be blank")
            chunk_count = await self.ingestor.ingest(Document(content=content))
            return Result.success(chunk_count)
        except RAGError as e:
            logger.error(f"Ingest failed: {e}")
            return Result.failure(e)

    async def ask(self, question: str) -> Result[ChatResponse]:
        try:
            require_text(question, "question", "Question cannot be blank")
            response = await self.query_engine.ask(question)
            return Result.success(response)
        except RAGError as e:
            logger.error(f"Ask failed: {e}")
            return Result.failure(e)

    async def get_status(self) -> ServiceStatus:
        chunk_count = await self.vector_store.count()
        return ServiceStatus(
            chunks_available=chunk_count,
            ready_for_queries=chunk_count > 0,
            vector_store=type(self.vector_store).__name__,
            embedding_model=self.query_engine.embedding_service.model_name,
            llm_model=self.query_engine.generation_service.model_name,
        )

    async def clear_all(self) -> Result[int]:
        try:
            removed = await self.vector_store.clear()
        except RAGError as e:
            logger.error(f"Clear failed: {e}")
            return Result.failure(e)
        logger.info(f"Cleared {removed} chunks from the vector store.")
        return Result.success(removed)
