# services/factory.py
"""
Explicit composition of the RAG service.

build_rag_service() constructs every component in dependency order and passes
collaborators through constructors; the FastAPI provider only hands out the
instance created at startup.
"""
from typing import Optional

from fastapi import HTTPException, Request

from config import Settings
from core.domain import RagOptions
from core.enums import EmbeddingProvider, VectorStoreType
from core.interfaces import (
    IEmbeddingService, IGenerationService, IRAGService, IVectorStore
)
from infrastructure.embedding_services import OllamaEmbedding, SentenceTransformerEmbedding
from infrastructure.vector_stores import ChromaDBVectorStore, InMemoryVectorStore
from services.ingestion_service import DocumentIngestor
from services.llm_service import OllamaChatService
from services.query_engine import QueryEngine
from services.rag_service import RAGService
from services.text_chunker import TokenTextChunker


def get_vector_store(config: Settings) -> IVectorStore:
    """Create vector store based on configuration."""
    store_type = VectorStoreType.from_string(config.VECTOR_STORE_TYPE)
    if store_type == VectorStoreType.MEMORY:
        return InMemoryVectorStore(dimension=config.EMBEDDING_DIMENSION)
    if store_type == VectorStoreType.CHROMADB:
        import chromadb
        client = chromadb.PersistentClient(path=config.VECTOR_DB_PATH)
        return ChromaDBVectorStore(
            client,
            dimension=config.EMBEDDING_DIMENSION,
            collection_name=config.COLLECTION_NAME,
        )
    from infrastructure.faiss_store import FAISSVectorStore
    return FAISSVectorStore(dimension=config.EMBEDDING_DIMENSION, index_dir=config.VECTOR_DB_PATH)


def get_embedding_service(config: Settings) -> IEmbeddingService:
    """Create embedding service based on configuration."""
    provider = EmbeddingProvider.from_string(config.EMBEDDING_PROVIDER)
    if provider == EmbeddingProvider.SENTENCE_TRANSFORMERS:
        return SentenceTransformerEmbedding(
            config.EMBEDDING_MODEL_NAME, dimension=config.EMBEDDING_DIMENSION
        )
    return OllamaEmbedding(
        base_url=config.OLLAMA_BASE_URL,
        model_name=config.EMBEDDING_MODEL_NAME,
        dimension=config.EMBEDDING_DIMENSION,
        batch_size=config.EMBEDDING_BATCH_SIZE,
        timeout=config.REQUEST_TIMEOUT,
    )


def get_generation_service(config: Settings) -> IGenerationService:
    return OllamaChatService(
        base_url=config.OLLAMA_BASE_URL,
        model=config.LLM_MODEL_NAME,
        temperature=config.LLM_TEMPERATURE,
        timeout=config.REQUEST_TIMEOUT,
    )


def build_rag_service(
    config: Settings,
    *,
    vector_store: Optional[IVectorStore] = None,
    embedding_service: Optional[IEmbeddingService] = None,
    generation_service: Optional[IGenerationService] = None,
    options: Optional[RagOptions] = None,
) -> RAGService:
    """
    Wire chunker, store, providers, ingestor and query engine.

    Any collaborator can be passed in (tests, alternative backends); the rest
    are built from ``config``.
    """
    options = options or config.rag_options()
    embedding_service = embedding_service or get_embedding_service(config)
    vector_store = vector_store or get_vector_store(config)
    generation_service = generation_service or get_generation_service(config)

    chunker = TokenTextChunker(options)
    ingestor = DocumentIngestor(chunker, embedding_service, vector_store)
    query_engine = QueryEngine(
        embedding_service,
        vector_store,
        generation_service,
        options,
        system_prompt=config.SYSTEM_PROMPT,
    )
    return RAGService(ingestor, query_engine, vector_store)


def get_rag_service(request: Request) -> IRAGService:
    """FastAPI dependency: the service built during application startup."""
    service = getattr(request.app.state, "rag_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="RAG service is not initialized")
    return service
