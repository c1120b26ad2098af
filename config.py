# config.py
"""Application configuration loaded from environment / .env"""
from pydantic_settings import BaseSettings

from core.domain import RagOptions
from utils.common import get_log_file_path

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions using the documents "
    "provided to you as context. Answer concisely and accurately. "
    "If the context does not contain the answer, say that you don't know "
    "instead of making something up."
)


class Settings(BaseSettings):
    """Application configuration"""

    # Logger configuration
    LOGGER_NAME: str = "rag_demo"
    LOG_FILE_PATH: str = get_log_file_path()
    LOG_LEVEL: str = "INFO"

    # Chunking / retrieval
    CHUNK_SIZE: int = 500
    CHUNK_OVERLAP: int = 100
    TOP_K: int = 5
    MAX_NUM_CHUNKS: int = 10000
    SOURCE_PREVIEW_LENGTH: int = 100

    # Ollama (chat + embeddings)
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    LLM_MODEL_NAME: str = "llama3.2"
    LLM_TEMPERATURE: float = 0.7
    SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT

    # Embedding model
    EMBEDDING_PROVIDER: str = "ollama"  # Options: ollama, sentence-transformers
    EMBEDDING_MODEL_NAME: str = "nomic-embed-text"
    EMBEDDING_DIMENSION: int = 768
    EMBEDDING_BATCH_SIZE: int = 32

    # Vector store
    VECTOR_STORE_TYPE: str = "memory"  # Options: memory, chromadb, faiss
    VECTOR_DB_PATH: str = "./vector_db"
    COLLECTION_NAME: str = "rag_chunks"

    # API settings
    REQUEST_TIMEOUT: int = 60  # seconds

    # App metadata
    APP_TITLE: str = "RAG Demo"
    APP_VERSION: str = "0.1.0"

    def rag_options(self) -> RagOptions:
        """Immutable snapshot of the chunking/retrieval knobs."""
        return RagOptions(
            chunk_size=self.CHUNK_SIZE,
            chunk_overlap=self.CHUNK_OVERLAP,
            top_k=self.TOP_K,
            max_num_chunks=self.MAX_NUM_CHUNKS,
            preview_length=self.SOURCE_PREVIEW_LENGTH,
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
