# tests/test_config.py
"""Settings, logging setup and service wiring."""
import logging
from logging.handlers import RotatingFileHandler

import pytest

from conftest import FakeEmbeddingService, FakeGenerationService, words
from config import Settings
from core.domain import RagOptions
from core.enums import EmbeddingProvider, VectorStoreType
from infrastructure.embedding_services import OllamaEmbedding
from infrastructure.faiss_store import FAISSVectorStore
from infrastructure.vector_stores import InMemoryVectorStore
from services.factory import (
    build_rag_service,
    get_embedding_service,
    get_generation_service,
    get_vector_store,
)
from services.logger_config import setup_logging
from services.llm_service import OllamaChatService


class TestRagOptions:
    @pytest.mark.parametrize("kwargs", [
        {"chunk_size": 0},
        {"chunk_overlap": -1},
        {"chunk_size": 100, "chunk_overlap": 100},
        {"top_k": -1},
        {"max_num_chunks": 0},
        {"preview_length": 0},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            RagOptions(**kwargs)

    def test_zero_top_k_allowed(self):
        assert RagOptions(top_k=0).top_k == 0


class TestSettings:
    def test_defaults(self):
        config = Settings(_env_file=None)
        assert config.rag_options() == RagOptions()
        assert config.VECTOR_STORE_TYPE == "memory"
        assert config.EMBEDDING_PROVIDER == "ollama"
        assert config.LOG_FILE_PATH.endswith("rag_demo.log")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CHUNK_SIZE", "200")
        monkeypatch.setenv("CHUNK_OVERLAP", "20")
        monkeypatch.setenv("TOP_K", "3")
        config = Settings(_env_file=None)
        assert config.rag_options() == RagOptions(chunk_size=200, chunk_overlap=20, top_k=3)

    def test_invalid_combination_surfaces_on_rag_options(self):
        config = Settings(_env_file=None, CHUNK_SIZE=50, CHUNK_OVERLAP=80)
        with pytest.raises(ValueError):
            config.rag_options()


class TestEnums:
    def test_store_type_from_string(self):
        assert VectorStoreType.from_string(" FAISS ") == VectorStoreType.FAISS

    def test_provider_from_string(self):
        assert EmbeddingProvider.from_string("sentence-transformers") == EmbeddingProvider.SENTENCE_TRANSFORMERS

    def test_unknown_values(self):
        with pytest.raises(ValueError, match="pgvector"):
            VectorStoreType.from_string("pgvector")
        with pytest.raises(ValueError):
            EmbeddingProvider.from_string("openai")


class TestLogging:
    def test_file_and_console_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        config = Settings(_env_file=None, LOGGER_NAME="rag_demo_test", LOG_FILE_PATH=str(log_file), LOG_LEVEL="debug")

        logger = setup_logging(config)

        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
        assert log_file.exists()
        assert "Logging configured successfully." in log_file.read_text()

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path):
        config = Settings(_env_file=None, LOGGER_NAME="rag_demo_test", LOG_FILE_PATH=str(tmp_path / "app.log"))
        setup_logging(config)
        logger = setup_logging(config)
        assert len(logger.handlers) == 2

    def test_unknown_level_falls_back_to_info(self, tmp_path):
        config = Settings(_env_file=None, LOGGER_NAME="rag_demo_test", LOG_FILE_PATH=str(tmp_path / "app.log"), LOG_LEVEL="chatty")
        assert setup_logging(config).level == logging.INFO


class TestFactory:
    def test_default_components(self):
        config = Settings(_env_file=None)
        assert isinstance(get_vector_store(config), InMemoryVectorStore)
        embedding = get_embedding_service(config)
        assert isinstance(embedding, OllamaEmbedding)
        assert embedding.model_name == "nomic-embed-text"
        assert embedding.dimension == 768
        generation = get_generation_service(config)
        assert isinstance(generation, OllamaChatService)
        assert generation.model_name == "llama3.2"

    def test_faiss_store(self, tmp_path):
        config = Settings(_env_file=None, VECTOR_STORE_TYPE="faiss", VECTOR_DB_PATH=str(tmp_path), EMBEDDING_DIMENSION=8)
        store = get_vector_store(config)
        assert isinstance(store, FAISSVectorStore)
        assert store.dimension == 8

    def test_unknown_store(self):
        with pytest.raises(ValueError):
            get_vector_store(Settings(_env_file=None, VECTOR_STORE_TYPE="pgvector"))

    async def test_build_with_injected_collaborators(self):
        config = Settings(_env_file=None, CHUNK_SIZE=100, CHUNK_OVERLAP=10)
        service = build_rag_service(
            config,
            vector_store=InMemoryVectorStore(32),
            embedding_service=FakeEmbeddingService(),
            generation_service=FakeGenerationService(),
        )
        result = await service.ingest(words(250))
        assert result.value == 3
        status = await service.get_status()
        assert status.llm_model == "fake-llm"
