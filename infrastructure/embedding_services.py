# infrastructure/embedding_services.py
"""Embedding providers: Ollama over HTTP, sentence-transformers in process"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import numpy as np
import requests

from config import settings
from core.exceptions import EmbeddingError
from core.interfaces import IEmbeddingService

logger = logging.getLogger(settings.LOGGER_NAME)


class _DimensionCheckedEmbedding(IEmbeddingService):
    """Shared validation: one vector per text, each of exactly ``dimension`` floats"""

    def __init__(self, model_name: str, dimension: int):
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._model_name = model_name
        self.dimension = dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    def _check_vectors(self, vectors: Any, expected: int) -> List[List[float]]:
        if not isinstance(vectors, list) or len(vectors) != expected:
            got = len(vectors) if isinstance(vectors, list) else type(vectors).__name__
            raise EmbeddingError(
                f"Embedding model '{self._model_name}' returned {got} vectors for {expected} texts"
            )
        checked = []
        for vector in vectors:
            if not isinstance(vector, (list, tuple)):
                raise EmbeddingError(
                    f"Embedding model '{self._model_name}' returned a non-vector: {type(vector).__name__}"
                )
            if len(vector) != self.dimension:
                raise EmbeddingError(
                    f"Embedding model '{self._model_name}' returned a vector of dimension "
                    f"{len(vector)}, expected {self.dimension}"
                )
            try:
                checked.append([float(x) for x in vector])
            except (TypeError, ValueError) as e:
                raise EmbeddingError(
                    f"Embedding model '{self._model_name}' returned a non-numeric vector"
                ) from e
        return checked

    async def generate_query_embedding(self, query: str) -> List[float]:
        vectors = await self.generate_embeddings([query])
        return vectors[0]


class OllamaEmbedding(_DimensionCheckedEmbedding):
    """Embeddings from a local Ollama server (``/api/embed``)."""

    def __init__(
        self,
        base_url: str,
        model_name: str = "nomic-embed-text",
        dimension: int = 768,
        batch_size: int = 32,
        timeout: int = settings.REQUEST_TIMEOUT,
    ):
        super().__init__(model_name, dimension)
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.base_url = base_url.rstrip('/')
        self.batch_size = batch_size
        self.timeout = timeout

    def _post_embed(self, texts: List[str]) -> List[List[float]]:
        try:
            response = requests.post(
                f'{self.base_url}/api/embed',
                json={'model': self._model_name, 'input': texts},
                timeout=self.timeout
            )
            response.raise_for_status()
            result: Dict[str, Any] = response.json()
        except requests.exceptions.Timeout as e:
            logger.error(f"Embedding request timed out after {self.timeout} seconds.")
            raise EmbeddingError("Embedding request timed out") from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Cannot connect to embedding service at {self.base_url}. Is Ollama running?")
            raise EmbeddingError("Cannot connect to embedding service") from e
        except requests.exceptions.HTTPError as e:
            logger.error(f"Embedding service returned an error: {e.response.status_code} {e.response.text}")
            raise EmbeddingError(f"Embedding error: {e.response.status_code}") from e
        except ValueError as e:
            logger.error(f"Embedding service returned invalid JSON: {e}")
            raise EmbeddingError("Malformed embedding response") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Embedding request failed: {e}")
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        if not isinstance(result, dict):
            logger.error(f"Embedding service returned {type(result).__name__} instead of an object.")
            raise EmbeddingError("Malformed embedding response")
        return self._check_vectors(result.get('embeddings'), len(texts))

    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        vectors: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]
            vectors.extend(await asyncio.to_thread(self._post_embed, batch))
        logger.debug(f"Embedded {len(texts)} texts with '{self._model_name}'.")
        return vectors

    def __repr__(self) -> str:
        return f"OllamaEmbedding(model={self._model_name!r}, base_url={self.base_url!r})"


class SentenceTransformerEmbedding(_DimensionCheckedEmbedding):
    """
    Local sentence-transformers model with L2 normalization (unit vectors).

    With unit vectors cosine similarity equals the dot product, which is what
    the FAISS inner-product index relies on.
    """

    _models: Dict[str, Any] = {}  # model_name -> SentenceTransformer, loaded once

    def __init__(self, model_name: str, dimension: int, model: Optional[Any] = None):
        super().__init__(model_name, dimension)
        if model is not None:
            self.model = model
        else:
            self.model = self._load(model_name)

    @classmethod
    def _load(cls, model_name: str) -> Any:
        if model_name in cls._models:
            return cls._models[model_name]

        from sentence_transformers import SentenceTransformer

        try:
            logger.info(f"Attempting to load model {model_name} from local cache...")
            model = SentenceTransformer(model_name, local_files_only=True)
        except OSError as e:
            logger.warning(
                f"Model {model_name} not found in cache. Attempting online download. "
                f"This may take a few minutes. Error: {e}"
            )
            model = SentenceTransformer(model_name)
        logger.info(f"Successfully loaded {model_name}.")
        cls._models[model_name] = model
        return model

    @staticmethod
    def _l2_normalize(arr: np.ndarray) -> np.ndarray:
        norms = np.linalg.norm(arr, axis=1, keepdims=True)
        norms[norms == 0] = 1e-12  # Avoid division by zero
        return arr / norms

    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        try:
            raw = await asyncio.to_thread(self.model.encode, texts, convert_to_tensor=False)
        except Exception as e:
            logger.error(f"Local embedding model '{self._model_name}' failed: {e}", exc_info=True)
            raise EmbeddingError(f"Embedding model failed: {e}") from e

        normalized = self._l2_normalize(np.asarray(raw, dtype="float32").reshape(len(texts), -1))
        return self._check_vectors(normalized.tolist(), len(texts))

    def __repr__(self) -> str:
        return f"SentenceTransformerEmbedding(model={self._model_name!r})"
