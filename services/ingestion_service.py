# services/ingestion_service.py
import logging
from typing import List

from config import settings
from core.domain import Chunk, Document
from core.exceptions import EmbeddingError, IngestionError, StoreUnavailableError
from core.interfaces import IEmbeddingService, ITextChunker, IVectorStore

logger = logging.getLogger(settings.LOGGER_NAME)


class DocumentIngestor:
    """Chunk -> embed -> store for a single document.

    Every chunk is embedded before anything is written, so an embedding failure
    never leaves part of the document in the store.
    """

    def __init__(
        self,
        chunker: ITextChunker,
        embedding_service: IEmbeddingService,
        vector_store: IVectorStore,
    ):
        self.chunker = chunker
        self.embedding_service = embedding_service
        self.vector_store = vector_store

    def build_chunks(self, document: Document) -> List[Chunk]:
        texts = self.chunker.split(document.content)
        total = len(texts)
        return [
            Chunk(content=text, metadata={"chunk_index": str(i), "chunk_count": str(total)})
            for i, text in enumerate(texts)
        ]

    async def ingest(self, document: Document) -> int:
        """Returns the number of chunks created.

        Raises:
            IngestionError: embedding or storage failed; ``cause`` holds the
                EmbeddingError / StoreUnavailableError
        """
        logger.info(f"Ingesting document ({len(document.content)} characters).")
        chunks = self.build_chunks(document)
        if not chunks:
            return 0

        try:
            embeddings = await self.embedding_service.generate_embeddings([c.content for c in chunks])
            if len(embeddings) != len(chunks):
                raise EmbeddingError(
                    f"Got {len(embeddings)} embeddings for {len(chunks)} chunks"
                )
            embedded = [chunk.with_embedding(emb) for chunk, emb in zip(chunks, embeddings)]
            await self.vector_store.add(embedded)
        except (EmbeddingError, StoreUnavailableError) as e:
            logger.error(f"Ingestion failed after chunking into {len(chunks)} chunks: {e}")
            raise IngestionError(f"Ingestion failed: {e.message}", cause=e) from e

        logger.info(f"Successfully ingested new context. Chunks size: {len(chunks)}")
        return len(chunks)
