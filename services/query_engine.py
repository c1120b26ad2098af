# services/query_engine.py
"""
Retrieval-augmented answering.

ask(question):
    1. embed the question
    2. take the top_k nearest chunks from the vector store
    3. build the prompt: system instruction + context block + question
    4. generate
    5. answer text + one preview per retrieved chunk, in retrieval order

The retrieval order is never changed after step 2, so sources[0] is always
the closest chunk.
"""
import logging
from typing import List

from config import settings
from core.domain import ChatResponse, Chunk, Prompt, RagOptions
from core.exceptions import NoResultError
from core.interfaces import IEmbeddingService, IGenerationService, IVectorStore

logger = logging.getLogger(settings.LOGGER_NAME)

CONTEXT_DELIMITER = "---------------------"
CONTEXT_SEPARATOR = "\n\n"

USER_PROMPT_TEMPLATE = """{question}

Context information is below, surrounded by {delimiter}

{delimiter}
{context}
{delimiter}

Given the context and not prior knowledge, reply to the user comment.
If the answer is not in the context, inform the user that you can't answer the question."""


def truncate_preview(text: str, limit: int = 100) -> str:
    """First ``limit`` characters plus "..." when text is longer than ``limit``."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def build_context(chunks: List[Chunk]) -> str:
    return CONTEXT_SEPARATOR.join(chunk.content for chunk in chunks)


def build_prompt(system_prompt: str, question: str, chunks: List[Chunk]) -> Prompt:
    user = USER_PROMPT_TEMPLATE.format(
        question=question,
        delimiter=CONTEXT_DELIMITER,
        context=build_context(chunks),
    )
    return Prompt(system=system_prompt, user=user)


class QueryEngine:
    """Embeds, retrieves, prompts and shapes the response for one question"""

    def __init__(
        self,
        embedding_service: IEmbeddingService,
        vector_store: IVectorStore,
        generation_service: IGenerationService,
        options: RagOptions,
        system_prompt: str = settings.SYSTEM_PROMPT,
    ):
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.generation_service = generation_service
        self.options = options
        self.system_prompt = system_prompt

    async def retrieve(self, question: str) -> List[Chunk]:
        """Steps 1-2: nearest chunks, most similar first"""
        query_embedding = await self.embedding_service.generate_query_embedding(question)
        return await self.vector_store.search(query_embedding, self.options.top_k)

    async def ask(self, question: str) -> ChatResponse:
        """
        Answer ``question`` from stored context.

        Raises:
            EmbeddingError: question could not be embedded
            StoreUnavailableError: vector store unreachable
            GenerationError: chat model unreachable or erroring
            NoResultError: chat model returned nothing usable
        """
        chunks = await self.retrieve(question)
        logger.info(f"Retrieved {len(chunks)} chunks (top_k={self.options.top_k}).")

        prompt = build_prompt(self.system_prompt, question, chunks)
        result = await self.generation_service.generate(prompt, chunks)
        if result is None or not result.text or not result.text.strip():
            logger.warning("Can't get chat response")
            raise NoResultError("Can't get chat response")

        sources = [
            truncate_preview(chunk.content, self.options.preview_length)
            for chunk in chunks
        ]
        return ChatResponse(answer=result.text, sources=sources)

    def __repr__(self) -> str:
        return (
            f"QueryEngine(store={self.vector_store!r}, "
            f"model={self.generation_service.model_name!r}, top_k={self.options.top_k})"
        )
