# services/text_chunker.py
"""
Token-window chunking on top of langchain's token splitter.

Tokens are whitespace-delimited words. Token ids handed to the splitter are
positions in the text, so decoding a window slices the original text from
the first character of its first token to the last character of its last
token, keeping spacing and line breaks inside a chunk exactly as written.

Window: ``chunk_size`` tokens, advancing ``chunk_size - chunk_overlap`` tokens
per step, ending with the first window that reaches the last token.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from langchain_text_splitters.base import Tokenizer, split_text_on_tokens

from config import settings
from core.domain import RagOptions
from core.interfaces import ITextChunker

logger = logging.getLogger(settings.LOGGER_NAME)

_TOKEN_RE = re.compile(r"\S+")


@dataclass(frozen=True)
class TokenSpan:
    start: int
    end: int


class WordTokenizer:
    """Splits text into whitespace-delimited tokens, keeping character offsets"""

    def tokenize(self, text: str) -> List[TokenSpan]:
        return [TokenSpan(m.start(), m.end()) for m in _TOKEN_RE.finditer(text)]


def check_window(chunk_size: int, chunk_overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if not 0 <= chunk_overlap < chunk_size:
        raise ValueError(
            f"chunk_overlap must be in [0, {chunk_size}), got {chunk_overlap}"
        )


def span_tokenizer(content: str, spans: List[TokenSpan], chunk_size: int, chunk_overlap: int) -> Tokenizer:
    """langchain Tokenizer whose ids index ``spans`` of ``content``."""

    def encode(text: str) -> List[int]:
        return list(range(len(spans)))

    def decode(ids: List[int]) -> str:
        return content[spans[ids[0]].start:spans[ids[-1]].end]

    return Tokenizer(
        chunk_overlap=chunk_overlap,
        tokens_per_chunk=chunk_size,
        decode=decode,
        encode=encode,
    )


def split_text(
    content: str,
    chunk_size: int,
    chunk_overlap: int,
    max_num_chunks: Optional[int] = None,
    tokenizer: Optional[WordTokenizer] = None,
) -> List[str]:
    """Split content into overlapping token windows.

    Blank content gives no chunks; content of at most ``chunk_size`` tokens
    gives exactly one chunk (the content without surrounding whitespace).
    """
    check_window(chunk_size, chunk_overlap)
    spans = (tokenizer or WordTokenizer()).tokenize(content)
    if not spans:
        return []

    chunks = split_text_on_tokens(
        text=content,
        tokenizer=span_tokenizer(content, spans, chunk_size, chunk_overlap),
    )

    if max_num_chunks is not None and len(chunks) > max_num_chunks:
        logger.warning(
            f"Content produced {len(chunks)} chunks; keeping the first {max_num_chunks}."
        )
        chunks = chunks[:max_num_chunks]
    return chunks


class TokenTextChunker(ITextChunker):
    """Chunker bound to a fixed RagOptions"""

    def __init__(self, options: RagOptions, tokenizer: Optional[WordTokenizer] = None):
        self.options = options
        self.tokenizer = tokenizer or WordTokenizer()

    def split(self, content: str) -> List[str]:
        return split_text(
            content,
            self.options.chunk_size,
            self.options.chunk_overlap,
            max_num_chunks=self.options.max_num_chunks,
            tokenizer=self.tokenizer,
        )

    def __repr__(self) -> str:
        return (
            f"TokenTextChunker(chunk_size={self.options.chunk_size}, "
            f"chunk_overlap={self.options.chunk_overlap})"
        )
