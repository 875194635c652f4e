"""
Document chunking implementations.

Takes cleaned RawDocuments and splits them into overlapping, bounded
chunks for embedding. Each chunker implements BaseChunker and is driven
by ChunkingConfig.

Both chunkers use the same sliding window:

    chunk i covers units [i * (size - overlap), i * (size - overlap) + size)

clipped to the end of the document. Every chunk after the first starts
with exactly the last `overlap` units of its predecessor, so a sentence
cut at a boundary still appears whole in one of the two chunks.

Choosing a unit:

    "character"   Default. No tokenizer, fully deterministic, chunk length
                  is exactly what the store's content column holds.

    "token"       Window measured in tiktoken tokens. Use it when chunks
                  must stay under an embedding model's token limit.

Usage:
    from vector_rag.indexing.chunking import get_chunker, split
    from vector_rag.config import ChunkingConfig

    chunker = get_chunker(ChunkingConfig(chunk_size=2048, chunk_overlap=256))
    chunks = chunker.split(documents)

    # Or without a config object
    chunks = split(documents, chunk_size=2048, overlap=256)
"""

from typing import Iterator, Optional, Protocol, Sequence

from vector_rag.base.indexer import BaseChunker
from vector_rag.config import ChunkingConfig, ChunkUnit
from vector_rag.models.document import Chunk, RawDocument
from vector_rag.utils.log import get_logger

logger = get_logger(__name__)


def sliding_windows(length: int, size: int, overlap: int) -> Iterator[tuple[int, int]]:
    """
    Yield (start, end) offsets covering [0, length) with the given overlap.

    A sequence no longer than size yields a single (0, length) window;
    an empty one yields nothing.
    """
    start = 0
    while start < length:
        end = min(start + size, length)
        yield start, end
        if end >= length:
            break
        start = end - overlap


class CharacterChunker(BaseChunker):
    """
    Fixed-size character window with overlap.

    Does not try to break on sentence or word boundaries: the overlap
    already keeps boundary context, and exact offsets keep the output
    reproducible across runs and platforms.
    """

    def split(self, documents: Sequence[RawDocument]) -> list[Chunk]:
        size = self.config.chunk_size
        overlap = self.config.chunk_overlap

        chunks: list[Chunk] = []
        for doc in documents:
            doc_chunks = [
                Chunk(
                    text=doc.text[start:end],
                    overlap_with_predecessor=overlap if index else 0,
                    source=doc.source,
                    title=doc.title,
                    chunk_index=index,
                )
                for index, (start, end) in enumerate(
                    sliding_windows(len(doc.text), size, overlap)
                )
            ]
            logger.debug(
                "document_chunked",
                source=doc.source,
                text_length=len(doc.text),
                chunk_count=len(doc_chunks),
            )
            chunks.extend(doc_chunks)

        logger.info("documents_chunked", documents=len(documents), chunks=len(chunks))
        return chunks


class Encoding(Protocol):
    """The slice of tiktoken.Encoding that TokenChunker needs."""

    def encode(self, text: str) -> list[int]: ...

    def decode_single_token_bytes(self, token: int) -> bytes: ...


def character_boundaries(encoding: Encoding, token_ids: Sequence[int], text: str) -> list[Optional[int]]:
    """
    Character offset of every token boundary in token_ids.

    Entry i is the offset in text where token i starts (the last entry is
    len(text)). Byte-level encodings can split one character over several
    tokens; boundaries inside such a character are None.
    """
    offsets: list[Optional[int]] = [0]
    pending = b""
    chars = 0
    for token in token_ids:
        pending += encoding.decode_single_token_bytes(token)
        try:
            chars += len(pending.decode("utf-8"))
        except UnicodeDecodeError:
            offsets.append(None)
            continue
        pending = b""
        offsets.append(chars)
    offsets[-1] = len(text)
    return offsets


def token_windows(
    boundaries: Sequence[Optional[int]], size: int, overlap: int
) -> Iterator[tuple[int, int]]:
    """
    sliding_windows over tokens, with every edge moved onto a character boundary.

    A window end inside a character moves back to the character's start.
    So does the next window's start, which can make the overlap a little
    longer; if that would stop the window advancing it starts at the
    previous end instead. A single character longer than size tokens gets
    a window of its own.
    """
    length = len(boundaries) - 1
    start = 0
    while start < length:
        end = min(start + size, length)
        while end > start and boundaries[end] is None:
            end -= 1
        if end == start:
            end = start + 1
            while boundaries[end] is None:
                end += 1
        yield start, end
        if end >= length:
            break
        next_start = end - overlap
        while next_start > start and boundaries[next_start] is None:
            next_start -= 1
        start = next_start if next_start > start else end


class TokenChunker(BaseChunker):
    """
    Fixed-size token window with overlap.

    Text is encoded once and windowed over token ids. Window edges are
    kept on character boundaries, so each chunk is an exact slice of the
    document text and never contains a half-decoded character.
    overlap_with_predecessor is reported in characters.

    The tiktoken encoding is loaded from config.encoding_name unless an
    encoding object is passed in.
    """

    def __init__(self, config: ChunkingConfig, encoding: Encoding = None):
        super().__init__(config)
        if encoding is None:
            import tiktoken

            encoding = tiktoken.get_encoding(config.encoding_name)
        self._encoding = encoding

    def split(self, documents: Sequence[RawDocument]) -> list[Chunk]:
        size = self.config.chunk_size
        overlap = self.config.chunk_overlap

        chunks: list[Chunk] = []
        for doc in documents:
            token_ids = self._encoding.encode(doc.text)
            if not token_ids:
                continue
            offsets = character_boundaries(self._encoding, token_ids, doc.text)

            previous_end = 0
            for index, (start, end) in enumerate(token_windows(offsets, size, overlap)):
                char_start, char_end = offsets[start], offsets[end]
                chunks.append(Chunk(
                    text=doc.text[char_start:char_end],
                    overlap_with_predecessor=previous_end - char_start if index else 0,
                    source=doc.source,
                    title=doc.title,
                    chunk_index=index,
                ))
                previous_end = char_end

        logger.info(
            "documents_chunked",
            documents=len(documents),
            chunks=len(chunks),
            unit="token",
        )
        return chunks


# ---------------------------------------------------------------------------
# Factory: pick the right chunker from config
# ---------------------------------------------------------------------------

def get_chunker(config: ChunkingConfig) -> BaseChunker:
    """
    Factory that returns the right chunker based on config.unit.

    Args:
        config: ChunkingConfig with unit, chunk_size and chunk_overlap set.

    Returns:
        A BaseChunker implementation.

    Raises:
        ConfigurationError: the configured window is invalid.
    """
    if config.unit == ChunkUnit.CHARACTER:
        return CharacterChunker(config)

    elif config.unit == ChunkUnit.TOKEN:
        return TokenChunker(config)

    else:
        raise ValueError(
            f"Unknown chunk unit: '{config.unit}'. Supported: 'character', 'token'."
        )


def split(documents: Sequence[RawDocument], chunk_size: int, overlap: int) -> list[Chunk]:
    """
    Character-split documents without building a ChunkingConfig first.

    Raises:
        ConfigurationError: unless 0 <= overlap < chunk_size.
    """
    config = ChunkingConfig(chunk_size=chunk_size, chunk_overlap=overlap)
    return CharacterChunker(config).split(documents)
