"""
Note text chunking.

Splits note content into ordered chunks ready for embedding. Four
strategies are available:

- original: packs paragraphs up to a character budget
- basic: fixed-size character windows cut at whitespace
- sentences: packs sentences up to a token budget
- semantic: groups consecutive sentences whose embeddings stay close to
  the running chunk centroid

Any failure inside a strategy degrades to basic chunking of the raw string.
"""

import re
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from notegraph.config import ChunkingConfig
from notegraph.core.embeddings.base import Embedder
from notegraph.core.tokenizer import Tokenizer
from notegraph.models.chunk import Chunk, ChunkingMethod, SemanticChunkingOptions
from notegraph.utils.exceptions import ChunkingError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)

# Sentence end (period/question/exclamation followed by whitespace) or a blank line
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+|\n\s*\n")
_PARAGRAPH_BOUNDARY = re.compile(r"\n\s*\n")
_WHITESPACE_CHARS = (" ", "\n", "\t", "\r")


@dataclass
class _SentenceGroup:
    """Consecutive sentences accumulated into one semantic chunk."""

    sentences: list[str] = field(default_factory=list)
    tokens: int = 0
    similarities: list[float] = field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(self.sentences)

    def merge(self, other: "_SentenceGroup") -> "_SentenceGroup":
        return _SentenceGroup(
            sentences=self.sentences + other.sentences,
            tokens=self.tokens + other.tokens,
            similarities=self.similarities + other.similarities,
        )


class TextChunker:
    """
    Split note text into chunks.

    Args:
        config: Chunking configuration (budgets and semantic defaults)
        tokenizer: Token counter used for token budgets
    """

    def __init__(
        self,
        config: ChunkingConfig | None = None,
        tokenizer: Tokenizer | None = None,
    ):
        self.config = config or ChunkingConfig()
        self.tokenizer = tokenizer or Tokenizer()

    async def chunk_note(
        self,
        note_id: str,
        title: str,
        content: Any,
        method: ChunkingMethod | str | None = None,
        options: SemanticChunkingOptions | None = None,
        embedder: Embedder | None = None,
    ) -> list[Chunk]:
        """
        Chunk a note with the requested strategy.

        Args:
            note_id: Parent note ID
            title: Note title (used for logging only)
            content: Note text; non-string content is stringified by the fallback
            method: Chunking strategy (defaults to configuration)
            options: Semantic chunking overrides
            embedder: Embedder for the semantic strategy

        Returns:
            Ordered chunks; empty when the content is empty or whitespace
        """
        if content is None:
            return []

        raw = content if isinstance(content, str) else str(content)
        if not raw.strip():
            return []

        method = ChunkingMethod(method or self.config.method)

        try:
            if not isinstance(content, str):
                raise ChunkingError(
                    f"Unsupported content type {type(content).__name__}",
                    context={"note_id": note_id},
                )

            if method == ChunkingMethod.BASIC:
                chunks = self.chunk_basic(note_id, content)
            elif method == ChunkingMethod.SENTENCES:
                chunks = self.chunk_sentences(note_id, content)
            elif method == ChunkingMethod.SEMANTIC:
                chunks = await self.chunk_semantic(note_id, content, embedder, options)
            else:
                chunks = self.chunk_original(note_id, content)
        except Exception as e:
            logger.warning(
                f"{method.value} chunking failed for note {note_id} ({title!r}), "
                f"falling back to basic: {e}"
            )
            chunks = self.chunk_basic(note_id, raw)

        logger.debug(f"Chunked note {note_id} into {len(chunks)} chunks using {method.value}")
        return chunks

    # ═══════════════════════════════════════════════════════════
    # STRATEGIES
    # ═══════════════════════════════════════════════════════════

    def chunk_basic(self, note_id: str, text: str) -> list[Chunk]:
        """Fixed-size character windows, cut at the last whitespace inside each window."""
        pieces = self._split_windows(text, self.config.max_chunk_chars)
        return self._build_chunks(note_id, pieces, ChunkingMethod.BASIC)

    def chunk_original(self, note_id: str, text: str) -> list[Chunk]:
        """Pack paragraphs up to the character budget; oversized paragraphs become windows."""
        max_chars = self.config.max_chunk_chars
        pieces: list[str] = []
        current: list[str] = []
        current_len = 0

        for paragraph in _PARAGRAPH_BOUNDARY.split(text):
            paragraph = paragraph.strip()
            if not paragraph:
                continue

            if len(paragraph) > max_chars:
                if current:
                    pieces.append("\n\n".join(current))
                    current, current_len = [], 0
                pieces.extend(self._split_windows(paragraph, max_chars))
                continue

            added = len(paragraph) + (2 if current else 0)
            if current and current_len + added > max_chars:
                pieces.append("\n\n".join(current))
                current, current_len = [], 0
                added = len(paragraph)

            current.append(paragraph)
            current_len += added

        if current:
            pieces.append("\n\n".join(current))

        return self._build_chunks(note_id, pieces, ChunkingMethod.ORIGINAL)

    def chunk_sentences(self, note_id: str, text: str) -> list[Chunk]:
        """Pack sentences into chunks up to the token budget."""
        max_tokens = self.config.max_token_size
        pieces: list[str] = []
        counts: list[int] = []
        current: list[str] = []
        current_tokens = 0

        for sentence in self._split_sentences(text, max_tokens):
            tokens = self.tokenizer.count_tokens(sentence)
            if current and current_tokens + tokens > max_tokens:
                pieces.append(" ".join(current))
                counts.append(len(current))
                current, current_tokens = [], 0
            current.append(sentence)
            current_tokens += tokens

        if current:
            pieces.append(" ".join(current))
            counts.append(len(current))

        chunks = self._build_chunks(note_id, pieces, ChunkingMethod.SENTENCES)
        for chunk, count in zip(chunks, counts):
            chunk.metadata["sentence_count"] = count
        return chunks

    async def chunk_semantic(
        self,
        note_id: str,
        text: str,
        embedder: Embedder | None,
        options: SemanticChunkingOptions | None = None,
    ) -> list[Chunk]:
        """
        Group topically coherent sentences into chunks.

        A sentence joins the current chunk while its cosine similarity to the
        chunk centroid is at least the threshold and the token budget holds.
        With combine_chunks, fragments below min_chunk_tokens are merged into a
        neighbour regardless of similarity when the result still fits.

        Raises:
            ChunkingError: If no embedder is available
        """
        if embedder is None:
            raise ChunkingError("Semantic chunking requires an embedder", {"note_id": note_id})

        options = options or SemanticChunkingOptions()
        max_tokens = options.max_token_size or self.config.max_token_size
        threshold = (
            options.similarity_threshold
            if options.similarity_threshold is not None
            else self.config.similarity_threshold
        )
        combine = (
            options.combine_chunks
            if options.combine_chunks is not None
            else self.config.combine_chunks
        )
        min_tokens = (
            options.min_chunk_tokens
            if options.min_chunk_tokens is not None
            else self.config.min_chunk_tokens
        )

        sentences = self._split_sentences(text, max_tokens)
        if len(sentences) <= 1:
            return self._build_chunks(note_id, sentences, ChunkingMethod.SEMANTIC)

        vectors = np.asarray(
            await embedder.generate_embeddings(sentences, is_query=False), dtype=np.float64
        )
        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        vectors = vectors / np.where(norms == 0, 1.0, norms)

        groups: list[_SentenceGroup] = []
        current = _SentenceGroup([sentences[0]], self.tokenizer.count_tokens(sentences[0]))
        centroid = vectors[0].copy()

        for sentence, vector in zip(sentences[1:], vectors[1:]):
            tokens = self.tokenizer.count_tokens(sentence)
            centroid_norm = np.linalg.norm(centroid)
            similarity = float(vector @ centroid / centroid_norm) if centroid_norm else 0.0

            if similarity >= threshold and current.tokens + tokens <= max_tokens:
                current.sentences.append(sentence)
                current.tokens += tokens
                current.similarities.append(similarity)
                centroid += vector
            else:
                groups.append(current)
                current = _SentenceGroup([sentence], tokens)
                centroid = vector.copy()

        groups.append(current)

        if combine:
            groups = self._combine_fragments(groups, min_tokens, max_tokens)

        chunks = self._build_chunks(note_id, [g.text for g in groups], ChunkingMethod.SEMANTIC)
        for chunk, group in zip(chunks, groups):
            chunk.metadata["sentence_count"] = len(group.sentences)
            if group.similarities:
                chunk.metadata["avg_similarity"] = float(np.mean(group.similarities))
        return chunks

    # ═══════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════

    def _build_chunks(
        self, note_id: str, pieces: list[str], method: ChunkingMethod
    ) -> list[Chunk]:
        chunks = []
        for piece in pieces:
            piece = piece.strip()
            if not piece:
                continue
            chunks.append(
                Chunk(
                    note_id=note_id,
                    index=len(chunks),
                    text=piece,
                    token_count=self.tokenizer.count_tokens(piece),
                    method=method,
                )
            )
        return chunks

    @staticmethod
    def _split_windows(text: str, max_chars: int) -> list[str]:
        """Cut text into windows of at most max_chars, preferring whitespace boundaries."""
        pieces = []
        start = 0
        length = len(text)

        while start < length:
            end = min(start + max_chars, length)
            if end < length:
                cut = max(text.rfind(ch, start + 1, end) for ch in _WHITESPACE_CHARS)
                if cut > start:
                    end = cut
            piece = text[start:end].strip()
            if piece:
                pieces.append(piece)
            start = end

        return pieces

    def _split_sentences(self, text: str, max_tokens: int) -> list[str]:
        """Split on sentence boundaries; oversized sentences are split on words."""
        sentences: list[str] = []
        for segment in _SENTENCE_BOUNDARY.split(text):
            segment = segment.strip()
            if not segment:
                continue
            if self.tokenizer.fits(segment, max_tokens):
                sentences.append(segment)
                continue

            # Oversized segment: split on whitespace
            words: list[str] = []
            words_tokens = 0
            for word in segment.split():
                word_tokens = self.tokenizer.count_tokens(word)
                if words and words_tokens + word_tokens > max_tokens:
                    sentences.append(" ".join(words))
                    words, words_tokens = [], 0
                words.append(word)
                words_tokens += word_tokens
            if words:
                sentences.append(" ".join(words))

        return sentences

    @staticmethod
    def _combine_fragments(
        groups: list[_SentenceGroup], min_tokens: int, max_tokens: int
    ) -> list[_SentenceGroup]:
        merged: list[_SentenceGroup] = []
        for group in groups:
            if (
                merged
                and (group.tokens < min_tokens or merged[-1].tokens < min_tokens)
                and merged[-1].tokens + group.tokens <= max_tokens
            ):
                merged[-1] = merged[-1].merge(group)
            else:
                merged.append(group)
        return merged
