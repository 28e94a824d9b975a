"""
Chunk model for note text segments.

Chunks are the unit of embedding: each is a contiguous span of one note's
text, tagged with its position so sequential edges can be rebuilt later.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ChunkingMethod(str, Enum):
    """Strategies available for splitting note text."""

    ORIGINAL = "original"  # Paragraph-aware packing (default)
    BASIC = "basic"  # Fixed-size character windows
    SENTENCES = "sentences"  # Sentence packing up to a token budget
    SEMANTIC = "semantic"  # Embedding-similarity sentence grouping


class SemanticChunkingOptions(BaseModel):
    """Tuning knobs for semantic chunking; unset fields fall back to configuration."""

    model_config = {"extra": "ignore"}

    max_token_size: int | None = Field(default=None, gt=0)
    similarity_threshold: float | None = Field(default=None, ge=-1.0, le=1.0)
    combine_chunks: bool | None = None
    min_chunk_tokens: int | None = Field(default=None, ge=0)


class Chunk(BaseModel):
    """
    Contiguous span of a note's text.

    Chunks are never mutated: re-chunking a note produces a fresh list that
    replaces every previous chunk of that note.
    """

    note_id: str = Field(..., description="Parent note ID")
    index: int = Field(..., ge=0, description="Zero-based sequence index within the note")
    text: str = Field(..., description="Raw chunk text")
    token_count: int = Field(default=0, ge=0, description="Token estimate")
    method: ChunkingMethod = Field(default=ChunkingMethod.ORIGINAL)
    metadata: dict[str, Any] = Field(default_factory=dict, description="Boundary metadata")

    @property
    def char_count(self) -> int:
        """Number of characters in the chunk."""
        return len(self.text)

    def node_metadata(self) -> dict[str, Any]:
        """Metadata carried onto the graph node built from this chunk."""
        return {
            **self.metadata,
            "chunk_index": self.index,
            "token_count": self.token_count,
        }
