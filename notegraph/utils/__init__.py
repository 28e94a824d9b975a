"""Utility modules for NoteGraph."""

from notegraph.utils.exceptions import (
    ChunkingError,
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
    GraphError,
    NotFoundError,
    NoteGraphError,
    ServiceStateError,
    StoreError,
    ValidationError,
    VectorIndexError,
    VectorStoreError,
)
from notegraph.utils.id_generator import (
    generate_chunk_id,
    generate_request_id,
    generate_vector_path,
    slugify,
)
from notegraph.utils.logger import get_logger, setup_logging
from notegraph.utils.text import make_snippet, normalize_whitespace, preprocess_text

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # ID Generators
    "generate_chunk_id",
    "generate_request_id",
    "generate_vector_path",
    "slugify",
    # Text helpers
    "preprocess_text",
    "normalize_whitespace",
    "make_snippet",
    # Exceptions
    "NoteGraphError",
    "StoreError",
    "VectorStoreError",
    "VectorIndexError",
    "GraphError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "EmbeddingError",
    "DimensionMismatchError",
    "ChunkingError",
    "ServiceStateError",
]
