"""
ID generation utilities for NoteGraph.

Provides consistent ID generation for engine entities:
- Chunk nodes: {note_id}_chunk_N (deterministic)
- Vector paths: notes-{provider}-{dimension}d-v1
- Embedding requests: req_xxx
"""

import re
from uuid import uuid4

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def generate_chunk_id(note_id: str, chunk_index: int) -> str:
    """
    Generate Chunk node ID based on the parent note.

    Args:
        note_id: Parent note ID
        chunk_index: Zero-based chunk index

    Returns:
        ID in format "{note_id}_chunk_N"
    """
    return f"{note_id}_chunk_{chunk_index}"


def generate_request_id() -> str:
    """
    Generate unique embedding request ID.

    Returns:
        ID in format "req_xxx" where xxx is 12 hex characters
    """
    return f"req_{uuid4().hex[:12]}"


def slugify(value: str) -> str:
    """Lowercase a value and collapse anything non-alphanumeric into single dashes."""
    slug = _SLUG_PATTERN.sub("-", value.lower()).strip("-")
    return slug or "unknown"


def generate_vector_path(provider_id: str, dimension: int) -> str:
    """
    Build the persisted-vector namespace for a provider and dimension.

    Args:
        provider_id: Stable provider identifier
        dimension: Embedding dimension

    Returns:
        Namespace in format "notes-{provider}-{dimension}d-v1"
    """
    return f"notes-{slugify(provider_id)}-{dimension}d-v1"
