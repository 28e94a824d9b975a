"""
Persisted vector records and their search hits.
"""

from typing import Any

from pydantic import BaseModel, Field


class StoredVector(BaseModel):
    """A persisted (id, text, vector, metadata) record."""

    id: str
    text: str
    vector: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorSearchHit(BaseModel):
    """Nearest-neighbor hit from the persisted vector store."""

    id: str
    text: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)
