"""
Base interface for persisted vector storage.

A store instance is bound to one vector path (namespace) and one
dimension. Namespaces belonging to other providers are never touched.
"""

from abc import ABC, abstractmethod
from typing import Any

from notegraph.models.vector import StoredVector, VectorSearchHit
from notegraph.utils.exceptions import ValidationError


class VectorStore(ABC):
    """Abstract base class for vector storage implementations."""

    def __init__(self, vector_path: str, dimension: int):
        """
        Args:
            vector_path: Namespace the store reads and writes
            dimension: Vector length accepted by this namespace
        """
        self.vector_path = vector_path
        self.dimension = dimension

    def _validate(self, id: str, vector: list[float]) -> None:
        """
        Check an id and vector before writing.

        Raises:
            ValidationError: If the id is empty or the vector has the wrong length
        """
        if not id or not id.strip():
            raise ValidationError("Vector ID cannot be empty")
        if len(vector) != self.dimension:
            raise ValidationError(
                f"Vector length {len(vector)} does not match store dimension {self.dimension}",
                {"id": id, "expected": self.dimension, "actual": len(vector)},
            )

    @abstractmethod
    async def initialize(self) -> None:
        """
        Open the store and create its schema/collection.

        Raises:
            VectorStoreError: If initialization fails
        """
        pass

    @abstractmethod
    async def upsert_embedding(
        self,
        id: str,
        text: str,
        vector: list[float],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Store or replace one vector; upserting the same id twice leaves one record.

        Raises:
            ValidationError: If the id or vector is invalid
            VectorStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_embedding(self, id: str) -> None:
        """
        Delete one vector; unknown ids are ignored.

        Raises:
            VectorStoreError: If the delete fails
        """
        pass

    @abstractmethod
    async def search_by_embedding(
        self, vector: list[float], top_k: int = 10
    ) -> list[VectorSearchHit]:
        """
        Find the most similar stored vectors.

        Returns:
            Hits ranked by cosine similarity, highest first
        """
        pass

    @abstractmethod
    async def get_all(self) -> list[StoredVector]:
        """Every record in this namespace."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of records in this namespace."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Delete every record in this namespace."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the underlying connection."""
        pass
