"""
Base interface for in-memory nearest-neighbor indices.
"""

from abc import ABC, abstractmethod


class VectorIndex(ABC):
    """
    Abstract nearest-neighbor index over string-keyed vectors.

    The index is an acceleration structure only: it holds no data that the
    knowledge graph cannot rebuild, and is cleared and refilled whenever
    node membership changes.
    """

    def __init__(self, dimension: int):
        self.dimension = dimension

    @abstractmethod
    def insert(self, id: str, vector: list[float]) -> None:
        """
        Insert or replace a vector.

        Raises:
            VectorIndexError: If the vector length differs from the index dimension
        """
        pass

    @abstractmethod
    def query(self, vector: list[float], k: int) -> list[tuple[str, float]]:
        """
        Find nearest neighbors.

        Args:
            vector: Query vector
            k: Number of neighbors (clamped to the index size)

        Returns:
            (id, cosine distance) pairs ranked ascending by distance
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every vector."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass
