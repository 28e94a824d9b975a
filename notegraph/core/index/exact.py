"""
Brute-force cosine index for small corpora and tests.
"""

import numpy as np

from notegraph.core.index.base import VectorIndex
from notegraph.utils.exceptions import VectorIndexError


class ExactIndex(VectorIndex):
    """Exact nearest-neighbor search over all stored vectors with numpy."""

    def __init__(self, dimension: int):
        if dimension <= 0:
            raise VectorIndexError(f"Invalid index dimension: {dimension}")
        super().__init__(dimension)
        self._vectors: dict[str, np.ndarray] = {}

    def insert(self, id: str, vector: list[float]) -> None:
        if len(vector) != self.dimension:
            raise VectorIndexError(
                f"Vector length {len(vector)} does not match index dimension {self.dimension}",
                {"id": id},
            )
        self._vectors[id] = np.asarray(vector, dtype=np.float64)

    def query(self, vector: list[float], k: int) -> list[tuple[str, float]]:
        k = min(k, len(self))
        if k <= 0:
            return []

        ids = list(self._vectors)
        matrix = np.stack([self._vectors[i] for i in ids])
        query = np.asarray(vector, dtype=np.float64)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        similarities = np.divide(
            matrix @ query, norms, out=np.zeros(len(ids)), where=norms > 0
        )
        distances = 1.0 - similarities

        order = np.argsort(distances, kind="stable")[:k]
        return [(ids[i], float(distances[i])) for i in order]

    def clear(self) -> None:
        self._vectors.clear()

    def __len__(self) -> int:
        return len(self._vectors)
