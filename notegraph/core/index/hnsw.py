"""
HNSW index backed by hnswlib.
"""

import hnswlib
import numpy as np

from notegraph.core.index.base import VectorIndex
from notegraph.utils.exceptions import VectorIndexError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class HNSWIndex(VectorIndex):
    """
    Approximate nearest-neighbor index using hnswlib in cosine space.

    hnswlib keys elements by integer labels, so string ids are mapped to
    labels on insert. Capacity grows on demand.
    """

    def __init__(
        self,
        dimension: int,
        m: int = 16,
        ef_construction: int = 200,
        ef_search: int = 50,
        initial_capacity: int = 1024,
    ):
        """
        Initialize HNSW index.

        Args:
            dimension: Vector dimension
            m: Graph connectivity per node
            ef_construction: Build-time candidate list size
            ef_search: Query-time candidate list size (raised to k when smaller)
            initial_capacity: Elements allocated up front
        """
        if dimension <= 0:
            raise VectorIndexError(f"Invalid index dimension: {dimension}")

        super().__init__(dimension)
        self.m = m
        self.ef_construction = ef_construction
        self.ef_search = ef_search
        self.initial_capacity = initial_capacity
        self._reset()

    def _reset(self):
        self._index = hnswlib.Index(space="cosine", dim=self.dimension)
        self._index.init_index(
            max_elements=self.initial_capacity,
            ef_construction=self.ef_construction,
            M=self.m,
        )
        self._index.set_ef(self.ef_search)
        self._labels: dict[str, int] = {}
        self._ids: dict[int, str] = {}

    def insert(self, id: str, vector: list[float]) -> None:
        if len(vector) != self.dimension:
            raise VectorIndexError(
                f"Vector length {len(vector)} does not match index dimension {self.dimension}",
                {"id": id},
            )

        label = self._labels.get(id)
        if label is None:
            label = len(self._labels)
            capacity = self._index.get_max_elements()
            if label >= capacity:
                self._index.resize_index(capacity * 2)
                logger.debug(f"Resized HNSW index to {capacity * 2} elements")
            self._labels[id] = label
            self._ids[label] = id

        try:
            self._index.add_items(
                np.asarray([vector], dtype=np.float32), np.asarray([label], dtype=np.int64)
            )
        except RuntimeError as e:
            raise VectorIndexError(f"HNSW insert failed: {e}", {"id": id}) from e

    def query(self, vector: list[float], k: int) -> list[tuple[str, float]]:
        count = len(self)
        k = min(k, count)
        if k <= 0:
            return []

        self._index.set_ef(max(self.ef_search, k))
        try:
            labels, distances = self._index.knn_query(
                np.asarray([vector], dtype=np.float32), k=k
            )
        except RuntimeError as e:
            raise VectorIndexError(f"HNSW query failed: {e}", {"k": k}) from e

        return [
            (self._ids[int(label)], float(distance))
            for label, distance in zip(labels[0], distances[0])
        ]

    def clear(self) -> None:
        self._reset()

    def __len__(self) -> int:
        return len(self._labels)
