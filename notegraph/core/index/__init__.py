"""
Nearest-neighbor indices used to build semantic edges.
"""

from notegraph.core.index.base import VectorIndex
from notegraph.core.index.exact import ExactIndex
from notegraph.core.index.hnsw import HNSWIndex

__all__ = ["VectorIndex", "HNSWIndex", "ExactIndex"]
