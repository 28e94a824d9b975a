"""
Factory for creating nearest-neighbor indices.
"""

from notegraph.config import IndexConfig
from notegraph.core.index.base import VectorIndex
from notegraph.core.index.exact import ExactIndex
from notegraph.core.index.hnsw import HNSWIndex
from notegraph.utils.exceptions import ConfigurationError


class IndexFactory:
    """Factory for creating ANN indices from configuration."""

    @staticmethod
    def create(config: IndexConfig, dimension: int) -> VectorIndex:
        """
        Create index from configuration.

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "hnsw":
            return HNSWIndex(
                dimension=dimension,
                m=config.m,
                ef_construction=config.ef_construction,
                ef_search=config.ef_search,
                initial_capacity=config.initial_capacity,
            )
        elif config.backend == "exact":
            return ExactIndex(dimension=dimension)
        else:
            raise ConfigurationError(f"Unsupported index backend: {config.backend}")
