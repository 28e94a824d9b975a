"""
Factory for creating vector store backends.
"""

from notegraph.config import VectorStoreConfig
from notegraph.core.vector_store.base import VectorStore
from notegraph.core.vector_store.qdrant import QdrantVectorStore
from notegraph.core.vector_store.sqlite import SQLiteVectorStore
from notegraph.utils.exceptions import ConfigurationError


class VectorStoreFactory:
    """Factory for creating vector store backends from configuration."""

    @staticmethod
    def create(config: VectorStoreConfig, vector_path: str, dimension: int) -> VectorStore:
        """
        Create vector store from configuration.

        Args:
            config: Vector store configuration
            vector_path: Namespace the store is bound to
            dimension: Embedding dimension size

        Returns:
            Vector store instance (not yet initialized)

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "sqlite":
            return SQLiteVectorStore(
                vector_path=vector_path,
                dimension=dimension,
                db_path=config.db_path,
            )
        elif config.backend == "qdrant":
            return QdrantVectorStore(
                vector_path=vector_path,
                dimension=dimension,
                url=config.qdrant_url,
                path=config.qdrant_path,
                api_key=config.qdrant_api_key,
                use_grpc=config.use_grpc,
                hnsw_m=config.hnsw_m,
                hnsw_ef_construct=config.hnsw_ef_construct,
                on_disk=config.on_disk,
            )
        else:
            raise ConfigurationError(f"Unsupported vector store backend: {config.backend}")
