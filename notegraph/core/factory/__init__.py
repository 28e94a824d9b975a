"""
Factory modules for creating NoteGraph components.

Provides modular factories for embedders, ANN indices and vector stores.
"""

from notegraph.core.factory.embedder_factory import EmbedderFactory
from notegraph.core.factory.index_factory import IndexFactory
from notegraph.core.factory.vector_factory import VectorStoreFactory

__all__ = [
    "EmbedderFactory",
    "IndexFactory",
    "VectorStoreFactory",
]
