"""
Persisted vector store implementations for NoteGraph.

Provides abstract base and concrete implementations for vector storage.
"""

from notegraph.core.vector_store.base import VectorStore
from notegraph.core.vector_store.qdrant import QdrantVectorStore
from notegraph.core.vector_store.sqlite import SQLiteVectorStore

__all__ = [
    "VectorStore",
    "SQLiteVectorStore",
    "QdrantVectorStore",
]
