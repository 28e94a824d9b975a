"""
Shared test fixtures for vector store tests.
"""

import pytest

from notegraph.core.vector_store.qdrant import QdrantVectorStore
from notegraph.core.vector_store.sqlite import SQLiteVectorStore


@pytest.fixture
async def sqlite_store(tmp_path):
    """Create initialized SQLite vector store for testing."""
    store = SQLiteVectorStore(
        vector_path="notes-test-4d-v1",
        dimension=4,
        db_path=str(tmp_path / "vectors.db"),
    )
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def qdrant_store():
    """Create Qdrant store for testing."""
    return QdrantVectorStore(
        vector_path="notes-test-4d-v1",
        dimension=4,
        url="http://localhost:6333",
        use_grpc=False,
    )


@pytest.fixture
def sample_vectors():
    """Chunk records of a small note set."""
    return [
        ("n1_chunk_0", "The cat sat on the mat.", [1.0, 0.0, 0.0, 0.0], {"original_note_id": "n1"}),
        ("n1_chunk_1", "It purred.", [0.9, 0.1, 0.0, 0.0], {"original_note_id": "n1"}),
        ("n2_chunk_0", "Stock prices rose.", [0.0, 0.0, 1.0, 0.0], {"original_note_id": "n2"}),
    ]
