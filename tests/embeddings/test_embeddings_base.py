"""
Tests for embeddings base class.
"""

import pytest

from notegraph.core.embeddings.base import Embedder
from notegraph.utils.exceptions import DimensionMismatchError, EmbeddingError


class MockEmbedder(Embedder):
    """Mock embedder for testing."""

    provider_id = "mock"
    name = "Mock"

    def __init__(self, output_size: int = 5):
        self.output_size = output_size

    @property
    def dimension(self) -> int:
        return 5

    async def embed(self, text: str, is_query: bool = False):
        # Fixed-size embedding regardless of text
        return [0.1, 0.2, 0.3, 0.4, 0.5][: self.output_size] + [0.0] * max(
            0, self.output_size - 5
        )

    async def close(self):
        """Mock close implementation."""
        pass


class ShortBatchEmbedder(MockEmbedder):
    """Drops the last vector of every batch."""

    async def batch_embed(self, texts, is_query=False, batch_size=32):
        return [await self.embed(t) for t in texts[:-1]]


@pytest.mark.unit
@pytest.mark.asyncio
class TestEmbedderBase:
    """Test base Embedder functionality."""

    async def test_abstract_instantiation(self):
        """Test that abstract class cannot be instantiated."""
        with pytest.raises(TypeError, match="Can't instantiate abstract class"):
            Embedder()

    async def test_embed_interface(self):
        """Test embed method interface."""
        embedder = MockEmbedder()
        result = await embedder.embed("test text")
        assert isinstance(result, list)
        assert len(result) == 5
        assert all(isinstance(x, float) for x in result)

    async def test_batch_embed_default(self):
        """Test default batch_embed implementation."""
        embedder = MockEmbedder()
        texts = ["text1", "text2", "text3"]
        results = await embedder.batch_embed(texts)

        assert len(results) == 3
        assert all(len(emb) == 5 for emb in results)

    async def test_get_dimension_default(self):
        """Test default get_dimension implementation."""
        embedder = MockEmbedder()
        assert await embedder.get_dimension() == 5

    async def test_generate_embeddings(self):
        """Test validated embedding generation."""
        embedder = MockEmbedder()
        vectors = await embedder.generate_embeddings(["a", "b"])

        assert len(vectors) == 2
        assert vectors[0] == [0.1, 0.2, 0.3, 0.4, 0.5]

    async def test_generate_embeddings_empty(self):
        """Test that no input produces no vectors."""
        embedder = MockEmbedder()
        assert await embedder.generate_embeddings([]) == []

    async def test_generate_embeddings_dimension_mismatch(self):
        """Test that a short vector is rejected, never padded."""
        embedder = MockEmbedder(output_size=3)

        with pytest.raises(DimensionMismatchError) as exc_info:
            await embedder.generate_embeddings(["a"])

        assert exc_info.value.expected == 5
        assert exc_info.value.actual == 3
        assert exc_info.value.provider == "Mock"

    async def test_generate_embeddings_long_vector(self):
        """Test that a long vector is rejected, never truncated."""
        embedder = MockEmbedder(output_size=7)

        with pytest.raises(DimensionMismatchError):
            await embedder.generate_embeddings(["a"])

    async def test_generate_embeddings_count_mismatch(self):
        """Test that a missing vector is reported."""
        embedder = ShortBatchEmbedder()

        with pytest.raises(EmbeddingError, match="returned 1 embeddings for 2 inputs"):
            await embedder.generate_embeddings(["a", "b"])

    async def test_validate_vector_converts_to_float(self):
        """Test that valid vectors come back as floats."""
        embedder = MockEmbedder()
        assert embedder.validate_vector([1, 2, 3, 4, 5]) == [1.0, 2.0, 3.0, 4.0, 5.0]

    async def test_close_default(self):
        """Test close implementation."""
        embedder = MockEmbedder()
        await embedder.close()  # Should not raise
