"""
Abstract base class for embedding providers.
Handles text to vector embeddings for semantic search.
"""

from abc import ABC, abstractmethod

from notegraph.utils.exceptions import DimensionMismatchError, EmbeddingError


class Embedder(ABC):
    """
    Abstract base for embedding providers.

    Responsibilities:
    - Generate vector embeddings for text
    - Batch processing for efficiency
    - Consistent vector dimensions (validated in generate_embeddings)
    - Query/document asymmetry for models that use task prompts
    """

    provider_id: str = "unknown"
    name: str = "Unknown"

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Declared embedding dimension; fixed for the lifetime of the instance."""
        pass

    @abstractmethod
    async def embed(self, text: str, is_query: bool = False) -> list[float]:
        """
        Generate embedding vector for text.

        Args:
            text: Text to embed
            is_query: True for search queries, False for documents

        Returns:
            List of floats representing the embedding vector

        Raises:
            ValidationError: If text is invalid
            EmbeddingError: If embedding generation fails
        """
        pass

    async def batch_embed(
        self, texts: list[str], is_query: bool = False, batch_size: int = 32
    ) -> list[list[float]]:
        """
        Generate embeddings for multiple texts.

        Default implementation processes sequentially.
        Override for provider-specific batch optimization.

        Args:
            texts: List of texts to embed
            is_query: True for search queries, False for documents
            batch_size: Number of texts per batch

        Returns:
            List of embedding vectors (same order as input texts)
        """
        embeddings = []
        for text in texts:
            embedding = await self.embed(text, is_query=is_query)
            embeddings.append(embedding)
        return embeddings

    async def generate_embeddings(
        self, texts: list[str], is_query: bool = False
    ) -> list[list[float]]:
        """
        Embed texts and validate the result.

        This is the entry point the rest of the engine uses: it guarantees one
        vector per input and that every vector has exactly `dimension` entries.

        Raises:
            EmbeddingError: If the provider returned the wrong number of vectors
            DimensionMismatchError: If any vector length differs from `dimension`
        """
        if not texts:
            return []

        vectors = await self.batch_embed(texts, is_query=is_query)

        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"{self.name} returned {len(vectors)} embeddings for {len(texts)} inputs",
                context={"provider": self.provider_id},
            )

        return [self.validate_vector(vector) for vector in vectors]

    def validate_vector(self, vector: list[float]) -> list[float]:
        """
        Check a vector against the declared dimension.

        Raises:
            DimensionMismatchError: If the length differs; vectors are never padded or truncated
        """
        if len(vector) != self.dimension:
            raise DimensionMismatchError(
                expected=self.dimension, actual=len(vector), provider=self.name
            )
        return [float(x) for x in vector]

    async def get_dimension(self) -> int:
        """
        Get the dimension of embeddings produced by this provider.

        Returns:
            Embedding vector dimension
        """
        return self.dimension

    @abstractmethod
    async def close(self):
        """
        Release model or client resources.

        Called when the provider is replaced or the service is disposed.
        """
        pass
