"""
Ollama embedder using native ollama-python SDK.
"""

import asyncio

import ollama

from notegraph.core.embeddings.base import Embedder
from notegraph.utils.exceptions import EmbeddingError, ValidationError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaEmbedder(Embedder):
    """
    Ollama embedder for generating text embeddings.

    Uses native ollama-python SDK for embedding generation.
    Defaults to nomic-embed-text, which expects task prefixes on its input.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        dimension: int = 768,
        provider_id: str = "nomic",
        name: str = "Nomic Embed (Ollama)",
        query_prefix: str = "search_query: ",
        document_prefix: str = "search_document: ",
        timeout: float = 120.0,
    ):
        """
        Initialize Ollama embedder.

        Args:
            host: Ollama server URL
            model: Embedding model name (e.g., "nomic-embed-text", "mxbai-embed-large")
            dimension: Declared output dimension of the model
            provider_id: Stable registry id
            name: Human-readable provider name
            query_prefix: Prefix applied to search queries
            document_prefix: Prefix applied to documents
            timeout: Request timeout in seconds
        """
        self.host = host
        self.model = model
        self.provider_id = provider_id
        self.name = name
        self.query_prefix = query_prefix
        self.document_prefix = document_prefix
        self.timeout = timeout
        self._dimension = dimension

        # Create async client
        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    @property
    def dimension(self) -> int:
        return self._dimension

    def _with_prefix(self, text: str, is_query: bool) -> str:
        return f"{self.query_prefix if is_query else self.document_prefix}{text}"

    async def embed(self, text: str, is_query: bool = False) -> list[float]:
        """
        Generate embedding for text using Ollama.

        Args:
            text: Text to embed
            is_query: True for search queries

        Returns:
            Embedding vector as list of floats

        Raises:
            ValidationError: If text is invalid
            EmbeddingError: If Ollama embedding fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        try:
            response = await self.client.embeddings(
                model=self.model, prompt=self._with_prefix(text, is_query)
            )

            if not response or "embedding" not in response:
                raise EmbeddingError("Ollama returned invalid embedding response")

            return list(response["embedding"])
        except (ValidationError, EmbeddingError):
            raise
        except Exception as e:
            logger.error(
                f"Ollama embedding error: {e}",
                extra={"model": self.model, "host": self.host, "error": str(e)},
            )
            raise EmbeddingError(f"Ollama embedding error: {e}") from e

    async def batch_embed(
        self, texts: list[str], is_query: bool = False, batch_size: int = 32
    ) -> list[list[float]]:
        """
        Batch embed multiple texts with concurrency.

        Ollama processes requests sequentially on server,
        but we use asyncio for concurrent requests.

        Args:
            texts: List of texts to embed
            is_query: True for search queries
            batch_size: Number of concurrent requests

        Returns:
            List of embedding vectors
        """
        embeddings = []

        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]

            # Process batch concurrently
            tasks = [self.embed(text, is_query=is_query) for text in batch]
            batch_embeddings = await asyncio.gather(*tasks)

            embeddings.extend(batch_embeddings)

        return embeddings

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass
