"""
OpenAI embedder using official SDK.
"""

from openai import AsyncOpenAI

from notegraph.core.embeddings.base import Embedder
from notegraph.utils.exceptions import ConfigurationError, EmbeddingError, ValidationError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIEmbedder(Embedder):
    """
    OpenAI embedder for generating text embeddings.

    Uses official OpenAI SDK with support for batch processing.
    Supports models like text-embedding-3-small, text-embedding-3-large, etc.
    The API is symmetric, so the query flag has no effect.
    """

    # Known dimensions for OpenAI embedding models
    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        api_key: str | None,
        model: str = "text-embedding-3-small",
        dimension: int | None = None,
        provider_id: str = "openai",
        name: str = "OpenAI",
        organization: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            api_key: OpenAI API key
            model: Embedding model name (e.g., "text-embedding-3-small")
            dimension: Output dimension (looked up from the model when None)
            provider_id: Stable registry id
            name: Human-readable provider name
            organization: Optional organization ID
            base_url: Optional custom base URL
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If no API key is given or the dimension is unknown
        """
        if not api_key:
            raise ConfigurationError(f"{name} requires an API key", {"provider": provider_id})

        dimension = dimension or self.MODEL_DIMENSIONS.get(model)
        if not dimension:
            raise ConfigurationError(
                f"Unknown dimension for OpenAI model {model}", {"provider": provider_id}
            )

        self.model = model
        self.provider_id = provider_id
        self.name = name
        self._dimension = dimension

        self.client = AsyncOpenAI(
            api_key=api_key, organization=organization, base_url=base_url, timeout=timeout
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, text: str, is_query: bool = False) -> list[float]:
        """
        Generate embedding for text using OpenAI.

        Args:
            text: Text to embed
            is_query: Ignored (symmetric model)

        Returns:
            Embedding vector as list of floats

        Raises:
            ValidationError: If text is invalid
            EmbeddingError: If OpenAI API call fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        try:
            response = await self.client.embeddings.create(model=self.model, input=text)

            if not response.data or len(response.data) == 0:
                raise EmbeddingError("OpenAI returned empty embedding response")

            return response.data[0].embedding
        except (ValidationError, EmbeddingError):
            raise
        except Exception as e:
            logger.error(
                f"OpenAI embedding error: {e}",
                extra={"model": self.model, "error": str(e), "error_type": type(e).__name__},
            )
            raise EmbeddingError(f"OpenAI embedding error: {e}") from e

    async def batch_embed(
        self, texts: list[str], is_query: bool = False, batch_size: int = 2048
    ) -> list[list[float]]:
        """
        Batch embed using OpenAI's native batch API.

        OpenAI supports up to 2048 inputs per request.

        Args:
            texts: List of texts to embed
            is_query: Ignored (symmetric model)
            batch_size: Number of texts per request (max 2048)

        Returns:
            List of embedding vectors

        Raises:
            EmbeddingError: If batch embedding fails
        """
        if not texts:
            return []

        try:
            embeddings = []

            # Process in batches
            for i in range(0, len(texts), batch_size):
                batch = texts[i : i + batch_size]

                response = await self.client.embeddings.create(model=self.model, input=batch)

                if not response.data:
                    raise EmbeddingError("OpenAI returned empty batch embedding response")

                # Extract embeddings (response.data is already ordered)
                batch_embeddings = [item.embedding for item in response.data]
                embeddings.extend(batch_embeddings)

            return embeddings
        except EmbeddingError:
            raise
        except Exception as e:
            logger.error(
                f"OpenAI batch embedding error: {e}",
                extra={
                    "model": self.model,
                    "batch_size": batch_size,
                    "num_texts": len(texts),
                    "error": str(e),
                },
            )
            raise EmbeddingError(f"OpenAI batch embedding error: {e}") from e

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()
