"""
Local in-process embedder using sentence-transformers.
"""

from sentence_transformers import SentenceTransformer

from notegraph.core.embeddings.base import Embedder
from notegraph.core.embeddings.worker import EmbeddingWorker
from notegraph.utils.exceptions import EmbeddingError, ValidationError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class SentenceTransformerEmbedder(Embedder):
    """
    Sentence-transformers embedder running the model locally.

    Encoding happens on a worker thread through an EmbeddingWorker, so the
    event loop is never blocked by inference. Vectors are L2-normalized.
    Asymmetric models (e.g. EmbeddingGemma) get task prompts for queries
    and documents; symmetric models (e.g. MiniLM) leave both prompts unset.
    """

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        dimension: int = 384,
        provider_id: str = "minilm",
        name: str = "MiniLM (local)",
        query_prompt: str | None = None,
        document_prompt: str | None = None,
        device: str | None = None,
        cache_folder: str | None = None,
        batch_size: int = 5,
    ):
        """
        Initialize sentence-transformers embedder.

        Args:
            model_name: Hugging Face model name
            dimension: Declared output dimension
            provider_id: Stable registry id
            name: Human-readable provider name
            query_prompt: Prefix applied to search queries
            document_prompt: Prefix applied to documents
            device: Torch device (auto-detected when None)
            cache_folder: Model download cache
            batch_size: Queued requests per model call
        """
        self.model_name = model_name
        self.provider_id = provider_id
        self.name = name
        self.query_prompt = query_prompt
        self.document_prompt = document_prompt
        self.device = device
        self.cache_folder = cache_folder
        self._dimension = dimension
        self._model: SentenceTransformer | None = None

        self.worker = EmbeddingWorker(self._encode, batch_size=batch_size)

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the model on first use."""
        if self._model is None:
            logger.info(f"Loading sentence-transformers model {self.model_name}")
            self._model = SentenceTransformer(
                self.model_name, device=self.device, cache_folder=self.cache_folder
            )
        return self._model

    def _encode(self, texts: list[str], is_query: bool) -> list[list[float]]:
        """Blocking encode; runs on the worker thread."""
        prompt = self.query_prompt if is_query else self.document_prompt
        vectors = self.model.encode(
            texts,
            prompt=prompt,
            convert_to_numpy=True,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return vectors.tolist()

    async def embed(self, text: str, is_query: bool = False) -> list[float]:
        """
        Generate embedding for one text through the worker queue.

        Raises:
            ValidationError: If text is empty
            EmbeddingError: If the model call fails
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        try:
            return await self.worker.submit(text, is_query=is_query)
        except EmbeddingError:
            raise
        except Exception as e:
            logger.error(f"Sentence-transformers embedding error: {e}")
            raise EmbeddingError(
                f"Sentence-transformers embedding error: {e}",
                context={"model": self.model_name},
            ) from e

    async def batch_embed(
        self, texts: list[str], is_query: bool = False, batch_size: int = 32
    ) -> list[list[float]]:
        """Embed many texts in one direct model call."""
        if not texts:
            return []
        return await self.worker.submit_batch(texts, is_query=is_query)

    async def close(self):
        """Stop the worker and release the model."""
        await self.worker.close()
        self._model = None
