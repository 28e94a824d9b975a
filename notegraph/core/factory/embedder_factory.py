"""
Factory for creating embedder providers and the provider registry.
"""

from notegraph.config import Config, EmbedderConfig
from notegraph.core.embeddings.base import Embedder
from notegraph.core.embeddings.ollama import OllamaEmbedder
from notegraph.core.embeddings.openai import OpenAIEmbedder
from notegraph.core.embeddings.registry import ProviderRegistry, ProviderSpec
from notegraph.core.embeddings.sentence_transformer import SentenceTransformerEmbedder

MINILM_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
EMBEDDINGGEMMA_MODEL = "google/embeddinggemma-300m"


class EmbedderFactory:
    """Factory for creating embedder providers from configuration."""

    @staticmethod
    def create_minilm(config: EmbedderConfig, batch_size: int = 5) -> Embedder:
        return SentenceTransformerEmbedder(
            model_name=MINILM_MODEL,
            dimension=384,
            provider_id="minilm",
            name="MiniLM L6 v2 (local)",
            device=config.device,
            cache_folder=config.cache_dir,
            batch_size=batch_size,
        )

    @staticmethod
    def create_embeddinggemma(config: EmbedderConfig, batch_size: int = 5) -> Embedder:
        return SentenceTransformerEmbedder(
            model_name=EMBEDDINGGEMMA_MODEL,
            dimension=768,
            provider_id="embeddinggemma",
            name="EmbeddingGemma 300M (local)",
            query_prompt="task: search result | query: ",
            document_prompt="title: none | text: ",
            device=config.device,
            cache_folder=config.cache_dir,
            batch_size=batch_size,
        )

    @staticmethod
    def create_nomic(config: EmbedderConfig) -> Embedder:
        return OllamaEmbedder(
            host=config.ollama_base_url,
            model=config.ollama_model,
            dimension=768,
            provider_id="nomic",
            name="Nomic Embed (Ollama)",
            timeout=config.timeout,
        )

    @staticmethod
    def create_openai(config: EmbedderConfig, api_key: str | None) -> Embedder:
        return OpenAIEmbedder(
            api_key=api_key,
            model=config.openai_model,
            provider_id="openai",
            name="OpenAI",
            base_url=config.openai_base_url,
            timeout=config.timeout,
        )

    @staticmethod
    def create_registry(config: Config) -> ProviderRegistry:
        """
        Build a registry with every built-in provider.

        Args:
            config: Main configuration

        Returns:
            Registry; call initialize_from_storage() before use
        """
        embedder_config = config.embedder
        batch_size = config.worker.batch_size

        registry = ProviderRegistry(
            default_provider=embedder_config.provider,
            state_path=embedder_config.state_path,
        )

        registry.register(
            ProviderSpec(
                id="minilm",
                name="MiniLM L6 v2 (local)",
                dimension=384,
                factory=lambda _: EmbedderFactory.create_minilm(embedder_config, batch_size),
                description="Small symmetric sentence-transformers model",
            )
        )
        registry.register(
            ProviderSpec(
                id="embeddinggemma",
                name="EmbeddingGemma 300M (local)",
                dimension=768,
                factory=lambda _: EmbedderFactory.create_embeddinggemma(
                    embedder_config, batch_size
                ),
                description="Asymmetric model with query/document prompts",
            )
        )
        registry.register(
            ProviderSpec(
                id="nomic",
                name="Nomic Embed (Ollama)",
                dimension=768,
                factory=lambda _: EmbedderFactory.create_nomic(embedder_config),
                description="nomic-embed-text served by a local Ollama",
            )
        )
        registry.register(
            ProviderSpec(
                id="openai",
                name="OpenAI",
                dimension=OpenAIEmbedder.MODEL_DIMENSIONS.get(embedder_config.openai_model, 1536),
                factory=lambda key: EmbedderFactory.create_openai(embedder_config, key),
                requires_credential=True,
                description="Hosted embeddings; requires an API key",
            ),
            credential=embedder_config.openai_api_key,
        )

        return registry
