"""
Tests for factory classes.

Tests the creation of components using factories.
"""

import pytest

from notegraph.config import Config, EmbedderConfig, IndexConfig, VectorStoreConfig
from notegraph.core.embeddings.base import Embedder
from notegraph.core.embeddings.ollama import OllamaEmbedder
from notegraph.core.embeddings.openai import OpenAIEmbedder
from notegraph.core.embeddings.sentence_transformer import SentenceTransformerEmbedder
from notegraph.core.factory import EmbedderFactory, IndexFactory, VectorStoreFactory
from notegraph.core.index import ExactIndex
from notegraph.core.index.base import VectorIndex
from notegraph.core.index.hnsw import HNSWIndex
from notegraph.core.vector_store.base import VectorStore
from notegraph.core.vector_store.qdrant import QdrantVectorStore
from notegraph.core.vector_store.sqlite import SQLiteVectorStore
from notegraph.utils.exceptions import ConfigurationError


@pytest.fixture
def config(tmp_path):
    """Configuration with provider state kept inside the test directory."""
    return Config(
        embedder=EmbedderConfig(
            state_path=str(tmp_path / "provider.json"),
            ollama_base_url="http://ollama:11434",
        )
    )


class TestEmbedderFactory:
    """Test embedder factory."""

    def test_create_minilm(self, config):
        """Test creating the local MiniLM embedder."""
        embedder = EmbedderFactory.create_minilm(config.embedder)

        assert isinstance(embedder, SentenceTransformerEmbedder)
        assert isinstance(embedder, Embedder)
        assert embedder.dimension == 384
        assert embedder.query_prompt is None

    def test_create_embeddinggemma(self, config):
        """Test creating the asymmetric EmbeddingGemma embedder."""
        embedder = EmbedderFactory.create_embeddinggemma(config.embedder)

        assert embedder.dimension == 768
        assert embedder.query_prompt.startswith("task: search result")
        assert embedder.document_prompt.startswith("title: none")

    def test_create_nomic(self, config):
        """Test creating the Ollama-backed Nomic embedder."""
        embedder = EmbedderFactory.create_nomic(config.embedder)

        assert isinstance(embedder, OllamaEmbedder)
        assert embedder.host == "http://ollama:11434"
        assert embedder.model == "nomic-embed-text"
        assert embedder.dimension == 768

    def test_create_openai(self, config):
        """Test creating OpenAI embedder."""
        embedder = EmbedderFactory.create_openai(config.embedder, "sk-test-key")

        assert isinstance(embedder, OpenAIEmbedder)
        assert embedder.dimension == 1536

    def test_create_openai_without_api_key_raises_error(self, config):
        """Test that OpenAI embedder without API key raises error."""
        with pytest.raises(ConfigurationError, match="requires an API key"):
            EmbedderFactory.create_openai(config.embedder, None)


class TestRegistryFactory:
    """Test the built-in provider registry."""

    def test_registers_builtin_providers(self, config):
        """Test that every built-in provider is registered with its dimension."""
        registry = EmbedderFactory.create_registry(config)

        dimensions = {spec.id: spec.dimension for spec in registry.list_providers()}
        assert dimensions == {
            "minilm": 384,
            "embeddinggemma": 768,
            "nomic": 768,
            "openai": 1536,
        }
        assert registry.get_provider("openai").requires_credential is True
        assert registry.default_provider == "minilm"

    def test_openai_dimension_follows_model(self, tmp_path):
        """Test that the OpenAI dimension is looked up from the configured model."""
        config = Config(
            embedder=EmbedderConfig(
                state_path=str(tmp_path / "provider.json"),
                openai_model="text-embedding-3-large",
            )
        )

        registry = EmbedderFactory.create_registry(config)

        assert registry.get_provider("openai").dimension == 3072

    def test_openai_requires_credential(self, config):
        """Test that activating OpenAI without a key is rejected."""
        registry = EmbedderFactory.create_registry(config)

        with pytest.raises(ConfigurationError, match="requires a credential"):
            registry.set_active_provider("openai")

    def test_openai_with_configured_key(self, tmp_path):
        """Test that a configured API key is used as the OpenAI credential."""
        config = Config(
            embedder=EmbedderConfig(
                state_path=str(tmp_path / "provider.json"), openai_api_key="sk-test"
            )
        )
        registry = EmbedderFactory.create_registry(config)

        embedder = registry.set_active_provider("openai")

        assert isinstance(embedder, OpenAIEmbedder)

    def test_default_provider_from_config(self, tmp_path):
        """Test that the configured provider becomes the registry default."""
        config = Config(
            embedder=EmbedderConfig(provider="nomic", state_path=str(tmp_path / "p.json"))
        )
        registry = EmbedderFactory.create_registry(config)

        assert registry.initialize_from_storage().id == "nomic"
        assert isinstance(registry.get_active_provider(), OllamaEmbedder)


class TestVectorStoreFactory:
    """Test vector store factory."""

    def test_create_sqlite_store(self, tmp_path):
        """Test creating SQLite vector store."""
        config = VectorStoreConfig(backend="sqlite", db_path=str(tmp_path / "v.db"))

        store = VectorStoreFactory.create(config, "notes-minilm-384d-v1", 384)

        assert isinstance(store, SQLiteVectorStore)
        assert isinstance(store, VectorStore)
        assert store.vector_path == "notes-minilm-384d-v1"
        assert store.dimension == 384
        assert store.db_path == str(tmp_path / "v.db")

    def test_create_qdrant_store(self):
        """Test creating Qdrant vector store with custom HNSW settings."""
        config = VectorStoreConfig(
            backend="qdrant",
            qdrant_url="http://localhost:6333",
            hnsw_m=32,
            hnsw_ef_construct=200,
            on_disk=True,
        )

        store = VectorStoreFactory.create(config, "notes-nomic-768d-v1", 768)

        assert isinstance(store, QdrantVectorStore)
        assert store.collection_name == "notes-nomic-768d-v1"
        assert store.url == "http://localhost:6333"
        assert store.hnsw_m == 32
        assert store.hnsw_ef_construct == 200
        assert store.on_disk is True

    def test_create_unsupported_backend_raises_error(self):
        """Test that unsupported backend raises error."""
        config = VectorStoreConfig.model_construct(backend="redis")

        with pytest.raises(ConfigurationError, match="Unsupported vector store backend"):
            VectorStoreFactory.create(config, "notes-x-4d-v1", 4)


class TestIndexFactory:
    """Test index factory."""

    def test_create_hnsw_index(self):
        """Test creating HNSW index."""
        config = IndexConfig(backend="hnsw", m=8, ef_search=20, initial_capacity=16)

        index = IndexFactory.create(config, 32)

        assert isinstance(index, HNSWIndex)
        assert isinstance(index, VectorIndex)
        assert index.dimension == 32
        assert index.m == 8
        assert index.ef_search == 20

    def test_create_exact_index(self):
        """Test creating exact index."""
        index = IndexFactory.create(IndexConfig(backend="exact"), 16)

        assert isinstance(index, ExactIndex)
        assert index.dimension == 16

    def test_create_unsupported_backend_raises_error(self):
        """Test that unsupported backend raises error."""
        config = IndexConfig.model_construct(backend="annoy")

        with pytest.raises(ConfigurationError, match="Unsupported index backend"):
            IndexFactory.create(config, 8)
