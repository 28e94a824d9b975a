"""
Shared test fixtures for all test modules.

FakeEmbedder maps words onto a handful of concept axes so that
paraphrases ("cat"/"feline", "mat"/"rug") land close together without
loading a real model.
"""

from collections.abc import AsyncGenerator

import pytest

from notegraph.config import ChunkingConfig, Config, GraphConfig, TokenizerConfig
from notegraph.core.chunking import TextChunker
from notegraph.core.embeddings.base import Embedder
from notegraph.core.embeddings.registry import ProviderRegistry, ProviderSpec
from notegraph.core.index import ExactIndex
from notegraph.core.tokenizer import Tokenizer
from notegraph.core.vector_store.sqlite import SQLiteVectorStore
from notegraph.services import EmbeddingsService

CONCEPTS = {
    "cat": 0,
    "cats": 0,
    "feline": 0,
    "kitten": 0,
    "mat": 1,
    "mats": 1,
    "rug": 1,
    "carpet": 1,
    "sat": 2,
    "sit": 2,
    "rested": 2,
    "sleeping": 2,
    "stock": 3,
    "stocks": 3,
    "prices": 3,
    "market": 3,
    "rose": 4,
    "fell": 4,
    "today": 4,
    "dog": 5,
    "dogs": 5,
    "puppy": 5,
}
STOPWORDS = {"the", "a", "an", "on", "of", "and", "in", "to", "is", "was"}


class FakeEmbedder(Embedder):
    """Deterministic bag-of-concepts embedder."""

    def __init__(self, dimension: int = 8, provider_id: str = "fake", name: str = "Fake"):
        self.provider_id = provider_id
        self.name = name
        self._dimension = dimension
        self.calls: list[tuple[list[str], bool]] = []
        self.closed = False

    @property
    def dimension(self) -> int:
        return self._dimension

    def vectorize(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        overflow = max(1, self._dimension - 6)
        for raw in text.lower().split():
            word = raw.strip(".,!?;:\"'()")
            if not word or word in STOPWORDS:
                continue
            slot = CONCEPTS.get(word)
            if slot is None or slot >= self._dimension:
                slot = min(6 + sum(map(ord, word)) % overflow, self._dimension - 1)
            vector[slot] += 1.0
        if not any(vector):
            vector[-1] = 1.0
        return vector

    async def embed(self, text: str, is_query: bool = False) -> list[float]:
        self.calls.append(([text], is_query))
        return self.vectorize(text)

    async def batch_embed(
        self, texts: list[str], is_query: bool = False, batch_size: int = 32
    ) -> list[list[float]]:
        self.calls.append((list(texts), is_query))
        return [self.vectorize(text) for text in texts]

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_embedder():
    """Create fake embedder with 8 dimensions."""
    return FakeEmbedder()


@pytest.fixture
def tokenizer():
    """Character-ratio tokenizer; avoids downloading tiktoken encodings."""
    return Tokenizer(TokenizerConfig(provider="approximate"))


@pytest.fixture
def chunker(tokenizer):
    """Create chunker with small budgets."""
    return TextChunker(
        ChunkingConfig(max_chunk_chars=200, max_token_size=50, min_chunk_tokens=5),
        tokenizer,
    )


def _fake_spec(provider_id: str, dimension: int) -> ProviderSpec:
    name = provider_id.replace("-", " ").title()
    return ProviderSpec(
        id=provider_id,
        name=name,
        dimension=dimension,
        factory=lambda _: FakeEmbedder(dimension, provider_id=provider_id, name=name),
    )


@pytest.fixture
def make_registry():
    """Factory for registries holding fake-a (8d, default) and fake-b (12d)."""

    def _make(state_path=None) -> ProviderRegistry:
        registry = ProviderRegistry(default_provider="fake-a", state_path=state_path)
        registry.register(_fake_spec("fake-a", 8))
        registry.register(_fake_spec("fake-b", 12))
        return registry

    return _make


@pytest.fixture
def fake_registry(make_registry):
    """Registry with two fake providers of different dimensions."""
    return make_registry()


@pytest.fixture
def service_config():
    """Configuration used by service tests."""
    return Config(
        graph=GraphConfig(semantic_threshold=0.8, random_seed=7),
        tokenizer=TokenizerConfig(provider="approximate"),
    )


@pytest.fixture
def db_path(tmp_path):
    """SQLite vector database inside the test's temporary directory."""
    return str(tmp_path / "vectors.db")


@pytest.fixture
def make_service(service_config, db_path):
    """Factory for services wired to fakes, an exact index and a SQLite store."""

    def _make(registry: ProviderRegistry, config: Config | None = None) -> EmbeddingsService:
        return EmbeddingsService(
            config=config or service_config,
            registry=registry,
            vector_store_factory=lambda path, dim: SQLiteVectorStore(path, dim, db_path=db_path),
            index_factory=lambda dim: ExactIndex(dim),
        )

    return _make


@pytest.fixture
async def service(make_service, fake_registry) -> AsyncGenerator:
    """Initialized embeddings service backed by fakes."""
    svc = make_service(fake_registry)
    await svc.initialize()
    yield svc
    await svc.dispose()
