"""
Embedder abstraction layer for text embeddings.

Supported providers:
- sentence-transformers (local, in-process; MiniLM, EmbeddingGemma)
- Ollama (native SDK; nomic-embed-text)
- OpenAI (official SDK)
"""

from notegraph.core.embeddings.base import Embedder
from notegraph.core.embeddings.ollama import OllamaEmbedder
from notegraph.core.embeddings.openai import OpenAIEmbedder
from notegraph.core.embeddings.registry import ProviderRegistry, ProviderSpec
from notegraph.core.embeddings.sentence_transformer import SentenceTransformerEmbedder
from notegraph.core.embeddings.worker import EmbeddingWorker

__all__ = [
    "Embedder",
    "EmbeddingWorker",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "ProviderRegistry",
    "ProviderSpec",
    "SentenceTransformerEmbedder",
]
