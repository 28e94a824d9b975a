"""
Embeddings Service - orchestrates indexing and search.

Brings together:
- Provider registry & active embedder
- Text chunker
- Knowledge graph (GraphRAG) + ANN index
- Persisted vector store for the active provider's vector path
"""

import asyncio
from collections.abc import Callable, Iterable
from typing import Any

from notegraph.config import Config
from notegraph.core.chunking import TextChunker
from notegraph.core.embeddings.base import Embedder
from notegraph.core.embeddings.registry import ProviderRegistry
from notegraph.core.factory import EmbedderFactory, IndexFactory, VectorStoreFactory
from notegraph.core.graph import GraphRAG
from notegraph.core.index.base import VectorIndex
from notegraph.core.tokenizer import Tokenizer
from notegraph.core.vector_store.base import VectorStore
from notegraph.models.chunk import ChunkingMethod, SemanticChunkingOptions
from notegraph.models.graph import GraphNode
from notegraph.models.search import (
    AtlasRecord,
    IndexStatus,
    NoteInput,
    SearchBackend,
    SearchResult,
    ServiceState,
)
from notegraph.utils.exceptions import ServiceStateError, ValidationError
from notegraph.utils.id_generator import generate_chunk_id, generate_vector_path
from notegraph.utils.logger import get_logger
from notegraph.utils.text import make_snippet, preprocess_text

logger = get_logger(__name__)

# (vector_path, dimension) -> store
VectorStoreBuilder = Callable[[str, int], VectorStore]
# dimension -> index
IndexBuilder = Callable[[int], VectorIndex]


class EmbeddingsService:
    """
    Embeddings Service integrating all retrieval components.

    Features:
    - Provider lifecycle (initialize, switch, dispose)
    - Note indexing with chunk supersession
    - Graph-augmented and direct vector search
    - Best-effort persistence per (provider, dimension) vector path

    Mutations (initialize, add_note, remove_note, switch_provider, clear)
    are serialized by an internal lock. Reads observe the latest
    committed state.
    """

    def __init__(
        self,
        config: Config | None = None,
        registry: ProviderRegistry | None = None,
        vector_store_factory: VectorStoreBuilder | None = None,
        index_factory: IndexBuilder | None = None,
        chunker: TextChunker | None = None,
    ):
        """
        Initialize Embeddings Service.

        Args:
            config: Configuration object
            registry: Provider registry (built from configuration when None)
            vector_store_factory: Builds the store for a vector path and dimension
            index_factory: Builds the ANN index for a dimension
            chunker: Text chunker (built from configuration when None)
        """
        self.config = config or Config()
        self.registry = registry or EmbedderFactory.create_registry(self.config)
        self._vector_store_factory = vector_store_factory or (
            lambda path, dim: VectorStoreFactory.create(self.config.vector_store, path, dim)
        )
        self._index_factory = index_factory or (
            lambda dim: IndexFactory.create(self.config.index, dim)
        )
        self.chunker = chunker or TextChunker(
            self.config.chunking, Tokenizer(self.config.tokenizer)
        )

        self.search_backend = SearchBackend(self.config.search.backend)
        self.state = ServiceState.UNINITIALIZED
        self._lock = asyncio.Lock()

        self.embedder: Embedder | None = None
        self.graph: GraphRAG | None = None
        self.index: VectorIndex | None = None
        self.vector_store: VectorStore | None = None
        self.vector_path: str | None = None
        self._store_available = False

    # ═══════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════

    async def initialize(self) -> None:
        """
        Activate the persisted provider and load its vectors.

        No-op when already ready. A failure leaves the service in the error
        state; calling initialize() again retries.

        Raises:
            ConfigurationError: If no provider can be activated
        """
        self._check_not_disposed()
        if self.state == ServiceState.READY:
            return

        async with self._lock:
            if self.state == ServiceState.READY:
                return

            logger.info("Initializing Embeddings Service")
            self.state = ServiceState.INITIALIZING
            try:
                self.registry.initialize_from_storage()
                await self._activate(self.registry.get_active_provider())
            except Exception as e:
                self.state = ServiceState.ERROR
                logger.error(f"Embeddings Service initialization failed: {e}")
                raise

            self.state = ServiceState.READY
            logger.info(
                f"Embeddings Service ready: provider={self.embedder.provider_id}, "
                f"nodes={self.graph.node_count}, edges={self.graph.edge_count}"
            )

    async def switch_provider(self, provider_id: str, credential: str | None = None) -> None:
        """
        Switch the active embedding provider.

        Graph, index and store are re-created at the new provider's dimension
        and the new vector path's persisted vectors are loaded. Notes are not
        re-embedded; call sync_all_notes() to index them under the new provider.

        Raises:
            ConfigurationError: If the provider is unknown or lacks a credential
        """
        self._check_not_disposed()

        async with self._lock:
            previous_state = self.state
            self.state = ServiceState.SWITCHING_PROVIDER

            try:
                embedder = self.registry.set_active_provider(provider_id, credential)
            except Exception as e:
                self.state = previous_state
                logger.error(f"Cannot switch to provider {provider_id}: {e}")
                raise

            try:
                await self._release()
                await self._activate(embedder)
            except Exception as e:
                self.state = ServiceState.ERROR
                logger.error(f"Provider switch to {provider_id} failed: {e}")
                raise

            self.state = ServiceState.READY
            logger.info(
                f"Switched to provider {provider_id} ({embedder.dimension}d), "
                f"loaded {self.graph.node_count} persisted chunks from {self.vector_path}"
            )

    async def dispose(self) -> None:
        """Close the embedder and store and drop in-memory state."""
        async with self._lock:
            if self.state == ServiceState.DISPOSED:
                return
            await self._release()
            self.state = ServiceState.DISPOSED
            logger.info("Embeddings Service disposed")

    async def close(self) -> None:
        """Alias for dispose()."""
        await self.dispose()

    async def _activate(self, embedder: Embedder) -> None:
        """Build graph, index and store for an embedder and load persisted vectors."""
        dimension = embedder.dimension
        self.embedder = embedder
        self.vector_path = generate_vector_path(embedder.provider_id, dimension)
        self.graph = GraphRAG(dimension, self.config.graph)
        self.index = self._index_factory(dimension)
        self.vector_store = self._vector_store_factory(self.vector_path, dimension)

        await self._load_persisted()
        self._rebuild_edges()

    async def _release(self) -> None:
        """Close the current embedder and store; failures are logged."""
        embedder, store = self.embedder, self.vector_store
        self.embedder = None
        self.vector_store = None
        self.graph = None
        self.index = None
        self._store_available = False

        if embedder is not None:
            try:
                await embedder.close()
            except Exception as e:
                logger.warning(f"Failed to close embedder {embedder.provider_id}: {e}")

        if store is not None:
            try:
                await store.close()
            except Exception as e:
                logger.warning(f"Failed to close vector store {store.vector_path}: {e}")

    async def _load_persisted(self) -> None:
        try:
            await self.vector_store.initialize()
            records = await self.vector_store.get_all()
        except Exception as e:
            self._store_available = False
            logger.warning(f"Vector store unavailable for {self.vector_path}: {e}")
            return

        self._store_available = True
        skipped = 0
        for record in records:
            if len(record.vector) != self.graph.dimension:
                skipped += 1
                continue
            self.graph.add_node(
                GraphNode(
                    id=record.id,
                    content=record.text,
                    embedding=record.vector,
                    metadata=record.metadata,
                )
            )

        if skipped:
            logger.warning(
                f"Skipped {skipped} persisted vectors with wrong dimension in {self.vector_path}"
            )
        logger.info(f"Loaded {len(records) - skipped} persisted vectors from {self.vector_path}")

    def _rebuild_edges(self) -> None:
        """Clear and rebuild both edge families from the current nodes."""
        graph_config = self.config.graph
        self.graph.clear_edges()
        sequential = self.graph.build_sequential_edges()
        semantic = self.graph.build_semantic_edges(
            threshold=graph_config.semantic_threshold,
            index=self.index,
            k=graph_config.semantic_k,
        )
        logger.debug(
            f"Rebuilt graph edges: {sequential} sequential, {semantic} semantic "
            f"over {self.graph.node_count} nodes"
        )

    def _check_not_disposed(self) -> None:
        if self.state == ServiceState.DISPOSED:
            raise ServiceStateError("Embeddings Service has been disposed")

    def _check_ready(self) -> None:
        self._check_not_disposed()
        if self.state != ServiceState.READY:
            raise ServiceStateError(
                f"Embeddings Service is not ready (state: {self.state.value})",
                {"state": self.state.value},
            )

    async def _ensure_ready(self) -> None:
        """Initialize lazily; must be called before taking the lock."""
        self._check_not_disposed()
        if self.state != ServiceState.READY:
            await self.initialize()

    # ═══════════════════════════════════════════════════════════
    # INDEXING
    # ═══════════════════════════════════════════════════════════

    async def add_note(
        self,
        note_id: str,
        title: str,
        content: Any,
        chunking_method: ChunkingMethod | str | None = None,
        semantic_options: SemanticChunkingOptions | None = None,
    ) -> int:
        """
        Index (or re-index) a note.

        Every chunk vector is validated before the graph is touched, so a
        dimension mismatch leaves the previous state intact.

        Args:
            note_id: Note identifier
            title: Note title
            content: Note text
            chunking_method: Chunking strategy (configuration default when None)
            semantic_options: Overrides for semantic chunking

        Returns:
            Number of chunks indexed

        Raises:
            ValidationError: If note_id is empty
            DimensionMismatchError: If the provider returns a wrongly sized vector
            EmbeddingError: If embedding fails
        """
        if not note_id or not note_id.strip():
            raise ValidationError("Note ID cannot be empty")

        await self._ensure_ready()

        async with self._lock:
            self._check_ready()
            embedder = self.embedder

            chunks = await self.chunker.chunk_note(
                note_id,
                title,
                content,
                method=chunking_method,
                options=semantic_options,
                embedder=embedder,
            )
            if not chunks:
                logger.info(f"Note {note_id} produced no chunks, skipping")
                return 0

            vectors = await embedder.generate_embeddings(
                [chunk.text for chunk in chunks], is_query=False
            )

            nodes = [
                GraphNode(
                    id=generate_chunk_id(note_id, chunk.index),
                    content=chunk.text,
                    embedding=vector,
                    metadata={
                        **chunk.node_metadata(),
                        "original_note_id": note_id,
                        "title": title or "Untitled",
                        "chunking_method": chunk.method.value,
                    },
                )
                for chunk, vector in zip(chunks, vectors)
            ]

            removed = self.graph.remove_nodes(lambda node: node.note_id == note_id)
            for node in nodes:
                self.graph.add_node(node)

            await self._persist(nodes)
            stale = set(removed) - {node.id for node in nodes}
            await self._delete_persisted(stale)

            self._rebuild_edges()

            logger.info(
                f"Indexed note {note_id} ({len(nodes)} chunks, replaced {len(removed)})"
            )
            return len(nodes)

    async def remove_note(self, note_id: str) -> int:
        """
        Remove every chunk of a note from graph, index and store.

        Returns:
            Number of chunks removed (0 for unknown notes)
        """
        await self._ensure_ready()

        async with self._lock:
            self._check_ready()
            removed = self.graph.remove_nodes(lambda node: node.note_id == note_id)
            if not removed:
                logger.debug(f"Note {note_id} is not indexed")
                return 0

            self._rebuild_edges()
            await self._delete_persisted(removed)

            logger.info(f"Removed note {note_id} ({len(removed)} chunks)")
            return len(removed)

    async def sync_all_notes(
        self,
        notes: Iterable[NoteInput | dict[str, Any]],
        chunking_method: ChunkingMethod | str | None = None,
        semantic_options: SemanticChunkingOptions | None = None,
    ) -> int:
        """
        Index a batch of notes; per-note failures are logged and skipped.

        Malformed entries count as failures. Empty notes sync without error
        and are counted even though they produce no chunks.

        Returns:
            Number of notes synced without error
        """
        await self._ensure_ready()

        synced = 0
        failed = 0
        for item in notes:
            note_id = item.id if isinstance(item, NoteInput) else _raw_note_id(item)
            try:
                note = item if isinstance(item, NoteInput) else NoteInput.model_validate(item)
                await self.add_note(
                    note.id, note.title, note.content, chunking_method, semantic_options
                )
                synced += 1
            except ServiceStateError:
                raise
            except Exception as e:
                failed += 1
                logger.error(f"Failed to index note {note_id}: {e}")

        logger.info(f"Synced {synced} notes ({failed} failed)")
        return synced

    async def clear(self) -> None:
        """Empty graph, index and persisted vectors for the current vector path."""
        await self._ensure_ready()

        async with self._lock:
            self._check_ready()
            self.graph.clear()
            self.index.clear()
            if self.vector_store is not None:
                try:
                    await self.vector_store.clear()
                except Exception as e:
                    logger.warning(f"Failed to clear vector store {self.vector_path}: {e}")
            logger.info(f"Cleared index for {self.vector_path}")

    async def _persist(self, nodes: list[GraphNode]) -> None:
        """Upsert nodes to the store; failures are logged, never raised."""
        if self.vector_store is None:
            return
        for node in nodes:
            try:
                await self.vector_store.upsert_embedding(
                    node.id, node.content, node.embedding, node.metadata
                )
            except Exception as e:
                logger.warning(f"Failed to persist vector {node.id}: {e}")

    async def _delete_persisted(self, node_ids: Iterable[str]) -> None:
        if self.vector_store is None:
            return
        for node_id in node_ids:
            try:
                await self.vector_store.delete_embedding(node_id)
            except Exception as e:
                logger.warning(f"Failed to delete persisted vector {node_id}: {e}")

    # ═══════════════════════════════════════════════════════════
    # SEARCH
    # ═══════════════════════════════════════════════════════════

    def set_search_backend(self, backend: SearchBackend | str) -> None:
        self.search_backend = SearchBackend(backend)
        logger.info(f"Search backend set to {self.search_backend.value}")

    def get_search_backend(self) -> SearchBackend:
        return self.search_backend

    async def search(self, query: str, top_k: int | None = None) -> list[SearchResult]:
        """Search with the configured backend."""
        if self.search_backend == SearchBackend.VECTOR:
            return await self.search_vector_store(query, top_k)
        return await self.search_graphrag(query, top_k)

    async def search_graphrag(self, query: str, top_k: int | None = None) -> list[SearchResult]:
        """
        Rank chunks by query similarity blended with random-walk visits.

        Raises:
            DimensionMismatchError: If the query vector has the wrong length
        """
        text = preprocess_text(query)
        if not text:
            return []

        await self._ensure_ready()
        if top_k is None:
            top_k = self.config.search.default_top_k
        if top_k <= 0:
            return []
        graph = self.graph

        vector = await self._embed_query(text)
        ranked = graph.query(vector, top_k=top_k)

        logger.debug(f"GraphRAG search returned {len(ranked)} results for {text!r}")
        return [
            SearchResult(
                note_id=node.metadata.get("original_note_id", node.id),
                title=node.metadata.get("title") or "Untitled",
                content=node.content,
                score=node.score,
                graph_score=node.graph_score,
                chunk_id=node.id,
            )
            for node in ranked
        ]

    async def search_vector_store(
        self, query: str, top_k: int | None = None
    ) -> list[SearchResult]:
        """
        Nearest-neighbor search directly against the persisted store.

        Raises:
            DimensionMismatchError: If the query vector has the wrong length
            VectorStoreError: If the store query fails
        """
        text = preprocess_text(query)
        if not text:
            return []

        await self._ensure_ready()
        if top_k is None:
            top_k = self.config.search.default_top_k
        if top_k <= 0:
            return []
        store = self.vector_store
        if store is None or not self._store_available:
            logger.warning("Vector store unavailable, returning no results")
            return []

        vector = await self._embed_query(text)
        if self.vector_store is not store:
            logger.warning("Vector store replaced during search, returning no results")
            return []
        hits = await store.search_by_embedding(vector, top_k=top_k)

        return [
            SearchResult(
                note_id=hit.metadata.get("original_note_id", hit.id),
                title=hit.metadata.get("title") or "Untitled",
                content=hit.text,
                score=hit.score,
                chunk_id=hit.id,
            )
            for hit in hits
        ]

    async def _embed_query(self, text: str) -> list[float]:
        embedder = self.embedder
        vector = await embedder.embed(text, is_query=True)
        return embedder.validate_vector(vector)

    # ═══════════════════════════════════════════════════════════
    # STATUS
    # ═══════════════════════════════════════════════════════════

    async def get_index_status(self) -> IndexStatus:
        """Sizes of the in-memory graph and the persisted store."""
        graph, store = self.graph, self.vector_store
        if graph is None:
            return IndexStatus(state=self.state)

        persisted = 0
        if store is not None and self._store_available:
            try:
                persisted = await store.count()
            except Exception as e:
                logger.warning(f"Failed to count persisted vectors: {e}")

        index_size = max(graph.node_count, persisted)
        return IndexStatus(
            has_index=index_size > 0,
            index_size=index_size,
            needs_rebuild=persisted > graph.node_count,
            graph_nodes=graph.node_count,
            graph_edges=graph.edge_count,
            provider=self.embedder.provider_id if self.embedder else None,
            dimension=graph.dimension,
            vector_path=self.vector_path,
            state=self.state,
        )

    def get_atlas_data(self) -> list[AtlasRecord]:
        """One record per indexed chunk, keyed by note id."""
        if self.graph is None:
            return []
        return [
            AtlasRecord(
                id=node.note_id,
                title=node.title,
                snippet=make_snippet(node.content),
                vector=node.embedding,
            )
            for node in self.graph.get_nodes()
        ]

    def get_current_provider(self) -> dict[str, Any] | None:
        """Descriptor of the active provider, or None before initialization."""
        spec = self.registry.active_spec
        if spec is None:
            return None
        return {
            "id": spec.id,
            "name": spec.name,
            "dimension": spec.dimension,
            "requires_credential": spec.requires_credential,
            "vector_path": self.vector_path,
        }


def _raw_note_id(item: Any) -> Any:
    """Best-effort id of an unvalidated note, for logging."""
    return item.get("id") if isinstance(item, dict) else None
