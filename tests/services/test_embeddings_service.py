"""
Tests for EmbeddingsService.

Tests cover:
1. Lifecycle (initialize, dispose, error states)
2. Indexing with chunk supersession and persistence
3. GraphRAG and vector-store search
4. Provider switching across dimensions
5. Status and atlas reporting
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from notegraph.config import ChunkingConfig, Config, GraphConfig, TokenizerConfig
from notegraph.core.embeddings.registry import ProviderRegistry
from notegraph.core.index import ExactIndex
from notegraph.core.vector_store.sqlite import SQLiteVectorStore
from notegraph.models.graph import EdgeType
from notegraph.models.search import NoteInput, SearchBackend, ServiceState
from notegraph.services import EmbeddingsService
from notegraph.utils.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    ServiceStateError,
    ValidationError,
    VectorStoreError,
)

SCENARIO_NOTES = [
    NoteInput(id="a", title="A", content="The cat sat on the mat."),
    NoteInput(id="b", title="B", content="A feline rested on a rug."),
    NoteInput(id="c", title="C", content="Stock prices rose today."),
]

# Three mutually orthogonal paragraphs; the chunk budget keeps each one separate
THREE_TOPICS = "Cat on the mat.\n\nStock prices rose.\n\nThe dog was sleeping."


class UnavailableStore(SQLiteVectorStore):
    """Store whose schema can never be created."""

    async def initialize(self) -> None:
        raise VectorStoreError("disk unavailable")


@pytest.fixture
def service_config():
    """Small chunk budget so multi-paragraph notes yield several chunks."""
    return Config(
        chunking=ChunkingConfig(max_chunk_chars=30),
        graph=GraphConfig(semantic_threshold=0.8, random_seed=7),
        tokenizer=TokenizerConfig(provider="approximate"),
    )


async def add_notes(service: EmbeddingsService, notes=SCENARIO_NOTES):
    for note in notes:
        await service.add_note(note.id, note.title, note.content)


@pytest.mark.integration
@pytest.mark.asyncio
class TestLifecycle:
    """Test service lifecycle."""

    async def test_initialize(self, service):
        """Test that initialization activates the default provider."""
        assert service.state == ServiceState.READY
        assert service.embedder.provider_id == "fake-a"
        assert service.graph.dimension == 8
        assert service.vector_path == "notes-fake-a-8d-v1"

    async def test_initialize_is_idempotent(self, service):
        """Test that a second initialize keeps the same components."""
        graph = service.graph
        await service.initialize()

        assert service.graph is graph

    async def test_lazy_initialization(self, make_service, fake_registry):
        """Test that the first indexing call initializes the service."""
        svc = make_service(fake_registry)
        assert svc.state == ServiceState.UNINITIALIZED

        await svc.add_note("a", "A", "The cat sat on the mat.")

        assert svc.state == ServiceState.READY
        assert svc.graph.node_count == 1
        await svc.dispose()

    async def test_initialize_without_provider(self, make_service):
        """Test that a registry with no usable provider leaves the error state."""
        svc = make_service(ProviderRegistry(default_provider="missing"))

        with pytest.raises(ConfigurationError, match="No embedding provider available"):
            await svc.initialize()

        assert svc.state == ServiceState.ERROR

    async def test_dispose(self, service):
        """Test that dispose closes the embedder and refuses further work."""
        embedder = service.embedder
        await service.dispose()

        assert service.state == ServiceState.DISPOSED
        assert embedder.closed is True
        assert service.graph is None

        with pytest.raises(ServiceStateError):
            await service.add_note("a", "A", "text")
        with pytest.raises(ServiceStateError):
            await service.search("text")
        with pytest.raises(ServiceStateError):
            await service.initialize()

        await service.dispose()  # second dispose is a no-op

    async def test_store_unavailable(self, make_registry, service_config):
        """Test that an unavailable store degrades to in-memory operation."""
        svc = EmbeddingsService(
            config=service_config,
            registry=make_registry(),
            vector_store_factory=lambda path, dim: UnavailableStore(path, dim, db_path=":memory:"),
            index_factory=lambda dim: ExactIndex(dim),
        )
        await svc.initialize()
        await add_notes(svc)

        assert svc.state == ServiceState.READY
        assert len(await svc.search_graphrag("cat on mat")) == 3
        assert await svc.search_vector_store("cat on mat") == []
        await svc.dispose()


@pytest.mark.integration
@pytest.mark.asyncio
class TestIndexing:
    """Test adding and removing notes."""

    async def test_add_note(self, service):
        """Test that a note becomes graph nodes and persisted vectors."""
        count = await service.add_note("n1", "Topics", THREE_TOPICS)

        assert count == 3
        ids = [n.id for n in service.graph.get_nodes()]
        assert ids == ["n1_chunk_0", "n1_chunk_1", "n1_chunk_2"]
        node = service.graph.get_node("n1_chunk_1")
        assert node.content == "Stock prices rose."
        assert node.metadata["original_note_id"] == "n1"
        assert node.metadata["title"] == "Topics"
        assert node.metadata["chunk_index"] == 1
        assert node.metadata["chunking_method"] == "original"
        assert await service.vector_store.count() == 3
        assert len(service.graph.get_edges(EdgeType.SEQUENTIAL)) == 2

    async def test_untitled_note(self, service):
        """Test that a missing title is recorded as Untitled."""
        await service.add_note("n1", "", "The cat sat on the mat.")

        assert service.graph.get_node("n1_chunk_0").title == "Untitled"

    async def test_empty_content(self, service):
        """Test that empty content indexes nothing."""
        assert await service.add_note("n1", "Empty", "   ") == 0
        assert service.graph.node_count == 0

    async def test_empty_note_id(self, service):
        """Test that an empty note id is rejected."""
        with pytest.raises(ValidationError):
            await service.add_note("  ", "Title", "content")

    async def test_reindex_with_fewer_chunks(self, service):
        """Test that re-adding a note replaces every previous chunk."""
        await service.add_note("n1", "Topics", THREE_TOPICS)
        count = await service.add_note("n1", "Topics", "Cat on the mat.")

        assert count == 1
        assert [n.id for n in service.graph.get_nodes()] == ["n1_chunk_0"]
        records = await service.vector_store.get_all()
        assert [r.id for r in records] == ["n1_chunk_0"]
        assert records[0].text == "Cat on the mat."
        assert service.graph.get_edges(EdgeType.SEQUENTIAL) == []

    async def test_dimension_mismatch_keeps_state(self, service):
        """Test that a wrongly sized vector leaves the previous chunks intact."""
        await service.add_note("a", "A", "The cat sat on the mat.")
        service.embedder.batch_embed = AsyncMock(return_value=[[1.0] * 5])

        with pytest.raises(DimensionMismatchError):
            await service.add_note("a", "A", "Completely new text.")

        assert service.graph.get_node("a_chunk_0").content == "The cat sat on the mat."
        assert (await service.vector_store.get_all())[0].text == "The cat sat on the mat."

    async def test_remove_note(self, service):
        """Test removing every chunk of a note."""
        await service.add_note("n1", "Topics", THREE_TOPICS)
        await service.add_note("n2", "Cat", "The cat sat on the mat.")

        removed = await service.remove_note("n1")

        assert removed == 3
        assert [n.id for n in service.graph.get_nodes()] == ["n2_chunk_0"]
        assert [r.id for r in await service.vector_store.get_all()] == ["n2_chunk_0"]
        assert await service.remove_note("n1") == 0

    async def test_remove_note_drops_incident_edges(self, service):
        """Test that removing a note removes exactly its chunks and their edges."""
        for note_id in ("x", "y", "z"):
            await service.add_note(note_id, note_id.upper(), THREE_TOPICS)

        graph = service.graph
        assert graph.node_count == 9
        for i in range(3):
            assert set(graph.neighbors(f"x_chunk_{i}")) == {f"y_chunk_{i}", f"z_chunk_{i}"}
        before = {(e.type, frozenset((e.source, e.target))) for e in graph.get_edges()}
        assert len(before) == 15

        await service.remove_note("x")

        after = {
            (e.type, frozenset((e.source, e.target))) for e in service.graph.get_edges()
        }
        assert {n.note_id for n in service.graph.get_nodes()} == {"y", "z"}
        assert after < before
        assert len(before - after) == 8
        assert all(any(id.startswith("x_") for id in ends) for _, ends in before - after)
        assert len(after) == 7

    async def test_concurrent_adds(self, service):
        """Test that concurrent indexing calls are serialized without loss."""
        await asyncio.gather(
            *(service.add_note(f"n{i}", f"Note {i}", THREE_TOPICS) for i in range(5))
        )

        assert service.graph.node_count == 15
        assert await service.vector_store.count() == 15

    async def test_sync_all_notes(self, service):
        """Test bulk indexing counts every note synced without error."""
        notes = [
            SCENARIO_NOTES[0],
            {"id": "b", "title": "B", "content": "A feline rested on a rug."},
            {"id": "", "title": "Broken", "content": "No id."},
            {"id": "empty", "title": "Empty", "content": ""},
        ]

        synced = await service.sync_all_notes(notes)

        assert synced == 3
        assert {n.note_id for n in service.graph.get_nodes()} == {"a", "b"}

    async def test_sync_all_notes_skips_malformed_notes(self, service):
        """Test that notes failing validation do not end the batch."""
        notes = [
            {"title": "No id", "content": "The cat sat on the mat."},
            {"id": "none", "title": "None", "content": None},
            {"id": "c", "title": "C", "content": "Stock prices rose today."},
        ]

        synced = await service.sync_all_notes(notes)

        assert synced == 1
        assert {n.note_id for n in service.graph.get_nodes()} == {"c"}

    async def test_clear(self, service):
        """Test that clear empties graph and store."""
        await add_notes(service)

        await service.clear()

        assert service.graph.node_count == 0
        assert service.graph.edge_count == 0
        assert await service.vector_store.count() == 0

    async def test_restart_restores_index(self, make_service, make_registry):
        """Test that persisted vectors rebuild the graph after a restart."""
        first = make_service(make_registry())
        await first.initialize()
        await add_notes(first)
        await first.dispose()

        second = make_service(make_registry())
        await second.initialize()

        assert second.graph.node_count == 3
        assert len(second.graph.get_edges(EdgeType.SEMANTIC)) == 1
        results = await second.search("cat on mat")
        assert results[0].note_id in {"a", "b"}
        await second.dispose()


@pytest.mark.integration
@pytest.mark.asyncio
class TestSearch:
    """Test search paths."""

    async def test_graphrag_ranks_related_note_above_unrelated(self, service):
        """Test that a matching note outranks an unrelated one."""
        await add_notes(service)

        results = await service.search("cat on mat")

        note_ids = [r.note_id for r in results]
        assert note_ids.index("a") < note_ids.index("c")
        assert results[0].note_id in {"a", "b"}
        assert results[0].title in {"A", "B"}
        assert results[0].graph_score is not None
        assert results[-1].note_id == "c"

    async def test_paraphrases_linked(self, service):
        """Test that paraphrased notes share a semantic edge."""
        await add_notes(service)

        assert "b_chunk_0" in service.graph.neighbors("a_chunk_0")
        assert service.graph.neighbors("c_chunk_0") == {}

    async def test_vector_store_search(self, service):
        """Test direct search against the persisted store."""
        await add_notes(service)
        service.set_search_backend("vector")

        results = await service.search("cat on mat", top_k=2)

        assert service.get_search_backend() == SearchBackend.VECTOR
        assert [r.note_id for r in results] == ["a", "b"]
        assert results[0].chunk_id == "a_chunk_0"
        assert results[0].content == "The cat sat on the mat."

    async def test_query_embedded_as_query(self, service):
        """Test that search embeds the query with the query role."""
        await service.search("  cat   on mat ")

        texts, is_query = service.embedder.calls[-1]
        assert texts == ["cat on mat"]
        assert is_query is True

    async def test_empty_query(self, service):
        """Test that an empty query returns nothing without embedding."""
        await add_notes(service)
        calls = len(service.embedder.calls)

        assert await service.search("   ") == []
        assert await service.search_vector_store("") == []
        assert len(service.embedder.calls) == calls

    async def test_top_k(self, service):
        """Test that results are limited to top_k."""
        await add_notes(service)

        assert len(await service.search("cat on mat", top_k=1)) == 1

    async def test_zero_top_k(self, service):
        """Test that top_k=0 returns nothing on both backends."""
        await add_notes(service)
        calls = len(service.embedder.calls)

        assert await service.search_graphrag("cat on mat", top_k=0) == []
        assert await service.search_vector_store("cat on mat", top_k=0) == []
        assert len(service.embedder.calls) == calls

    async def test_default_top_k(self, service):
        """Test that an omitted top_k falls back to the configured default."""
        service.config.search.default_top_k = 2
        await add_notes(service)

        assert len(await service.search_graphrag("cat on mat")) == 2
        assert len(await service.search_vector_store("cat on mat")) == 2


@pytest.mark.integration
@pytest.mark.asyncio
class TestProviderSwitching:
    """Test switching embedding providers."""

    async def test_switch_to_other_dimension(self, service):
        """Test that switching never searches stale vectors of the old dimension."""
        await add_notes(service)
        old_embedder = service.embedder

        await service.switch_provider("fake-b")

        assert service.state == ServiceState.READY
        assert old_embedder.closed is True
        assert service.embedder.dimension == 12
        assert service.graph.dimension == 12
        assert service.graph.node_count == 0
        assert service.vector_path == "notes-fake-b-12d-v1"
        assert await service.search("cat on mat") == []

    async def test_switch_back_reloads_vectors(self, service):
        """Test that each provider keeps its own persisted vectors."""
        await add_notes(service)
        await service.switch_provider("fake-b")
        await service.add_note("d", "D", "The dog was sleeping.")

        await service.switch_provider("fake-a")

        assert {n.note_id for n in service.graph.get_nodes()} == {"a", "b", "c"}
        results = await service.search("cat on mat")
        assert results[0].note_id in {"a", "b"}

    async def test_vector_search_during_switch(self, service):
        """Test that a vector search overtaken by a switch never reopens the old store."""
        await add_notes(service)
        service.set_search_backend("vector")
        old_embedder = service.embedder
        old_store = service.vector_store
        embed = old_embedder.embed

        async def embed_then_switch(text, is_query=False):
            vector = await embed(text, is_query)
            await service.switch_provider("fake-b")
            return vector

        old_embedder.embed = embed_then_switch

        results = await service.search("cat on mat")

        assert results == []
        assert service.vector_path == "notes-fake-b-12d-v1"
        assert old_store.connection is None
        with pytest.raises(VectorStoreError, match="closed"):
            await old_store.count()

    async def test_switch_to_unknown_provider(self, service):
        """Test that a failed switch keeps the current provider."""
        await add_notes(service)

        with pytest.raises(ConfigurationError):
            await service.switch_provider("missing")

        assert service.state == ServiceState.READY
        assert service.embedder.provider_id == "fake-a"
        assert service.graph.node_count == 3

    async def test_current_provider(self, service):
        """Test the active provider descriptor."""
        await service.switch_provider("fake-b")

        provider = service.get_current_provider()

        assert provider["id"] == "fake-b"
        assert provider["dimension"] == 12
        assert provider["vector_path"] == "notes-fake-b-12d-v1"


@pytest.mark.integration
@pytest.mark.asyncio
class TestStatus:
    """Test status and atlas reporting."""

    async def test_index_status(self, service):
        """Test sizes reported after indexing."""
        await add_notes(service)

        status = await service.get_index_status()

        assert status.has_index is True
        assert status.index_size == 3
        assert status.graph_nodes == 3
        assert status.graph_edges == 1
        assert status.needs_rebuild is False
        assert status.provider == "fake-a"
        assert status.dimension == 8
        assert status.state == ServiceState.READY

    async def test_empty_index_status(self, service):
        """Test status of an empty index."""
        status = await service.get_index_status()

        assert status.has_index is False
        assert status.index_size == 0

    async def test_needs_rebuild(self, service):
        """Test that persisted vectors missing from the graph flag a rebuild."""
        await add_notes(service)
        await service.vector_store.upsert_embedding("ghost_chunk_0", "ghost", [1.0] * 8)

        status = await service.get_index_status()

        assert status.needs_rebuild is True
        assert status.index_size == 4

    async def test_status_before_initialize(self, make_service, fake_registry):
        """Test status of a service that has not started."""
        status = await make_service(fake_registry).get_index_status()

        assert status.state == ServiceState.UNINITIALIZED
        assert status.has_index is False

    async def test_atlas_data(self, service):
        """Test atlas records are keyed by note id."""
        await add_notes(service)

        records = service.get_atlas_data()

        assert [r.id for r in records] == ["a", "b", "c"]
        assert [r.title for r in records] == ["A", "B", "C"]
        assert records[0].snippet == "The cat sat on the mat."
        assert len(records[0].vector) == 8
