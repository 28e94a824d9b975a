"""
Data models for NoteGraph.

Core models:
- Chunk, ChunkingMethod, SemanticChunkingOptions: Note text segmentation
- GraphNode, Edge, EdgeType, RankedNode: Knowledge graph
- StoredVector, VectorSearchHit: Persisted vector records
- NoteInput, SearchResult, SearchBackend, IndexStatus, ServiceState, AtlasRecord,
  AtlasData: Host-facing contracts
"""

from notegraph.models.chunk import Chunk, ChunkingMethod, SemanticChunkingOptions
from notegraph.models.graph import Edge, EdgeType, GraphNode, RankedNode
from notegraph.models.search import (
    AtlasData,
    AtlasRecord,
    IndexStatus,
    NoteInput,
    SearchBackend,
    SearchResult,
    ServiceState,
)
from notegraph.models.vector import StoredVector, VectorSearchHit

__all__ = [
    # Chunk models
    "Chunk",
    "ChunkingMethod",
    "SemanticChunkingOptions",
    # Graph models
    "GraphNode",
    "Edge",
    "EdgeType",
    "RankedNode",
    # Vector models
    "StoredVector",
    "VectorSearchHit",
    # Host-facing models
    "NoteInput",
    "SearchResult",
    "SearchBackend",
    "IndexStatus",
    "ServiceState",
    "AtlasRecord",
    "AtlasData",
]
