"""
Models exchanged with the host application: notes in, results and status out.
"""

from enum import Enum

from pydantic import BaseModel, Field


class SearchBackend(str, Enum):
    """Search paths the orchestrator can dispatch to."""

    GRAPHRAG = "graphrag"  # Similarity + personalized random walk over the graph
    VECTOR = "vector"  # Direct nearest-neighbor search on the persisted store


class ServiceState(str, Enum):
    """Lifecycle states of the embeddings service."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    SWITCHING_PROVIDER = "switching_provider"
    ERROR = "error"
    DISPOSED = "disposed"


class NoteInput(BaseModel):
    """Note read model supplied by the host; content is already flattened to text."""

    id: str
    title: str = ""
    content: str = ""


class SearchResult(BaseModel):
    """Ranked search hit mapped back to its note."""

    note_id: str
    title: str
    content: str
    score: float
    graph_score: float | None = None
    chunk_id: str | None = None


class IndexStatus(BaseModel):
    """Snapshot of index and graph sizes."""

    has_index: bool = False
    index_size: int = 0
    needs_rebuild: bool = False
    graph_nodes: int = 0
    graph_edges: int = 0
    provider: str | None = None
    dimension: int | None = None
    vector_path: str | None = None
    state: ServiceState = ServiceState.UNINITIALIZED


class AtlasRecord(BaseModel):
    """Raw vector plus display fields for one indexed chunk."""

    id: str
    title: str
    snippet: str
    vector: list[float] = Field(default_factory=list)


class AtlasData(BaseModel):
    """2D projection of atlas records, column-oriented for plotting."""

    x: list[float] = Field(default_factory=list)
    y: list[float] = Field(default_factory=list)
    ids: list[str] = Field(default_factory=list)
    titles: list[str] = Field(default_factory=list)
    snippets: list[str] = Field(default_factory=list)
    categories: list[int] = Field(default_factory=list)
