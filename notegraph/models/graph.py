"""
Knowledge graph models: chunk nodes, typed edges, and ranked query results.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EdgeType(str, Enum):
    """Edge families maintained by the knowledge graph."""

    SEQUENTIAL = "sequential"  # Adjacent chunks of the same note
    SEMANTIC = "semantic"  # Cross-chunk similarity above threshold


class GraphNode(BaseModel):
    """One embedded chunk inside the knowledge graph."""

    id: str = Field(..., description="Deterministic chunk node ID ({note_id}_chunk_N)")
    content: str = Field(..., description="Chunk text")
    embedding: list[float] = Field(default_factory=list, description="Vector embedding")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Node metadata")

    @property
    def note_id(self) -> str:
        """ID of the note this chunk came from."""
        return self.metadata.get("original_note_id", self.id)

    @property
    def title(self) -> str:
        """Title of the originating note."""
        return self.metadata.get("title") or "Untitled"


class Edge(BaseModel):
    """Undirected, weighted relation between two graph nodes."""

    source: str
    target: str
    type: EdgeType
    weight: float = 1.0

    def connects(self, node_id: str) -> bool:
        """Check whether the edge touches a node."""
        return node_id in (self.source, self.target)


class RankedNode(BaseModel):
    """Graph query result."""

    id: str
    content: str
    score: float
    similarity: float
    graph_score: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)
