"""
In-memory knowledge graph over note chunks.

Nodes are embedded chunks; edges come in two families:

- sequential: adjacent chunks of the same note (weight 1.0)
- semantic: chunk pairs whose cosine similarity reaches a threshold

Edge families are always rebuilt wholesale (clear, then build) when node
membership changes. Queries rank nodes by blending query similarity with
visit frequency from a personalized random walk over one edge family.
"""

from collections import defaultdict
from collections.abc import Callable
from typing import Any

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from notegraph.config import GraphConfig
from notegraph.core.index.base import VectorIndex
from notegraph.models.graph import Edge, EdgeType, GraphNode, RankedNode
from notegraph.utils.exceptions import DimensionMismatchError, GraphError
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class GraphRAG:
    """
    Knowledge graph with random-walk ranking.

    Usage:
        graph = GraphRAG(dimension=384)
        graph.add_node(GraphNode(id="n1_chunk_0", content="...", embedding=vec, metadata={...}))
        graph.build_sequential_edges()
        graph.build_semantic_edges(threshold=0.82, index=ExactIndex(384), k=5)
        results = graph.query(query_vec, top_k=5)
    """

    def __init__(self, dimension: int, config: GraphConfig | None = None):
        """
        Initialize graph.

        Args:
            dimension: Required length of every node embedding
            config: Ranking and edge defaults
        """
        if dimension <= 0:
            raise GraphError(f"Invalid graph dimension: {dimension}")

        self.dimension = dimension
        self.config = config or GraphConfig()
        self._nodes: dict[str, GraphNode] = {}
        self._edges: dict[EdgeType, dict[tuple[str, str], Edge]] = {t: {} for t in EdgeType}
        self._adjacency: dict[EdgeType, dict[str, dict[str, float]]] = {
            t: defaultdict(dict) for t in EdgeType
        }

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self._edges.values())

    # ═══════════════════════════════════════════════════════════
    # NODE OPERATIONS
    # ═══════════════════════════════════════════════════════════

    def add_node(self, node: GraphNode) -> None:
        """
        Add or replace a node.

        Raises:
            DimensionMismatchError: If the embedding length differs from the graph dimension
        """
        if len(node.embedding) != self.dimension:
            raise DimensionMismatchError(
                expected=self.dimension,
                actual=len(node.embedding),
                message=(
                    f"Node {node.id} embedding has dimension {len(node.embedding)}, "
                    f"graph expects {self.dimension}"
                ),
            )
        self._nodes[node.id] = node

    def get_node(self, node_id: str) -> GraphNode | None:
        return self._nodes.get(node_id)

    def get_nodes(self) -> list[GraphNode]:
        """All nodes in insertion order."""
        return list(self._nodes.values())

    def remove_nodes(self, predicate: Callable[[GraphNode], bool]) -> list[str]:
        """
        Remove every node matching a predicate, with all edges touching it.

        Returns:
            IDs of removed nodes
        """
        removed = [node_id for node_id, node in self._nodes.items() if predicate(node)]
        if not removed:
            return []

        removed_set = set(removed)
        for node_id in removed:
            del self._nodes[node_id]

        for edge_type in EdgeType:
            stale = [
                key
                for key in self._edges[edge_type]
                if key[0] in removed_set or key[1] in removed_set
            ]
            for key in stale:
                self._drop_edge(edge_type, key)

        return removed

    def clear(self) -> None:
        """Remove all nodes and edges."""
        self._nodes.clear()
        self.clear_edges()

    # ═══════════════════════════════════════════════════════════
    # EDGE OPERATIONS
    # ═══════════════════════════════════════════════════════════

    def get_edges(self, edge_type: EdgeType | str | None = None) -> list[Edge]:
        if edge_type is None:
            return [edge for edges in self._edges.values() for edge in edges.values()]
        return list(self._edges[EdgeType(edge_type)].values())

    def neighbors(
        self, node_id: str, edge_type: EdgeType | str = EdgeType.SEMANTIC
    ) -> dict[str, float]:
        """Neighbor id -> edge weight for one edge family."""
        return dict(self._adjacency[EdgeType(edge_type)].get(node_id, {}))

    def clear_edges(self, edge_type: EdgeType | str | None = None) -> None:
        """Clear one edge family, or all of them."""
        types = list(EdgeType) if edge_type is None else [EdgeType(edge_type)]
        for t in types:
            self._edges[t] = {}
            self._adjacency[t] = defaultdict(dict)

    def _add_edge(self, source: str, target: str, edge_type: EdgeType, weight: float) -> bool:
        """Add an undirected edge; returns False for self loops and duplicates."""
        if source == target:
            return False
        if source not in self._nodes or target not in self._nodes:
            raise GraphError(
                f"Edge {source} -> {target} references a missing node",
                {"type": edge_type.value},
            )

        key = (source, target) if source < target else (target, source)
        if key in self._edges[edge_type]:
            return False

        self._edges[edge_type][key] = Edge(
            source=source, target=target, type=edge_type, weight=weight
        )
        self._adjacency[edge_type][source][target] = weight
        self._adjacency[edge_type][target][source] = weight
        return True

    def _drop_edge(self, edge_type: EdgeType, key: tuple[str, str]) -> None:
        del self._edges[edge_type][key]
        a, b = key
        adjacency = self._adjacency[edge_type]
        adjacency[a].pop(b, None)
        adjacency[b].pop(a, None)
        for node_id in (a, b):
            if node_id in adjacency and not adjacency[node_id]:
                del adjacency[node_id]

    def build_sequential_edges(
        self, metadata_key: str = "chunk_index", group_by: str = "original_note_id"
    ) -> int:
        """
        Connect consecutive chunks within each group.

        Nodes are grouped by `metadata[group_by]` and ordered by
        `metadata[metadata_key]`. Nodes missing either key are left unconnected.

        Returns:
            Number of edges added
        """
        groups: dict[Any, list[GraphNode]] = defaultdict(list)
        for node in self._nodes.values():
            if group_by in node.metadata and metadata_key in node.metadata:
                groups[node.metadata[group_by]].append(node)

        added = 0
        for members in groups.values():
            members.sort(key=lambda n: n.metadata[metadata_key])
            for prev, nxt in zip(members, members[1:]):
                if self._add_edge(prev.id, nxt.id, EdgeType.SEQUENTIAL, 1.0):
                    added += 1

        logger.debug(f"Built {added} sequential edges across {len(groups)} groups")
        return added

    def build_semantic_edges(self, threshold: float, index: VectorIndex, k: int = 5) -> int:
        """
        Connect each node to its nearest neighbors above a similarity threshold.

        The index is cleared and refilled with every node first. Each node
        considers at most min(k, max(1, n - 1)) neighbors besides itself.

        Args:
            threshold: Minimum cosine similarity (inclusive)
            index: Nearest-neighbor index of matching dimension
            k: Neighbors considered per node

        Returns:
            Number of edges added
        """
        if index.dimension != self.dimension:
            raise GraphError(
                f"Index dimension {index.dimension} does not match graph dimension "
                f"{self.dimension}"
            )

        index.clear()
        nodes = list(self._nodes.values())
        for node in nodes:
            index.insert(node.id, node.embedding)

        n = len(nodes)
        if n < 2:
            return 0

        k = min(k, max(1, n - 1))
        added = 0
        for node in nodes:
            considered = 0
            for neighbor_id, distance in index.query(node.embedding, k + 1):
                if neighbor_id == node.id:
                    continue
                if considered >= k:
                    break
                considered += 1

                similarity = 1.0 - distance
                if similarity >= threshold and self._add_edge(
                    node.id, neighbor_id, EdgeType.SEMANTIC, similarity
                ):
                    added += 1

        logger.debug(f"Built {added} semantic edges for {n} nodes (k={k}, threshold={threshold})")
        return added

    # ═══════════════════════════════════════════════════════════
    # RANKING
    # ═══════════════════════════════════════════════════════════

    def query(
        self,
        query_embedding: list[float],
        top_k: int = 10,
        random_walk_steps: int | None = None,
        restart_prob: float | None = None,
        walk_edge_type: EdgeType | str | None = None,
    ) -> list[RankedNode]:
        """
        Rank nodes against a query embedding.

        score = (1 - walk_weight) * similarity + walk_weight * graph_score, where
        graph_score is the node's walk visit count normalized by the maximum.
        Ties keep insertion order.

        Raises:
            DimensionMismatchError: If the query length differs from the graph dimension
        """
        if len(query_embedding) != self.dimension:
            raise DimensionMismatchError(expected=self.dimension, actual=len(query_embedding))

        nodes = list(self._nodes.values())
        if not nodes or top_k <= 0:
            return []

        steps = self.config.random_walk_steps if random_walk_steps is None else random_walk_steps
        restart = self.config.restart_prob if restart_prob is None else restart_prob
        edge_type = EdgeType(walk_edge_type or self.config.walk_edge_type)

        query_vec = np.asarray(query_embedding, dtype=np.float64).reshape(1, -1)
        matrix = np.asarray([node.embedding for node in nodes], dtype=np.float64)
        similarities = cosine_similarity(query_vec, matrix)[0]

        graph_scores = self._random_walk(nodes, similarities, steps, restart, edge_type)

        weight = self.config.walk_weight
        scores = (1.0 - weight) * similarities + weight * graph_scores

        order = np.argsort(-scores, kind="stable")[:top_k]
        return [
            RankedNode(
                id=nodes[i].id,
                content=nodes[i].content,
                score=float(scores[i]),
                similarity=float(similarities[i]),
                graph_score=float(graph_scores[i]),
                metadata=dict(nodes[i].metadata),
            )
            for i in order
        ]

    def _random_walk(
        self,
        nodes: list[GraphNode],
        similarities: np.ndarray,
        steps: int,
        restart_prob: float,
        edge_type: EdgeType,
    ) -> np.ndarray:
        """Normalized visit counts of a walk restarting at the most similar nodes."""
        visits = np.zeros(len(nodes))
        adjacency = self._adjacency[edge_type]
        if steps <= 0 or not self._edges[edge_type]:
            return visits

        positions = {node.id: i for i, node in enumerate(nodes)}
        seed_count = min(self.config.seed_count, len(nodes))
        seeds = np.argsort(-similarities, kind="stable")[:seed_count]
        seed_p = self._distribution(similarities[seeds])

        rng = np.random.default_rng(self.config.random_seed)
        current = int(seeds[rng.choice(len(seeds), p=seed_p)])

        for _ in range(steps):
            neighbors = adjacency.get(nodes[current].id)
            if not neighbors or rng.random() < restart_prob:
                # Restarts are not visits
                current = int(seeds[rng.choice(len(seeds), p=seed_p)])
                continue

            neighbor_ids = list(neighbors)
            p = self._distribution(np.asarray([neighbors[i] for i in neighbor_ids]))
            current = positions[neighbor_ids[rng.choice(len(neighbor_ids), p=p)]]
            visits[current] += 1

        max_visits = visits.max()
        return visits / max_visits if max_visits > 0 else visits

    @staticmethod
    def _distribution(weights: np.ndarray) -> np.ndarray:
        """Probabilities proportional to positive weights; uniform when none are positive."""
        positive = np.clip(weights.astype(np.float64), 0.0, None)
        total = positive.sum()
        if total <= 0:
            return np.full(len(weights), 1.0 / len(weights))
        return positive / total
