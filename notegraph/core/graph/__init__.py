"""
Knowledge graph (GraphRAG) over note chunks.
"""

from notegraph.core.graph.graphrag import GraphRAG

__all__ = ["GraphRAG"]
