"""
Services for NoteGraph.

High-level services:
- EmbeddingsService: Indexing, search and provider lifecycle
- to_atlas_data: 2D projection of indexed vectors
"""

from notegraph.services.atlas import to_atlas_data
from notegraph.services.embeddings_service import EmbeddingsService

__all__ = [
    "EmbeddingsService",
    "to_atlas_data",
]
