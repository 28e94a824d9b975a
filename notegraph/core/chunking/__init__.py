"""
Text chunking for note indexing.

Strategies:
- original (paragraph packing)
- basic (character windows)
- sentences (sentence packing)
- semantic (embedding-similarity grouping)
"""

from notegraph.core.chunking.chunker import TextChunker

__all__ = ["TextChunker"]
