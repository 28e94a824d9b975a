"""
Tokenizer module for token counting.

Provides accurate token counting using tiktoken with fast approximation mode.
Used by the chunker to keep chunks within the embedding model's window.
"""

from notegraph.config import TokenizerConfig
from notegraph.core.tokenizer.tokenizer import Tokenizer

__all__ = ["Tokenizer", "TokenizerConfig"]
