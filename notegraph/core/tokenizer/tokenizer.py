"""
Token counting utilities for chunk sizing.

Uses tiktoken for accurate OpenAI-compatible token counting with
character-based approximation as a configurable fast mode.
"""

import tiktoken

from notegraph.config import TokenizerConfig


class Tokenizer:
    """
    Token counter used to keep chunks inside an embedding model's window.

    Usage:
        tokenizer = Tokenizer()
        count = tokenizer.count_tokens("Hello world")
        fits = tokenizer.fits("Some text", 500)
    """

    def __init__(self, config: TokenizerConfig | None = None):
        """
        Initialize tokenizer with configuration.

        Args:
            config: Optional tokenizer configuration. Uses defaults if not provided.
        """
        self.config = config or TokenizerConfig()
        self._encoder: tiktoken.Encoding | None = None

    @property
    def encoder(self) -> tiktoken.Encoding:
        """
        Lazy-load tiktoken encoder.

        Returns:
            Tiktoken encoding instance
        """
        if self._encoder is None:
            self._encoder = tiktoken.get_encoding(self.config.model)
        return self._encoder

    def count_tokens(self, text: str) -> int:
        """
        Count tokens using the configured provider.

        Args:
            text: Text to count tokens for

        Returns:
            Token count
        """
        if not text:
            return 0

        if self.config.provider == "approximate":
            return self.estimate_tokens(text)

        return len(self.encoder.encode(text))

    def estimate_tokens(self, text: str) -> int:
        """
        Fast approximate token count using character ratio.

        Uses the configured chars_per_token ratio (default 4.0) for
        quick estimation without loading the tokenizer. Non-empty text
        always counts as at least one token.

        Args:
            text: Text to estimate tokens for

        Returns:
            Approximate token count
        """
        if not text:
            return 0
        return max(1, int(len(text) / self.config.chars_per_token))

    def fits(self, text: str, max_tokens: int) -> bool:
        """Check whether text fits inside a token budget."""
        # Fast path: the estimate is well under budget
        if self.estimate_tokens(text) < max_tokens * 0.8:
            return True
        return self.count_tokens(text) <= max_tokens
