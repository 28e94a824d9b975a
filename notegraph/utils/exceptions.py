"""
Custom exception hierarchy for NoteGraph.

Provides structured error types for better error handling and debugging.
All exceptions inherit from NoteGraphError for easy catching.
"""


class NoteGraphError(Exception):
    """
    Base exception for all NoteGraph errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize NoteGraph error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StoreError(NoteGraphError):
    """
    Base exception for store operations.
    Used for errors related to data storage operations.
    """

    pass


class VectorStoreError(StoreError):
    """
    Vector store operation errors.
    Raised when persisted vector store operations fail.
    """

    pass


class VectorIndexError(NoteGraphError):
    """
    Approximate nearest-neighbor index errors.
    Raised when the in-memory ANN index rejects an insert or query.
    """

    pass


class GraphError(NoteGraphError):
    """
    Knowledge graph errors.
    Raised on broken graph invariants; these indicate programming bugs.
    """

    pass


class ValidationError(NoteGraphError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    pass


class NotFoundError(NoteGraphError):
    """
    Resource not found errors.
    Raised when a requested resource (provider, node, etc.) doesn't exist.
    """

    pass


class ConfigurationError(NoteGraphError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values,
    including when no embedding provider can be activated.
    """

    pass


class EmbeddingError(NoteGraphError):
    """
    Embedding generation errors.
    Raised when embedding generation fails.
    """

    pass


class DimensionMismatchError(EmbeddingError):
    """
    Embedding dimension errors.
    Raised when a vector's length differs from the declared dimension.
    """

    def __init__(
        self,
        expected: int,
        actual: int,
        provider: str | None = None,
        message: str | None = None,
    ):
        provider_label = provider or "unknown provider"
        super().__init__(
            message
            or f"Embedding dimension mismatch for {provider_label}: "
            f"expected {expected}, got {actual}",
            context={"expected": expected, "actual": actual, "provider": provider},
        )
        self.expected = expected
        self.actual = actual
        self.provider = provider


class ChunkingError(NoteGraphError):
    """
    Chunking errors.
    Raised by chunking strategies; the chunker degrades to basic chunking.
    """

    pass


class ServiceStateError(NoteGraphError):
    """
    Service lifecycle errors.
    Raised when an operation is invoked in a state that does not allow it.
    """

    pass
