"""Exception taxonomy for the link gap engine."""

from __future__ import annotations


class LinkGapError(Exception):
    """Base exception for analysis errors."""

    def __init__(self, message: str, operation: str | None = None):
        self.operation = operation
        super().__init__(message)


class InsufficientContent(LinkGapError):
    """Raised when a page has too few words for the requested analysis."""

    def __init__(self, words: int, minimum: int):
        self.words = words
        self.minimum = minimum
        super().__init__(f"Insufficient content: {words} words (minimum {minimum})", operation="content")


class ExtractionFailure(LinkGapError):
    """Raised when no usable main-content region is found."""

    def __init__(self, message: str):
        super().__init__(message, operation="extraction")


class ServiceUnavailable(LinkGapError):
    """Raised when the embedding service fails after all retries."""

    def __init__(self, message: str, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message, operation="embedding")


class MalformedEmbeddingData(LinkGapError):
    """Raised when an embedding string cannot be repaired."""

    def __init__(self, message: str):
        super().__init__(message, operation="repair")


class DimensionMismatch(LinkGapError):
    """Raised when two embeddings of different lengths are compared."""

    def __init__(self, left: int, right: int):
        self.left = left
        self.right = right
        super().__init__(f"Vector dimension mismatch: {left} != {right}", operation="similarity")


class ConfigurationError(LinkGapError):
    """Raised when the engine configuration can never produce a valid analysis."""

    def __init__(self, message: str):
        super().__init__(message, operation="config")
