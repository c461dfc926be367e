"""
Exception hierarchy for embed_bench.

Each error also derives from the builtin the surrounding code historically
raised, so callers catching ValueError or RuntimeError keep working.
"""

from typing import Optional


class EmbedBenchError(Exception):
    """Base class for all embed_bench errors."""


class ConfigurationError(EmbedBenchError, ValueError):
    """Raised when options conflict before any expensive work starts."""


class LoadError(EmbedBenchError, RuntimeError):
    """Raised when a model or tokenizer cannot be loaded.

    Attributes:
        architecture: Requested architecture identifier, or None for auto-detect.
        path: Model path the load was attempted from.
    """

    def __init__(
        self,
        message: str,
        architecture: Optional[str] = None,
        path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.architecture = architecture
        self.path = path


class TokenizeError(EmbedBenchError, ValueError):
    """Raised when the vocabulary cannot represent part of the input text."""

    def __init__(self, message: str, segment: Optional[str] = None) -> None:
        super().__init__(message)
        self.segment = segment


class EvaluationError(EmbedBenchError, RuntimeError):
    """Raised when a forward evaluation cannot be performed."""


class ContextFullError(EvaluationError):
    """Raised when an evaluation would exceed the session's context window."""


class ConcurrentSessionError(EvaluationError):
    """Raised when a session is evaluated while another evaluation is running."""
