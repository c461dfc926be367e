"""
embed_bench: a micro-benchmark harness for embedding extraction.

This package measures how fast a language model turns a text query into an
embedding vector:
- Tokenizer adapters and tokenizer source selection
- Stateful inference sessions with KV cache continuity
- Output requests that declare which outputs an evaluation computes
- A model loading service over HuggingFace checkpoints
- A benchmark driver reporting tokens processed per millisecond
"""

__version__ = "0.1.0"
__author__ = "embed-bench contributors"

from embed_bench.core.model import Model, ModelParameters
from embed_bench.core.output_request import OutputRequest
from embed_bench.core.session import InferenceSession, InferenceSessionConfig
from embed_bench.errors import (
    ConfigurationError,
    ContextFullError,
    EmbedBenchError,
    EvaluationError,
    LoadError,
    TokenizeError,
)

__all__ = [
    "Model",
    "ModelParameters",
    "OutputRequest",
    "InferenceSession",
    "InferenceSessionConfig",
    "EmbedBenchError",
    "ConfigurationError",
    "LoadError",
    "TokenizeError",
    "EvaluationError",
    "ContextFullError",
]
