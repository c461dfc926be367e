"""
Benchmark driver and command-line surface.

- EmbeddingBenchmark / get_embeddings: timed embedding extraction
- compute_rate: tokens per millisecond
- main: embed-bench command
"""

from embed_bench.bench.driver import (
    BenchmarkState,
    EmbeddingBenchmark,
    EmbeddingBenchmarkResult,
    compute_rate,
    get_embeddings,
    load_query,
)

__all__ = [
    "BenchmarkState",
    "EmbeddingBenchmark",
    "EmbeddingBenchmarkResult",
    "compute_rate",
    "get_embeddings",
    "load_query",
]
