"""Test utilities for embed_bench."""

from tests.utils.comparison import (
    assert_tensors_close,
    assert_token_ids_equal,
    assert_vectors_close,
)
from tests.utils.stub_model import BlockingStubModel, StubModel, StubTokenizer

__all__ = [
    # Comparison utilities
    "assert_tensors_close",
    "assert_vectors_close",
    "assert_token_ids_equal",
    # Stub collaborators
    "StubTokenizer",
    "StubModel",
    "BlockingStubModel",
]
