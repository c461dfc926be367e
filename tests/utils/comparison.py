"""
Utilities for comparing model outputs with numerical tolerance.

This module provides functions for comparing tensors, embedding vectors and
token id sequences with appropriate tolerance for floating point comparisons.
"""

from typing import Optional, Sequence

import torch


def assert_tensors_close(
    tensor1: torch.Tensor,
    tensor2: torch.Tensor,
    atol: float = 1e-5,
    rtol: float = 1e-4,
    msg: Optional[str] = None,
) -> None:
    """
    Assert that two tensors are close within specified tolerance.

    Args:
        tensor1: First tensor to compare
        tensor2: Second tensor to compare
        atol: Absolute tolerance (default: 1e-5)
        rtol: Relative tolerance (default: 1e-4)
        msg: Optional custom error message

    Raises:
        AssertionError: If tensors differ by more than tolerance or have different shapes
    """
    if tensor1.shape != tensor2.shape:
        error_msg = (
            f"Tensor shapes do not match: {tensor1.shape} vs {tensor2.shape}"
        )
        if msg:
            error_msg = f"{msg}: {error_msg}"
        raise AssertionError(error_msg)

    if not torch.allclose(tensor1, tensor2, atol=atol, rtol=rtol):
        max_diff = torch.max(torch.abs(tensor1 - tensor2)).item()
        error_msg = (
            f"Tensors are not close within tolerance. "
            f"Max difference: {max_diff:.6e}, atol: {atol:.6e}, rtol: {rtol:.6e}"
        )
        if msg:
            error_msg = f"{msg}: {error_msg}"
        raise AssertionError(error_msg)


def assert_vectors_close(
    vector1: Sequence[float],
    vector2: Sequence[float],
    atol: float = 1e-5,
    rtol: float = 1e-4,
    msg: Optional[str] = None,
) -> None:
    """
    Assert that two float vectors (e.g. embeddings) are close.

    Example:
        >>> assert_vectors_close([0.1, 0.2], [0.100001, 0.2])
    """
    assert_tensors_close(
        torch.tensor(list(vector1), dtype=torch.float32),
        torch.tensor(list(vector2), dtype=torch.float32),
        atol=atol,
        rtol=rtol,
        msg=msg or "Vector comparison failed",
    )


def assert_token_ids_equal(
    tokens1: Sequence[int],
    tokens2: Sequence[int],
    msg: Optional[str] = None,
) -> None:
    """
    Assert that two token id sequences are exactly equal.

    Raises:
        AssertionError: With the first mismatching index if the sequences differ
    """
    tokens1, tokens2 = list(tokens1), list(tokens2)
    if tokens1 == tokens2:
        return

    if len(tokens1) != len(tokens2):
        error_msg = f"Token sequence lengths do not match: {len(tokens1)} vs {len(tokens2)}"
    else:
        first_diff_idx = next(i for i, (a, b) in enumerate(zip(tokens1, tokens2)) if a != b)
        error_msg = (
            f"Token sequences differ. First mismatch at index {first_diff_idx}: "
            f"{tokens1[first_diff_idx]} vs {tokens2[first_diff_idx]}"
        )
    if msg:
        error_msg = f"{msg}: {error_msg}"
    raise AssertionError(error_msg)
