"""
Tests for sampling strategies.
"""

import pytest
import torch

from embed_bench.sampling.sampling import (
    SamplingParams,
    apply_repetition_penalty,
    greedy_sampling,
    sample,
    top_k_filter,
    top_p_filter,
)


@pytest.mark.unit
def test_sampling_params_defaults():
    params = SamplingParams()

    assert params.temperature == 0.80
    assert params.top_k == 40
    assert params.top_p == 0.95
    assert params.repeat_penalty == 1.30
    assert params.seed is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "kwargs",
    [{"temperature": -1.0}, {"top_k": -1}, {"top_p": 0.0}, {"top_p": 1.5}, {"repeat_penalty": 0.0}],
)
def test_sampling_params_validation(kwargs):
    with pytest.raises(ValueError):
        SamplingParams(**kwargs)


@pytest.mark.unit
def test_greedy_sampling():
    logits = torch.tensor([[0.1, 2.0, 0.5], [3.0, 0.0, -1.0]])

    assert torch.equal(greedy_sampling(logits), torch.tensor([1, 0]))


@pytest.mark.unit
def test_top_k_filter_masks_the_rest():
    logits = torch.tensor([[1.0, 4.0, 3.0, 2.0]])

    filtered = top_k_filter(logits, 2)

    assert torch.isinf(filtered[0, 0]) and torch.isinf(filtered[0, 3])
    assert filtered[0, 1] == 4.0 and filtered[0, 2] == 3.0


@pytest.mark.unit
def test_top_p_filter_keeps_threshold_token():
    # softmax ~ [0.64, 0.24, 0.09, 0.03]
    logits = torch.tensor([[3.0, 2.0, 1.0, 0.0]])

    filtered = top_p_filter(logits, 0.7)

    assert torch.isfinite(filtered[0, :2]).all()
    assert torch.isinf(filtered[0, 2:]).all()


@pytest.mark.unit
def test_repetition_penalty_moves_logits_down():
    logits = torch.tensor([[2.0, -2.0, 1.0]])

    penalized = apply_repetition_penalty(logits, [0, 1, 1], 2.0)

    assert torch.equal(penalized, torch.tensor([[1.0, -4.0, 1.0]]))
    # input is not modified
    assert torch.equal(logits, torch.tensor([[2.0, -2.0, 1.0]]))


@pytest.mark.unit
def test_sample_with_seed_is_reproducible():
    logits = torch.randn(1, 50)
    params = SamplingParams(temperature=1.0, top_k=0, top_p=1.0, seed=123)

    assert torch.equal(sample(logits, params), sample(logits, params))


@pytest.mark.unit
def test_sample_zero_temperature_is_greedy():
    logits = torch.tensor([[0.0, 1.0, 5.0, 2.0]])

    assert sample(logits, SamplingParams(temperature=0.0)).item() == 2


@pytest.mark.unit
def test_sample_with_penalty_avoids_repeated_token():
    logits = torch.tensor([[5.0, 4.9, 0.0]])
    params = SamplingParams(temperature=0.0, repeat_penalty=2.0)

    assert sample(logits, params, previous_tokens=[0]).item() == 1
