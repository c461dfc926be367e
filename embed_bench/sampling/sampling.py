"""
Sampling strategies for next-token selection.

This module implements the sampling chain applied to the last logits of a
session: repetition penalty, temperature, top-k and top-p filtering.
"""

import torch
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass
class SamplingParams:
    """Parameters for sampling strategies."""
    temperature: float = 0.80
    top_k: int = 40
    top_p: float = 0.95
    repeat_penalty: float = 1.30
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.temperature < 0.0:
            raise ValueError(f"temperature must be non-negative, got {self.temperature}")
        if self.top_k < 0:
            raise ValueError(f"top_k must be non-negative, got {self.top_k}")
        if not 0.0 < self.top_p <= 1.0:
            raise ValueError(f"top_p must be in (0, 1], got {self.top_p}")
        if self.repeat_penalty <= 0.0:
            raise ValueError(f"repeat_penalty must be positive, got {self.repeat_penalty}")


def greedy_sampling(logits: torch.Tensor) -> torch.Tensor:
    """Greedy sampling (argmax)."""
    return logits.argmax(dim=-1)


def temperature_scaling(logits: torch.Tensor, temperature: float) -> torch.Tensor:
    """Apply temperature scaling."""
    return logits / temperature


def top_k_filter(logits: torch.Tensor, k: int) -> torch.Tensor:
    """Keep the k highest logits, mask the rest with -inf."""
    if k <= 0 or k >= logits.shape[-1]:
        return logits

    top_k_logits, top_k_indices = torch.topk(logits, k, dim=-1)

    mask = torch.full_like(logits, float("-inf"))
    mask.scatter_(-1, top_k_indices, top_k_logits)

    return mask


def top_p_filter(logits: torch.Tensor, p: float) -> torch.Tensor:
    """Keep the smallest set of logits whose probability mass reaches p."""
    if p >= 1.0:
        return logits

    sorted_logits, sorted_indices = torch.sort(logits, descending=True, dim=-1)
    cumulative_probs = torch.cumsum(torch.softmax(sorted_logits, dim=-1), dim=-1)

    # Shift right so the token crossing the threshold is kept
    sorted_to_remove = cumulative_probs > p
    sorted_to_remove[..., 1:] = sorted_to_remove[..., :-1].clone()
    sorted_to_remove[..., 0] = False

    to_remove = sorted_to_remove.scatter(-1, sorted_indices, sorted_to_remove)
    return logits.masked_fill(to_remove, float("-inf"))


def apply_repetition_penalty(
    logits: torch.Tensor, previous_tokens: Sequence[int], penalty: float
) -> torch.Tensor:
    """Penalize tokens that already appear in the recent history.

    Positive logits are divided by the penalty and negative ones multiplied,
    so both move towards lower probability.
    """
    if penalty == 1.0 or len(previous_tokens) == 0:
        return logits

    logits = logits.clone()
    index = torch.tensor(sorted(set(previous_tokens)), dtype=torch.long, device=logits.device)
    selected = logits.index_select(-1, index)
    penalized = torch.where(selected > 0, selected / penalty, selected * penalty)
    logits.index_copy_(-1, index, penalized)

    return logits


def sample(
    logits: torch.Tensor,
    params: SamplingParams,
    previous_tokens: Optional[Sequence[int]] = None,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """Sample next token using specified parameters.

    Args:
        logits: Logits of shape [batch_size, vocab_size].
        params: Sampling parameters.
        previous_tokens: Recent token history for the repetition penalty.
        generator: Optional generator; a fresh seeded one is used when
            params.seed is set and no generator is given.

    Returns:
        Token ids of shape [batch_size].
    """
    logits = logits.float()

    if previous_tokens:
        logits = apply_repetition_penalty(logits, previous_tokens, params.repeat_penalty)

    if params.temperature == 0.0:
        return greedy_sampling(logits)

    if params.temperature != 1.0:
        logits = temperature_scaling(logits, params.temperature)

    if params.top_k > 0:
        logits = top_k_filter(logits, params.top_k)

    if params.top_p < 1.0:
        logits = top_p_filter(logits, params.top_p)

    probs = torch.softmax(logits, dim=-1)

    if generator is None and params.seed is not None:
        generator = torch.Generator(device=logits.device)
        generator.manual_seed(params.seed)

    return torch.multinomial(probs, num_samples=1, generator=generator).squeeze(-1)
