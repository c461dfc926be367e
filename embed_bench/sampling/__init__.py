"""
Sampling module.

Next-token sampling used by the multi-step decoding helpers on a session:
- SamplingParams: temperature, top-k, top-p, repetition penalty and seed
- sample: pick the next token from a row of logits
"""

from embed_bench.sampling.sampling import SamplingParams, sample

__all__ = ["SamplingParams", "sample"]
