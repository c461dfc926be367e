"""
Core pipeline contract.

Provides the pieces every model architecture plugs into:
- Model: abstract capability set (start_session, evaluate, tokenizer)
- ModelParameters: load-time model configuration
- InferenceSession: mutable, model-bound evaluation context
- OutputRequest: declares which outputs an evaluation populates
"""

from embed_bench.core.model import Model, ModelParameters
from embed_bench.core.output_request import OutputRequest
from embed_bench.core.session import InferenceSession, InferenceSessionConfig

__all__ = [
    "Model",
    "ModelParameters",
    "OutputRequest",
    "InferenceSession",
    "InferenceSessionConfig",
]
