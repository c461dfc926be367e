"""
Concrete model architectures and the loading service.

Components:
- ModelArchitecture: known architectures and auto-detection
- HuggingFaceCausalModel: Model contract over transformers causal LMs
- load_dynamic: build a Model from a checkpoint path and tokenizer source
"""

from embed_bench.models.architecture import ModelArchitecture
from embed_bench.models.causal_lm import HuggingFaceCausalModel
from embed_bench.models.loader import (
    LoadProgress,
    load_dynamic,
    load_progress_callback_stdout,
)

__all__ = [
    "ModelArchitecture",
    "HuggingFaceCausalModel",
    "LoadProgress",
    "load_dynamic",
    "load_progress_callback_stdout",
]
