"""
Model loading service.

load_dynamic turns (architecture, path, tokenizer source, parameters) into a
ready Model: it reads the checkpoint config, checks or detects the
architecture, loads the tokenizer and the weights, and reports progress to an
optional callback. Every failure surfaces as a LoadError naming the requested
architecture and the model path.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import torch
from transformers import AutoConfig, AutoModelForCausalLM

from embed_bench.core.model import Model, ModelParameters
from embed_bench.errors import LoadError
from embed_bench.models.architecture import ModelArchitecture
from embed_bench.models.causal_lm import HuggingFaceCausalModel
from embed_bench.tokenizer.source import EmbeddedTokenizer, TokenizerSource

logger = logging.getLogger(__name__)


class LoadProgress:
    """Base class of progress events emitted while loading a model."""


@dataclass
class HyperparametersLoaded(LoadProgress):
    model_type: str


@dataclass
class TokenizerLoaded(LoadProgress):
    vocab_size: int


@dataclass
class TensorsLoaded(LoadProgress):
    tensor_count: int
    byte_size: int


@dataclass
class Loaded(LoadProgress):
    tensor_count: int
    byte_size: int
    elapsed_s: float


LoadProgressCallback = Callable[[LoadProgress], None]


def load_progress_callback_stdout(progress: LoadProgress) -> None:
    """Print load progress events to stdout."""
    if isinstance(progress, HyperparametersLoaded):
        print(f"Loaded hyperparameters ({progress.model_type})")
    elif isinstance(progress, TokenizerLoaded):
        print(f"Loaded tokenizer with {progress.vocab_size} tokens")
    elif isinstance(progress, TensorsLoaded):
        print(f"Loaded {progress.tensor_count} tensors ({progress.byte_size / (1024 * 1024):.2f} MB)")
    elif isinstance(progress, Loaded):
        print(
            f"Loading of model complete in {progress.elapsed_s * 1000:.2f}ms\n"
            f"Model size = {progress.byte_size / (1024 * 1024):.2f} MB / "
            f"num tensors = {progress.tensor_count}"
        )


def resolve_device(use_gpu: bool) -> torch.device:
    """Pick the device for the weights, falling back to CPU without CUDA."""
    if use_gpu:
        if torch.cuda.is_available():
            return torch.device("cuda")
        logger.warning("GPU requested but CUDA is not available; falling back to CPU")
    return torch.device("cpu")


def resolve_architecture(
    requested: Optional[ModelArchitecture], model_type: str
) -> ModelArchitecture:
    """Check the requested architecture against the checkpoint, or detect it.

    Raises:
        ValueError: If the checkpoint's model_type is unsupported or does not
            match the requested architecture.
    """
    detected = ModelArchitecture.from_model_type(model_type)

    if requested is None:
        if detected is None:
            raise ValueError(f"Unsupported model_type {model_type!r}; cannot auto-detect architecture")
        logger.info("Auto-detected architecture %s", detected)
        return detected

    if detected is not requested:
        raise ValueError(
            f"Checkpoint declares model_type {model_type!r}, which does not match "
            f"the requested architecture {requested}"
        )
    return requested


def load_dynamic(
    architecture: Optional[ModelArchitecture],
    model_path: Union[str, Path],
    tokenizer_source: Optional[TokenizerSource] = None,
    params: Optional[ModelParameters] = None,
    load_progress_callback: Optional[LoadProgressCallback] = None,
) -> Model:
    """Load a model for benchmarking.

    Args:
        architecture: Required architecture, or None to auto-detect.
        model_path: Local checkpoint directory or HuggingFace model id.
        tokenizer_source: Where the tokenizer comes from (embedded if None).
        params: Load-time parameters (defaults if None).
        load_progress_callback: Optional observer of load progress events.

    Returns:
        A ready Model.

    Raises:
        LoadError: If the config, tokenizer or weights cannot be loaded, or
            the architecture does not match.
    """
    if params is None:
        params = ModelParameters()
    if tokenizer_source is None:
        tokenizer_source = EmbeddedTokenizer()

    def report(progress: LoadProgress) -> None:
        if load_progress_callback is not None:
            load_progress_callback(progress)

    requested = str(architecture) if architecture is not None else "auto-detected"
    path = str(model_path)
    start = time.perf_counter()

    try:
        logger.info("Loading %s model from %s with %s", requested, path, params.to_dict())

        hf_config = AutoConfig.from_pretrained(path, trust_remote_code=params.trust_remote_code)
        report(HyperparametersLoaded(model_type=hf_config.model_type))

        resolved = resolve_architecture(architecture, hf_config.model_type)

        tokenizer = tokenizer_source.retrieve(
            path,
            trust_remote_code=params.trust_remote_code,
            fallback_bos_token_id=getattr(hf_config, "bos_token_id", None),
            fallback_eos_token_id=getattr(hf_config, "eos_token_id", None),
        )
        report(TokenizerLoaded(vocab_size=tokenizer.vocab_size))

        device = resolve_device(params.use_gpu)
        hf_model = AutoModelForCausalLM.from_pretrained(
            path,
            torch_dtype=params.torch_dtype,
            trust_remote_code=params.trust_remote_code,
        )
        hf_model = hf_model.to(device)

        state_dict = hf_model.state_dict()
        tensor_count = len(state_dict)
        byte_size = sum(tensor.numel() * tensor.element_size() for tensor in state_dict.values())
        report(TensorsLoaded(tensor_count=tensor_count, byte_size=byte_size))

        context_size = params.context_size
        max_positions = getattr(hf_config, "max_position_embeddings", None)
        if max_positions is not None and max_positions < context_size:
            logger.info(
                "Clamping context size %d to the model's %d positions",
                context_size,
                max_positions,
            )
            context_size = max_positions

        model = HuggingFaceCausalModel(
            hf_model,
            tokenizer,
            architecture=resolved,
            context_size=context_size,
            device=device,
        )
    except Exception as e:
        raise LoadError(
            f"Failed to load {requested} model from {path}: {str(e)}",
            architecture=str(architecture) if architecture is not None else None,
            path=path,
        ) from e

    elapsed = time.perf_counter() - start
    report(Loaded(tensor_count=tensor_count, byte_size=byte_size, elapsed_s=elapsed))
    logger.info("Loaded %r in %.2fs", model, elapsed)

    return model
