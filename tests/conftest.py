"""
Pytest configuration and shared fixtures for embed_bench tests.

This module provides reusable fixtures for testing, including:
- Stub model and tokenizer (no weights, no network)
- A tiny randomly initialised GPT-2 checkpoint with an offline word-level
  tokenizer, written once per session to a temp directory
- CPU device enforcement
- The real model name used by integration tests
"""

import os
from pathlib import Path

import pytest
import torch
from tokenizers import Tokenizer as RawTokenizer
from tokenizers.models import WordLevel
from tokenizers.pre_tokenizers import Whitespace
from transformers import GPT2Config, GPT2LMHeadModel, PreTrainedTokenizerFast

from embed_bench.core.model import ModelParameters
from embed_bench.models.architecture import ModelArchitecture
from embed_bench.models.loader import load_dynamic
from tests.utils.stub_model import StubModel


# Force CPU-only testing by disabling CUDA
os.environ["CUDA_VISIBLE_DEVICES"] = ""

TINY_WORDS = [
    "hello", "world", "the", "quick", "brown", "fox", "jumps", "over",
    "lazy", "dog", "café", "embedding", "benchmark", "session", ".", ",",
]
TINY_CONTEXT = 64


@pytest.fixture
def stub_model() -> StubModel:
    """A fresh StubModel (function-scoped, it records calls)."""
    return StubModel()


@pytest.fixture(scope="session")
def cpu_device() -> torch.device:
    """Force CPU device for all tests."""
    return torch.device("cpu")


@pytest.fixture(scope="session")
def tiny_vocab() -> dict:
    """Word-level vocabulary of the tiny checkpoint: specials first."""
    vocab = {"<s>": 0, "</s>": 1, "<unk>": 2}
    for word in TINY_WORDS:
        vocab[word] = len(vocab)
    return vocab


@pytest.fixture(scope="session")
def tiny_checkpoint(tmp_path_factory, tiny_vocab) -> Path:
    """
    Write a tiny GPT-2 checkpoint and its tokenizer to a temp directory.

    The model has 2 layers, hidden size 32 and 64 positions, with weights
    drawn from a fixed seed. The tokenizer splits on whitespace and
    punctuation and maps unknown words to <unk>.

    Returns:
        Path: Directory loadable with AutoConfig / AutoTokenizer /
        AutoModelForCausalLM
    """
    checkpoint_dir = tmp_path_factory.mktemp("tiny_gpt2")

    raw_tokenizer = RawTokenizer(WordLevel(vocab=tiny_vocab, unk_token="<unk>"))
    raw_tokenizer.pre_tokenizer = Whitespace()
    tokenizer = PreTrainedTokenizerFast(
        tokenizer_object=raw_tokenizer,
        bos_token="<s>",
        eos_token="</s>",
        unk_token="<unk>",
    )
    tokenizer.save_pretrained(checkpoint_dir)

    config = GPT2Config(
        vocab_size=len(tiny_vocab),
        n_positions=TINY_CONTEXT,
        n_embd=32,
        n_layer=2,
        n_head=2,
        bos_token_id=0,
        eos_token_id=1,
    )
    torch.manual_seed(0)
    model = GPT2LMHeadModel(config)
    model.save_pretrained(checkpoint_dir)

    return checkpoint_dir


@pytest.fixture(scope="session")
def tiny_model(tiny_checkpoint):
    """Load the tiny checkpoint through load_dynamic (session-scoped)."""
    return load_dynamic(
        ModelArchitecture.GPT2,
        tiny_checkpoint,
        params=ModelParameters(),
    )


@pytest.fixture(scope="session")
def qwen_model_name() -> str:
    """
    Return the HuggingFace model name used by integration tests.

    Returns:
        str: HuggingFace model name for a Qwen2 checkpoint
    """
    return "Qwen/Qwen2.5-0.5B"
