"""
Tokenizer module.

- Tokenizer: interface producing (byte offset, token id) sequences
- HuggingFaceTokenizer: adapter over transformers tokenizers
- TokenizerSource: embedded, local file or remote repository
"""

from embed_bench.tokenizer.source import (
    EmbeddedTokenizer,
    HuggingFaceRemote,
    HuggingFaceTokenizerFile,
    TokenizerSource,
)
from embed_bench.tokenizer.tokenizer import HuggingFaceTokenizer, Tokenizer, TokenSequence

__all__ = [
    "Tokenizer",
    "HuggingFaceTokenizer",
    "TokenSequence",
    "TokenizerSource",
    "EmbeddedTokenizer",
    "HuggingFaceTokenizerFile",
    "HuggingFaceRemote",
]
