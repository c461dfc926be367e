"""
Tokenizer adapters.

This module defines the Tokenizer interface the pipeline depends on and an
adapter over HuggingFace tokenizers. Tokenization returns an ordered
TokenSequence of (byte offset, token id) pairs; the caller decides whether a
beginning-of-sequence token is prepended.
"""

import logging
from itertools import accumulate
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from transformers import PreTrainedTokenizerBase

from embed_bench.errors import TokenizeError

logger = logging.getLogger(__name__)

# (UTF-8 byte offset of the token's first character or None, token id)
TokenSequence = List[Tuple[Optional[int], int]]


class Tokenizer(ABC):
    """Converts text into ordered token ids."""

    @property
    @abstractmethod
    def bos_token_id(self) -> Optional[int]:
        """Beginning-of-sequence token id, or None if the vocabulary has none."""

    @property
    @abstractmethod
    def eos_token_id(self) -> Optional[int]:
        """End-of-text token id, or None if the vocabulary has none."""

    @property
    @abstractmethod
    def vocab_size(self) -> int:
        """Number of entries in the vocabulary."""

    @abstractmethod
    def tokenize(self, text: str, prepend_bos: bool) -> TokenSequence:
        """Tokenize text.

        Args:
            text: Input text; may be empty.
            prepend_bos: Insert the BOS token before the first content token.

        Returns:
            Ordered (byte offset, token id) pairs.

        Raises:
            TokenizeError: If part of the text cannot be represented.
        """

    @abstractmethod
    def token_to_id(self, token: str) -> Optional[int]:
        """Look up the id of a single vocabulary entry."""

    @abstractmethod
    def decode(self, token_ids: Sequence[int]) -> str:
        """Decode token ids back to text."""


def _byte_offsets(text: str) -> List[int]:
    """UTF-8 byte offset of every character index of text, plus its end."""
    return [0] + list(accumulate(len(char.encode("utf-8")) for char in text))


class HuggingFaceTokenizer(Tokenizer):
    """Tokenizer adapter over a transformers tokenizer.

    Content tokens are always encoded without the tokenizer's own special
    tokens, so BOS insertion is controlled by the caller alone.

    Attributes:
        tokenizer: Wrapped transformers tokenizer.
    """

    def __init__(
        self,
        tokenizer: PreTrainedTokenizerBase,
        fallback_bos_token_id: Optional[int] = None,
        fallback_eos_token_id: Optional[int] = None,
    ) -> None:
        """Initialize HuggingFaceTokenizer.

        Args:
            tokenizer: A loaded transformers tokenizer.
            fallback_bos_token_id: BOS id used when the tokenizer declares none
                (a bare tokenizer.json carries no special-token roles).
            fallback_eos_token_id: EOS id used when the tokenizer declares none.
        """
        self.tokenizer = tokenizer
        self._fallback_bos_token_id = fallback_bos_token_id
        self._fallback_eos_token_id = fallback_eos_token_id
        self._warned_missing_bos = False
        self._unk_token_id = self._resolve_unk_token_id()

    @property
    def bos_token_id(self) -> Optional[int]:
        if self.tokenizer.bos_token_id is not None:
            return self.tokenizer.bos_token_id
        return self._fallback_bos_token_id

    @property
    def eos_token_id(self) -> Optional[int]:
        if self.tokenizer.eos_token_id is not None:
            return self.tokenizer.eos_token_id
        return self._fallback_eos_token_id

    @property
    def vocab_size(self) -> int:
        return len(self.tokenizer)

    def tokenize(self, text: str, prepend_bos: bool) -> TokenSequence:
        if text is None:
            raise TypeError("text cannot be None")

        tokens: TokenSequence = []
        if prepend_bos:
            bos_token_id = self.bos_token_id
            if bos_token_id is not None:
                tokens.append((None, bos_token_id))
            elif not self._warned_missing_bos:
                logger.warning(
                    "Tokenizer %s defines no BOS token; nothing is prepended",
                    type(self.tokenizer).__name__,
                )
                self._warned_missing_bos = True

        if not text:
            return tokens

        try:
            if self.tokenizer.is_fast:
                encoding = self.tokenizer(
                    text, add_special_tokens=False, return_offsets_mapping=True
                )
                token_ids = encoding["input_ids"]
                byte_offsets = _byte_offsets(text)
                offsets = [byte_offsets[start] for start, _ in encoding["offset_mapping"]]
            else:
                token_ids = self.tokenizer.encode(text, add_special_tokens=False)
                offsets = [None] * len(token_ids)
        except Exception as e:
            raise TokenizeError(f"Failed to tokenize text: {str(e)}") from e

        unk_token_id = self._content_unk_token_id()
        for index, (offset, token_id) in enumerate(zip(offsets, token_ids)):
            if unk_token_id is not None and token_id == unk_token_id:
                segment = self._segment_at(text, encoding, index) if self.tokenizer.is_fast else None
                if segment is not None and segment == self._unk_token():
                    tokens.append((offset, token_id))
                    continue
                raise TokenizeError(
                    f"Vocabulary cannot represent segment {segment!r} of the input",
                    segment=segment,
                )
            tokens.append((offset, token_id))

        return tokens

    def _unk_token(self) -> Optional[str]:
        if self.tokenizer.unk_token is not None:
            return self.tokenizer.unk_token
        if self.tokenizer.is_fast:
            return getattr(self.tokenizer.backend_tokenizer.model, "unk_token", None)
        return None

    def _resolve_unk_token_id(self) -> Optional[int]:
        if self.tokenizer.unk_token_id is not None:
            return self.tokenizer.unk_token_id
        # a bare tokenizer.json declares unk only on its backend model
        unk_token = self._unk_token()
        if unk_token is None:
            return None
        return self.tokenizer.convert_tokens_to_ids(unk_token)

    def _content_unk_token_id(self) -> Optional[int]:
        """Unknown-token id, unless it doubles as BOS or EOS."""
        if self._unk_token_id in (self.bos_token_id, self.eos_token_id):
            return None
        return self._unk_token_id

    @staticmethod
    def _segment_at(text: str, encoding, index: int) -> str:
        start, end = encoding["offset_mapping"][index]
        return text[start:end]

    def token_to_id(self, token: str) -> Optional[int]:
        token_id = self.tokenizer.convert_tokens_to_ids(token)
        if token_id is None:
            return None
        if token_id == self._unk_token_id and token != self._unk_token():
            return None
        return token_id

    def decode(self, token_ids: Sequence[int]) -> str:
        return self.tokenizer.decode(list(token_ids), skip_special_tokens=True)

    def __repr__(self) -> str:
        return (
            f"HuggingFaceTokenizer({type(self.tokenizer).__name__}, "
            f"vocab_size={self.vocab_size}, bos_token_id={self.bos_token_id})"
        )
