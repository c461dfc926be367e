"""
Tokenizer source selection.

A model's tokenizer comes from exactly one of three places: the tokenizer
shipped in the model directory, a local tokenizer.json, or a repository on
the HuggingFace Hub. Each case is its own class, so a "both a file and a
repository" state cannot be represented once a source is built.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from transformers import AutoTokenizer, PreTrainedTokenizerBase, PreTrainedTokenizerFast

from embed_bench.errors import ConfigurationError, LoadError
from embed_bench.tokenizer.tokenizer import HuggingFaceTokenizer

logger = logging.getLogger(__name__)


class TokenizerSource(ABC):
    """Where a model's tokenizer is loaded from."""

    @staticmethod
    def from_options(
        tokenizer_path: Optional[Union[str, Path]] = None,
        tokenizer_repository: Optional[str] = None,
    ) -> "TokenizerSource":
        """Build a source from the two mutually exclusive command-line options.

        Raises:
            ConfigurationError: If both options are given.
        """
        if tokenizer_path is not None and tokenizer_repository is not None:
            raise ConfigurationError(
                "Cannot specify both --tokenizer-path and --tokenizer-repository"
            )
        if tokenizer_path is not None:
            return HuggingFaceTokenizerFile(Path(tokenizer_path))
        if tokenizer_repository is not None:
            return HuggingFaceRemote(tokenizer_repository)
        return EmbeddedTokenizer()

    def retrieve(
        self,
        model_path: Union[str, Path],
        trust_remote_code: bool = False,
        fallback_bos_token_id: Optional[int] = None,
        fallback_eos_token_id: Optional[int] = None,
    ) -> HuggingFaceTokenizer:
        """Load the tokenizer.

        Args:
            model_path: Model directory, used by the embedded source.
            trust_remote_code: Allow tokenizer code shipped with a checkpoint.
            fallback_bos_token_id: BOS id from the model config, used when the
                tokenizer declares none.
            fallback_eos_token_id: EOS id from the model config.

        Raises:
            LoadError: If the tokenizer cannot be loaded.
        """
        try:
            tokenizer = self._load(model_path, trust_remote_code)
        except LoadError:
            raise
        except Exception as e:
            raise LoadError(
                f"Failed to load tokenizer from {self.describe()}: {str(e)}",
                path=str(model_path),
            ) from e

        logger.debug("Loaded tokenizer %s from %s", type(tokenizer).__name__, self.describe())
        return HuggingFaceTokenizer(
            tokenizer,
            fallback_bos_token_id=fallback_bos_token_id,
            fallback_eos_token_id=fallback_eos_token_id,
        )

    @abstractmethod
    def _load(self, model_path: Union[str, Path], trust_remote_code: bool) -> PreTrainedTokenizerBase:
        """Load the underlying transformers tokenizer."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable description used in diagnostics."""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()})"


class EmbeddedTokenizer(TokenizerSource):
    """Tokenizer shipped alongside the model weights."""

    def _load(self, model_path: Union[str, Path], trust_remote_code: bool) -> PreTrainedTokenizerBase:
        return AutoTokenizer.from_pretrained(str(model_path), trust_remote_code=trust_remote_code)

    def describe(self) -> str:
        return "embedded"


class HuggingFaceTokenizerFile(TokenizerSource):
    """A local tokenizer.json file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self, model_path: Union[str, Path], trust_remote_code: bool) -> PreTrainedTokenizerBase:
        if not self.path.is_file():
            raise LoadError(f"Tokenizer file {self.path} does not exist", path=str(model_path))
        return PreTrainedTokenizerFast(tokenizer_file=str(self.path))

    def describe(self) -> str:
        return f"file {self.path}"


class HuggingFaceRemote(TokenizerSource):
    """A tokenizer repository on the HuggingFace Hub."""

    def __init__(self, repository: str) -> None:
        if not repository:
            raise ConfigurationError("tokenizer repository cannot be empty")
        self.repository = repository

    def _load(self, model_path: Union[str, Path], trust_remote_code: bool) -> PreTrainedTokenizerBase:
        return AutoTokenizer.from_pretrained(self.repository, trust_remote_code=trust_remote_code)

    def describe(self) -> str:
        return f"repository {self.repository}"
