"""
Abstract model contract.

The pipeline is written against the capability set defined here rather than
any concrete architecture:
- start_session: create a fresh, model-bound InferenceSession
- evaluate: run a forward pass over token ids, advancing the session and
  filling the requested outputs
- tokenizer: the tokenizer matching the model's vocabulary

Concrete architectures implement _evaluate (and optionally
_initial_session_state); Model.evaluate enforces the session invariants
around it.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

import torch

from embed_bench.core.output_request import OutputRequest
from embed_bench.core.session import InferenceSession, InferenceSessionConfig
from embed_bench.errors import ContextFullError
from embed_bench.tokenizer.tokenizer import Tokenizer

SUPPORTED_DTYPES = ("float32", "float16", "bfloat16")


@dataclass
class ModelParameters:
    """Load-time parameters of a model.

    Attributes:
        use_gpu: Run the model on CUDA when available.
        context_size: Maximum number of tokens a session may hold.
        dtype: Weight dtype ("float32", "float16" or "bfloat16").
        trust_remote_code: Allow modeling code shipped with a checkpoint.
    """

    use_gpu: bool = False
    context_size: int = 2048
    dtype: str = "float32"
    trust_remote_code: bool = False

    def __post_init__(self) -> None:
        if self.context_size <= 0:
            raise ValueError(f"context_size must be positive, got {self.context_size}")
        if self.dtype not in SUPPORTED_DTYPES:
            raise ValueError(
                f"dtype must be one of {SUPPORTED_DTYPES}, got {self.dtype!r}"
            )

    @property
    def torch_dtype(self) -> torch.dtype:
        return getattr(torch, self.dtype)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Model(ABC):
    """A loaded, read-only language model.

    A model may be shared across threads for reads. Sessions it creates are
    bound to it and must not be evaluated with another model.
    """

    @property
    @abstractmethod
    def tokenizer(self) -> Tokenizer:
        """Tokenizer matching this model's vocabulary."""

    @property
    @abstractmethod
    def context_size(self) -> int:
        """Largest context window a session of this model may use."""

    @property
    def bot_token_id(self) -> Optional[int]:
        """Beginning-of-text token id."""
        return self.tokenizer.bos_token_id

    @property
    def eot_token_id(self) -> Optional[int]:
        """End-of-text token id."""
        return self.tokenizer.eos_token_id

    def start_session(self, config: Optional[InferenceSessionConfig] = None) -> InferenceSession:
        """Create a fresh session bound to this model.

        Args:
            config: Session configuration; defaults when None.

        Returns:
            New InferenceSession with no evaluated tokens.

        Raises:
            ValueError: If the requested context exceeds the model's.
        """
        if config is None:
            config = InferenceSessionConfig()

        context_size = config.context_size or self.context_size
        if context_size > self.context_size:
            raise ValueError(
                f"Session context_size ({context_size}) exceeds the model's "
                f"context size ({self.context_size})"
            )

        session = InferenceSession(self, config, context_size)
        session.state = self._initial_session_state(session)
        return session

    def evaluate(
        self,
        session: InferenceSession,
        token_ids: Sequence[int],
        output_request: OutputRequest,
    ) -> None:
        """Evaluate token ids, advancing the session.

        Only the slots present on output_request are populated; absent slots
        stay None. An empty token_ids sequence is a no-op.

        Args:
            session: Session created by this model.
            token_ids: Token ids to evaluate, in order.
            output_request: Outputs to populate in place.

        Raises:
            ValueError: If the session belongs to another model.
            ContextFullError: If the tokens do not fit in the session's context.
            ConcurrentSessionError: If the session is already being evaluated.
            EvaluationError: If the forward pass fails.
        """
        if not session.is_bound_to(self):
            raise ValueError("Session was created by a different model")

        token_ids = [int(token_id) for token_id in token_ids]
        if not token_ids:
            return

        if len(token_ids) > session.context_remaining:
            raise ContextFullError(
                f"Cannot evaluate {len(token_ids)} tokens: {session.n_past} of "
                f"{session.context_size} context tokens already used"
            )

        with session.exclusive():
            last_logits = self._evaluate(session, token_ids, output_request)
            session.record(token_ids, last_logits)

    def _initial_session_state(self, session: InferenceSession) -> Any:
        """Architecture-specific state for a new session."""
        return None

    @abstractmethod
    def _evaluate(
        self,
        session: InferenceSession,
        token_ids: Sequence[int],
        output_request: OutputRequest,
    ) -> Optional[torch.Tensor]:
        """Run the forward pass and fill output_request.

        Implementations update session.state and return the logits of the
        last evaluated token (shape [vocab_size]), or None if the architecture
        does not produce logits.
        """
