"""
Inference session: the mutable, model-bound evaluation context.

A session accumulates everything a model needs to evaluate a sequence
incrementally: the architecture's KV cache, the number of tokens already
evaluated, the token history and the logits of the last evaluated token.
Each call to Model.evaluate advances the session, so a second evaluation
continues where the first one stopped.

A session is owned by a single call sequence. Evaluation holds a
non-blocking lock and a second concurrent evaluation fails immediately
instead of corrupting the cache.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Sequence, Union

import torch

from embed_bench.core.output_request import OutputRequest
from embed_bench.errors import ConcurrentSessionError, EvaluationError
from embed_bench.sampling.sampling import SamplingParams, sample

if TYPE_CHECKING:
    from embed_bench.core.model import Model


@dataclass
class InferenceSessionConfig:
    """Configuration for a new inference session.

    The defaults suit a single forward pass with no generation.

    Attributes:
        context_size: Context window in tokens. None uses the model's window.
        n_batch: Number of prompt tokens evaluated per call in feed_prompt.
        repetition_penalty_last_n: How many trailing tokens of the history
            the sampler penalizes for repetition.
    """

    context_size: Optional[int] = None
    n_batch: int = 8
    repetition_penalty_last_n: int = 512

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Validate session parameters.

        Raises:
            ValueError: If any parameter is out of range.
        """
        if self.context_size is not None and self.context_size <= 0:
            raise ValueError(f"context_size must be positive, got {self.context_size}")
        if self.n_batch <= 0:
            raise ValueError(f"n_batch must be positive, got {self.n_batch}")
        if self.repetition_penalty_last_n < 0:
            raise ValueError(
                "repetition_penalty_last_n must be non-negative, "
                f"got {self.repetition_penalty_last_n}"
            )


class InferenceSession:
    """Mutable evaluation context bound to the model that created it.

    Sessions are created by Model.start_session and are released when no
    longer referenced.

    Attributes:
        config: Configuration the session was created with.
        context_size: Effective context window in tokens.
        state: Architecture-specific state (e.g. past_key_values).
        last_logits: Vocabulary scores of the last evaluated token, if any.
    """

    def __init__(
        self,
        model: "Model",
        config: InferenceSessionConfig,
        context_size: int,
    ) -> None:
        self.config = config
        self.context_size = context_size
        self.state: Any = None
        self.last_logits: Optional[torch.Tensor] = None

        self._model = model
        self._tokens: List[int] = []
        self._lock = threading.Lock()

    @property
    def n_past(self) -> int:
        """Number of tokens evaluated so far."""
        return len(self._tokens)

    @property
    def tokens(self) -> List[int]:
        """Copy of the evaluated token history."""
        return list(self._tokens)

    @property
    def context_remaining(self) -> int:
        """Number of tokens that still fit in the context window."""
        return self.context_size - self.n_past

    def is_bound_to(self, model: "Model") -> bool:
        """Check whether this session was created by the given model."""
        return self._model is model

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the session for the duration of one evaluation.

        Raises:
            ConcurrentSessionError: If another evaluation holds the session.
        """
        if not self._lock.acquire(blocking=False):
            raise ConcurrentSessionError(
                "Session is already being evaluated; sessions must not be "
                "shared between concurrent evaluations"
            )
        try:
            yield
        finally:
            self._lock.release()

    def record(self, token_ids: Sequence[int], last_logits: Optional[torch.Tensor]) -> None:
        """Advance the session after a successful evaluation."""
        self._tokens.extend(token_ids)
        if last_logits is not None:
            self.last_logits = last_logits

    def feed_prompt(
        self,
        model: "Model",
        prompt: Union[str, Sequence[int]],
        output_request: Optional[OutputRequest] = None,
    ) -> List[int]:
        """Evaluate a prompt in chunks of config.n_batch tokens.

        Text prompts are tokenized with the model's tokenizer; a BOS token is
        prepended only when the session is still empty.

        Args:
            model: Model that created this session.
            prompt: Text or token ids to evaluate.
            output_request: Optional outputs to populate. Logits of every
                chunk are accumulated, embeddings reflect the last token.

        Returns:
            The token ids that were evaluated.
        """
        if isinstance(prompt, str):
            token_ids = [
                token_id
                for _, token_id in model.tokenizer.tokenize(prompt, prepend_bos=self.n_past == 0)
            ]
        else:
            token_ids = list(prompt)

        if output_request is not None and output_request.all_logits is not None:
            output_request.all_logits.clear()

        for start in range(0, len(token_ids), self.config.n_batch):
            chunk = token_ids[start : start + self.config.n_batch]
            chunk_request = OutputRequest(
                all_logits=[] if output_request is not None and output_request.wants_all_logits() else None,
                embeddings=[] if output_request is not None and output_request.wants_embeddings() else None,
            )
            model.evaluate(self, chunk, chunk_request)

            if chunk_request.all_logits is not None:
                output_request.all_logits.extend(chunk_request.all_logits)
            if chunk_request.embeddings is not None:
                output_request.embeddings[:] = chunk_request.embeddings

        return token_ids

    def infer_next_token(
        self,
        model: "Model",
        sampling_params: Optional[SamplingParams] = None,
        output_request: Optional[OutputRequest] = None,
        generator: Optional[torch.Generator] = None,
    ) -> int:
        """Sample the next token from the last logits and evaluate it.

        Args:
            model: Model that created this session.
            sampling_params: Sampling parameters (defaults if None).
            output_request: Optional outputs to populate for the new token.
            generator: Optional torch generator for reproducible sampling.

        Returns:
            The sampled token id.

        Raises:
            EvaluationError: If nothing has been evaluated yet.
        """
        if self.last_logits is None:
            raise EvaluationError("No logits available; feed a prompt before sampling")
        if sampling_params is None:
            sampling_params = SamplingParams()

        last_n = self.config.repetition_penalty_last_n
        previous_tokens = self._tokens[-last_n:] if last_n > 0 else []

        next_token = sample(
            self.last_logits.unsqueeze(0),
            sampling_params,
            previous_tokens=previous_tokens,
            generator=generator,
        )
        token_id = int(next_token.item())

        model.evaluate(self, [token_id], output_request or OutputRequest())
        return token_id

    def __repr__(self) -> str:
        return (
            f"InferenceSession(n_past={self.n_past}, "
            f"context_size={self.context_size}, "
            f"n_batch={self.config.n_batch})"
        )
