"""
HuggingFace causal language model adapter.

This module implements the Model contract over any transformers causal LM.
The forward pass runs through the model's base transformer so that the
full-vocabulary projection is applied only where it is needed:
- always for the last token (kept on the session for sampling)
- for every token only when the output request asks for all logits

The session state is the transformers KV cache (past_key_values), so a second
evaluation on the same session continues from the first.
"""

from typing import Any, Optional, Sequence

import torch
from transformers import PreTrainedModel

from embed_bench.core.model import Model
from embed_bench.core.output_request import OutputRequest
from embed_bench.core.session import InferenceSession
from embed_bench.errors import EvaluationError
from embed_bench.models.architecture import ModelArchitecture
from embed_bench.tokenizer.tokenizer import Tokenizer


class HuggingFaceCausalModel(Model):
    """Model backed by a transformers causal LM.

    Attributes:
        model: The wrapped transformers model, in eval mode.
        architecture: Architecture of the checkpoint.
        device: Device the weights live on.
    """

    def __init__(
        self,
        model: PreTrainedModel,
        tokenizer: Tokenizer,
        architecture: ModelArchitecture,
        context_size: int,
        device: Optional[torch.device] = None,
    ) -> None:
        """Initialize HuggingFaceCausalModel.

        Args:
            model: Loaded transformers causal LM.
            tokenizer: Tokenizer matching the model's vocabulary.
            architecture: Architecture of the checkpoint.
            context_size: Maximum context window, already clamped to what the
                model supports.
            device: Device of the weights (defaults to the model's device).
        """
        if context_size <= 0:
            raise ValueError(f"context_size must be positive, got {context_size}")

        self.model = model
        self.model.eval()
        self.architecture = architecture
        self.device = device if device is not None else model.device

        self._tokenizer = tokenizer
        self._context_size = context_size

    @property
    def tokenizer(self) -> Tokenizer:
        return self._tokenizer

    @property
    def context_size(self) -> int:
        return self._context_size

    @property
    def embedding_length(self) -> int:
        """Length of the embedding vectors this model produces."""
        return self.model.config.hidden_size

    def _initial_session_state(self, session: InferenceSession) -> Any:
        # transformers allocates the cache on the first forward pass
        return None

    def _evaluate(
        self,
        session: InferenceSession,
        token_ids: Sequence[int],
        output_request: OutputRequest,
    ) -> Optional[torch.Tensor]:
        input_ids = torch.tensor([list(token_ids)], dtype=torch.long, device=self.device)

        try:
            with torch.inference_mode():
                outputs = self.model.base_model(
                    input_ids=input_ids,
                    past_key_values=session.state,
                    use_cache=True,
                    return_dict=True,
                )
                # [1, seq_len, hidden_size], after the final norm
                hidden_states = outputs.last_hidden_state

                if output_request.all_logits is not None:
                    logits = self._project(hidden_states)[0]
                    output_request.all_logits[:] = logits.float().cpu().tolist()
                    last_logits = logits[-1]
                else:
                    last_logits = self._project(hidden_states[:, -1:, :])[0, -1]

                if output_request.embeddings is not None:
                    output_request.embeddings[:] = hidden_states[0, -1].float().cpu().tolist()
        except Exception as e:
            raise EvaluationError(
                f"Forward pass of {self.architecture} model failed: {str(e)}"
            ) from e

        session.state = outputs.past_key_values
        # inference tensors are read-only outside inference mode
        return last_logits.float().cpu().clone()

    def _project(self, hidden_states: torch.Tensor) -> torch.Tensor:
        """Project hidden states to vocabulary logits."""
        return self.model.get_output_embeddings()(hidden_states)

    def __repr__(self) -> str:
        return (
            f"HuggingFaceCausalModel(architecture={self.architecture}, "
            f"context_size={self.context_size}, device={self.device})"
        )
