"""
Output request for a forward evaluation.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass
class OutputRequest:
    """Declares which optional outputs an evaluation should compute.

    A slot set to None is not computed and stays None. A slot holding a list,
    even an empty one, is filled in place by the evaluation.

    Attributes:
        all_logits: Per-token vocabulary scores, one list per evaluated token.
        embeddings: Final hidden state of the last evaluated token.
    """

    all_logits: Optional[List[List[float]]] = None
    embeddings: Optional[List[float]] = None

    @classmethod
    def embeddings_only(cls) -> "OutputRequest":
        """Request embeddings without computing full-vocabulary logits."""
        return cls(all_logits=None, embeddings=[])

    def wants_all_logits(self) -> bool:
        """Check if per-token logits were requested."""
        return self.all_logits is not None

    def wants_embeddings(self) -> bool:
        """Check if the embedding vector was requested."""
        return self.embeddings is not None
