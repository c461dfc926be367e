"""
Known model architectures.

Maps the identifiers accepted on the command line to the model_type values
HuggingFace checkpoints declare in their config.json, and detects the
architecture of a checkpoint when none is requested.
"""

from enum import Enum
from typing import Dict, Optional, Tuple


class ModelArchitecture(Enum):
    """Model architectures the loader can drive.

    Each value is the canonical command-line identifier.
    """

    BLOOM = "bloom"
    GPT2 = "gpt2"
    GPTJ = "gptj"
    GPTNEOX = "gptneox"
    LLAMA = "llama"
    MPT = "mpt"
    FALCON = "falcon"
    QWEN2 = "qwen2"

    @property
    def hf_model_types(self) -> Tuple[str, ...]:
        """HuggingFace model_type values belonging to this architecture."""
        return _HF_MODEL_TYPES[self]

    @classmethod
    def from_str(cls, name: str) -> "ModelArchitecture":
        """Parse an architecture identifier (case-insensitive, with aliases).

        Raises:
            ValueError: If the identifier is not a known architecture.
        """
        key = name.strip().lower()
        key = _ALIASES.get(key, key)
        for architecture in cls:
            if architecture.value == key:
                return architecture
        known = ", ".join(architecture.value for architecture in cls)
        raise ValueError(f"Unknown model architecture {name!r}; expected one of: {known}")

    @classmethod
    def from_model_type(cls, model_type: str) -> Optional["ModelArchitecture"]:
        """Map a HuggingFace model_type to an architecture, or None."""
        for architecture in cls:
            if model_type in architecture.hf_model_types:
                return architecture
        return None

    def __str__(self) -> str:
        return self.value


_HF_MODEL_TYPES: Dict[ModelArchitecture, Tuple[str, ...]] = {
    ModelArchitecture.BLOOM: ("bloom",),
    ModelArchitecture.GPT2: ("gpt2",),
    ModelArchitecture.GPTJ: ("gptj",),
    ModelArchitecture.GPTNEOX: ("gpt_neox",),
    ModelArchitecture.LLAMA: ("llama",),
    ModelArchitecture.MPT: ("mpt",),
    ModelArchitecture.FALCON: ("falcon", "RefinedWeb", "RefinedWebModel"),
    ModelArchitecture.QWEN2: ("qwen2",),
}

_ALIASES: Dict[str, str] = {
    "gpt-2": "gpt2",
    "gpt-j": "gptj",
    "gpt_j": "gptj",
    "gpt-neox": "gptneox",
    "gpt_neox": "gptneox",
    "neox": "gptneox",
    "qwen": "qwen2",
}
