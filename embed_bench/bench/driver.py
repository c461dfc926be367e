"""
Embedding benchmark driver.

Runs one embedding extraction against a loaded model and measures it:

    IDLE -> TOKENIZER_READY -> SESSION_READY -> EVALUATED -> REPORTED

The timed region starts immediately before tokenization and ends once the
embedding vector has been read from the output request. Model loading and
session creation are outside it. Time is taken from a monotonic clock.
"""

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from embed_bench.core.model import Model
from embed_bench.core.output_request import OutputRequest
from embed_bench.core.session import InferenceSessionConfig
from embed_bench.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_QUERY_CHARS = 400
DEFAULT_QUERY_PATH = Path(__file__).resolve().parent.parent / "core" / "session.py"


class BenchmarkState(Enum):
    """Stage reached by an embedding benchmark."""

    IDLE = "idle"
    TOKENIZER_READY = "tokenizer_ready"
    SESSION_READY = "session_ready"
    EVALUATED = "evaluated"
    REPORTED = "reported"


_TRANSITIONS = {
    BenchmarkState.IDLE: BenchmarkState.TOKENIZER_READY,
    BenchmarkState.TOKENIZER_READY: BenchmarkState.SESSION_READY,
    BenchmarkState.SESSION_READY: BenchmarkState.EVALUATED,
    BenchmarkState.EVALUATED: BenchmarkState.REPORTED,
}


@dataclass
class EmbeddingBenchmarkResult:
    """Outcome of one embedding benchmark.

    Attributes:
        token_ids: Token ids that were evaluated.
        embeddings: Embedding vector read from the output request.
        elapsed_ms: Duration of the timed region in milliseconds.
        rate: Tokens per millisecond (inf when elapsed_ms is 0).
        state: Stage the benchmark ended in.
    """

    token_ids: List[int]
    embeddings: List[float]
    elapsed_ms: float
    rate: float
    state: BenchmarkState = BenchmarkState.REPORTED

    @property
    def input_length(self) -> int:
        return len(self.token_ids)


def compute_rate(length: int, elapsed_ms: float) -> float:
    """Tokens per millisecond; inf when no measurable time elapsed."""
    if elapsed_ms <= 0:
        return math.inf
    return length / elapsed_ms


def load_query(
    text: Optional[str] = None,
    path: Optional[Union[str, Path]] = None,
    max_chars: Optional[int] = DEFAULT_QUERY_CHARS,
) -> str:
    """Build the benchmark query.

    The query is a prefix of the available text, cut before tokenization.
    Without text or path, the source of the package's session module is used.

    Args:
        text: Literal query text.
        path: File to read the query from.
        max_chars: Keep at most this many characters (None keeps all).

    Raises:
        ConfigurationError: If both text and path are given, or max_chars is
            not positive.
    """
    if text is not None and path is not None:
        raise ConfigurationError("Cannot specify both a query and a query file")
    if max_chars is not None and max_chars <= 0:
        raise ConfigurationError(f"max_chars must be positive, got {max_chars}")

    if text is None:
        text = Path(path if path is not None else DEFAULT_QUERY_PATH).read_text(encoding="utf-8")

    if max_chars is not None:
        text = text[:max_chars]
    return text


class EmbeddingBenchmark:
    """Single-use driver measuring embedding extraction on a model.

    Attributes:
        model: Model under test.
        state: Current stage; stays at the last reached stage on failure.
    """

    def __init__(
        self,
        model: Model,
        session_config: Optional[InferenceSessionConfig] = None,
        clock: Callable[[], float] = time.perf_counter,
        report: Callable[[str], None] = print,
    ) -> None:
        """Initialize EmbeddingBenchmark.

        Args:
            model: Model under test.
            session_config: Configuration for the benchmark session.
            clock: Monotonic clock returning seconds.
            report: Sink for the human-readable report lines.
        """
        self.model = model
        self.session_config = session_config
        self.clock = clock
        self.report = report
        self.state = BenchmarkState.IDLE

    def _advance(self, target: BenchmarkState) -> None:
        expected = _TRANSITIONS.get(self.state)
        if expected is not target:
            raise RuntimeError(f"Invalid benchmark transition {self.state.value} -> {target.value}")
        logger.debug("Benchmark state %s -> %s", self.state.value, target.value)
        self.state = target

    def run(self, query: str, prepend_bos: bool = True) -> EmbeddingBenchmarkResult:
        """Tokenize the query, evaluate it once and report throughput.

        Errors from tokenization or evaluation propagate unchanged.
        """
        tokenizer = self.model.tokenizer
        self._advance(BenchmarkState.TOKENIZER_READY)

        session = self.model.start_session(self.session_config)
        output_request = OutputRequest.embeddings_only()
        self._advance(BenchmarkState.SESSION_READY)

        start = self.clock()
        token_ids = [token_id for _, token_id in tokenizer.tokenize(query, prepend_bos)]
        self.model.evaluate(session, token_ids, output_request)
        embeddings = output_request.embeddings
        elapsed_ms = (self.clock() - start) * 1000.0
        self._advance(BenchmarkState.EVALUATED)

        length = len(token_ids)
        rate = compute_rate(length, elapsed_ms)
        self.report(f"input length: {length}")
        self.report(f"input len:{length}, time elapsed: {elapsed_ms:.3f}ms, len/ms: {rate}")
        self._advance(BenchmarkState.REPORTED)

        return EmbeddingBenchmarkResult(
            token_ids=token_ids,
            embeddings=embeddings,
            elapsed_ms=elapsed_ms,
            rate=rate,
            state=self.state,
        )


def get_embeddings(
    model: Model,
    query: str,
    prepend_bos: bool = True,
    session_config: Optional[InferenceSessionConfig] = None,
    clock: Callable[[], float] = time.perf_counter,
    report: Callable[[str], None] = print,
) -> EmbeddingBenchmarkResult:
    """Extract the embedding of query with a fresh session and time it."""
    benchmark = EmbeddingBenchmark(model, session_config=session_config, clock=clock, report=report)
    return benchmark.run(query, prepend_bos=prepend_bos)
