"""Command-line entry point: load a model and benchmark embedding extraction."""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from transformers.utils import logging as hf_logging

from embed_bench.bench.driver import DEFAULT_QUERY_CHARS, get_embeddings, load_query
from embed_bench.core.model import ModelParameters
from embed_bench.errors import ConfigurationError, EvaluationError, LoadError, TokenizeError
from embed_bench.models.architecture import ModelArchitecture
from embed_bench.models.loader import load_dynamic, load_progress_callback_stdout
from embed_bench.tokenizer.source import TokenizerSource

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def _parse_architecture(value: str) -> ModelArchitecture:
    try:
        return ModelArchitecture.from_str(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="embed-bench",
        description="Benchmark embedding extraction throughput (tokens per millisecond).",
    )
    parser.add_argument(
        "model_architecture",
        type=_parse_architecture,
        help=f"Model architecture ({', '.join(a.value for a in ModelArchitecture)}).",
    )
    parser.add_argument("model_path", type=Path, help="Checkpoint directory or HuggingFace model id.")
    parser.add_argument(
        "-v",
        "--tokenizer-path",
        type=Path,
        default=None,
        help="Local tokenizer.json to use instead of the embedded tokenizer.",
    )
    parser.add_argument(
        "-r",
        "--tokenizer-repository",
        default=None,
        help="HuggingFace repository to load the tokenizer from.",
    )
    parser.add_argument("--use-gpu", type=_parse_bool, default=None, help="Run on CUDA (true/false).")
    parser.add_argument("--query", default=None, help="Query text (defaults to a bundled source file).")
    parser.add_argument("--query-file", type=Path, default=None, help="Read the query from a file.")
    parser.add_argument(
        "--max-query-chars",
        type=int,
        default=DEFAULT_QUERY_CHARS,
        help=f"Use only this many leading characters of the query (default {DEFAULT_QUERY_CHARS}).",
    )
    parser.add_argument(
        "--no-bos",
        dest="prepend_bos",
        action="store_false",
        help="Do not prepend the beginning-of-sequence token.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    return parser


@dataclass
class BenchmarkArgs:
    """Parsed command-line options."""

    model_architecture: ModelArchitecture
    model_path: Path
    tokenizer_path: Optional[Path] = None
    tokenizer_repository: Optional[str] = None
    use_gpu: Optional[bool] = None
    query: Optional[str] = None
    query_file: Optional[Path] = None
    max_query_chars: int = DEFAULT_QUERY_CHARS
    prepend_bos: bool = True
    log_level: str = "WARNING"

    @classmethod
    def parse(cls, argv: Optional[List[str]] = None) -> "BenchmarkArgs":
        return cls(**vars(build_parser().parse_args(argv)))

    def to_tokenizer_source(self) -> TokenizerSource:
        """Raises ConfigurationError if both tokenizer options are set."""
        return TokenizerSource.from_options(self.tokenizer_path, self.tokenizer_repository)

    def to_model_parameters(self) -> ModelParameters:
        return ModelParameters(use_gpu=bool(self.use_gpu))


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if level == "DEBUG":
        hf_logging.set_verbosity_info()
    else:
        hf_logging.set_verbosity_error()


def main(argv: Optional[List[str]] = None) -> int:
    args = BenchmarkArgs.parse(argv)
    configure_logging(args.log_level)

    try:
        tokenizer_source = args.to_tokenizer_source()
        query = load_query(args.query, args.query_file, args.max_query_chars)
    except ConfigurationError as e:
        print(f"embed-bench: error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"embed-bench: error: cannot read query: {e}", file=sys.stderr)
        return 2

    architecture = args.model_architecture
    model_path = args.model_path

    try:
        model = load_dynamic(
            architecture,
            model_path,
            tokenizer_source,
            args.to_model_parameters(),
            load_progress_callback_stdout,
        )
    except LoadError as e:
        logger.error("load failed for %s model at %s", architecture, model_path)
        print(f"embed-bench: {e}", file=sys.stderr)
        return 1

    try:
        result = get_embeddings(model, query, prepend_bos=args.prepend_bos)
    except TokenizeError as e:
        print(
            f"embed-bench: tokenization failed for {architecture} model at {model_path}: {e}",
            file=sys.stderr,
        )
        return 1
    except EvaluationError as e:
        print(
            f"embed-bench: evaluation failed for {architecture} model at {model_path}: {e}",
            file=sys.stderr,
        )
        return 1

    logger.info("Embedding length %d", len(result.embeddings))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
