"""
Tests for HuggingFaceCausalModel on a tiny GPT-2 checkpoint.

The checkpoint is randomly initialised, so these tests check the pipeline
contract (shapes, slot discipline, KV cache continuity) against the
transformers reference forward pass rather than specific values.
"""

import pytest
import torch

from embed_bench.core.output_request import OutputRequest
from embed_bench.core.session import InferenceSessionConfig
from embed_bench.errors import ContextFullError
from embed_bench.models.architecture import ModelArchitecture
from embed_bench.models.causal_lm import HuggingFaceCausalModel
from tests.utils.comparison import assert_tensors_close, assert_vectors_close


@pytest.mark.unit
def test_model_properties(tiny_model, tiny_vocab):
    """Test that the loaded model exposes the contract."""
    assert isinstance(tiny_model, HuggingFaceCausalModel)
    assert tiny_model.architecture is ModelArchitecture.GPT2
    assert tiny_model.context_size == 64
    assert tiny_model.embedding_length == 32
    assert tiny_model.bot_token_id == 0
    assert tiny_model.eot_token_id == 1
    assert tiny_model.tokenizer.vocab_size == len(tiny_vocab)
    assert not tiny_model.model.training


@pytest.mark.unit
def test_embeddings_only(tiny_model):
    """Test that only the embedding slot is filled."""
    session = tiny_model.start_session()
    request = OutputRequest.embeddings_only()

    tiny_model.evaluate(session, [0, 3, 4, 5], request)

    assert len(request.embeddings) == tiny_model.embedding_length
    assert all(isinstance(value, float) for value in request.embeddings)
    assert request.all_logits is None
    assert session.n_past == 4
    assert session.last_logits.shape == (tiny_model.tokenizer.vocab_size,)


@pytest.mark.unit
def test_embeddings_match_reference_hidden_state(tiny_model):
    """Test that embeddings are the final hidden state of the last token."""
    token_ids = [0, 3, 4, 5, 6]
    session = tiny_model.start_session()
    request = OutputRequest.embeddings_only()

    tiny_model.evaluate(session, token_ids, request)

    with torch.no_grad():
        reference = tiny_model.model(
            torch.tensor([token_ids]), output_hidden_states=True
        ).hidden_states[-1][0, -1]

    assert_vectors_close(request.embeddings, reference.tolist())


@pytest.mark.unit
def test_all_logits_match_reference(tiny_model):
    """Test that all_logits holds one vocabulary row per token."""
    token_ids = [0, 7, 8, 9]
    session = tiny_model.start_session()
    request = OutputRequest(all_logits=[], embeddings=None)

    tiny_model.evaluate(session, token_ids, request)

    with torch.no_grad():
        reference = tiny_model.model(torch.tensor([token_ids])).logits[0]

    assert request.embeddings is None
    assert len(request.all_logits) == len(token_ids)
    assert_tensors_close(torch.tensor(request.all_logits), reference)
    assert_tensors_close(session.last_logits, reference[-1])


@pytest.mark.unit
def test_session_continues_from_cache(tiny_model):
    """Test that two evaluations equal one evaluation over the concatenation."""
    token_ids = [0, 3, 4, 5, 6, 7]

    single = tiny_model.start_session()
    single_request = OutputRequest(all_logits=None, embeddings=[])
    tiny_model.evaluate(single, token_ids, single_request)

    split = tiny_model.start_session()
    tiny_model.evaluate(split, token_ids[:2], OutputRequest())
    split_request = OutputRequest(all_logits=None, embeddings=[])
    tiny_model.evaluate(split, token_ids[2:], split_request)

    assert split.n_past == single.n_past == len(token_ids)
    assert_vectors_close(split_request.embeddings, single_request.embeddings)
    assert_tensors_close(split.last_logits, single.last_logits)


@pytest.mark.unit
def test_feed_prompt_matches_single_evaluation(tiny_model):
    """Test that chunked prompt feeding gives the same embeddings."""
    text = "the quick brown fox jumps over the lazy dog"

    chunked = tiny_model.start_session(InferenceSessionConfig(n_batch=3))
    chunked_request = OutputRequest(all_logits=[], embeddings=[])
    token_ids = chunked.feed_prompt(tiny_model, text, chunked_request)

    single = tiny_model.start_session()
    single_request = OutputRequest(all_logits=[], embeddings=[])
    tiny_model.evaluate(single, token_ids, single_request)

    assert token_ids[0] == tiny_model.bot_token_id
    assert_vectors_close(chunked_request.embeddings, single_request.embeddings)
    assert_tensors_close(
        torch.tensor(chunked_request.all_logits), torch.tensor(single_request.all_logits)
    )


@pytest.mark.unit
def test_greedy_generation_is_reproducible(tiny_model):
    """Test multi-step decoding on the same session."""
    from embed_bench.sampling.sampling import SamplingParams

    params = SamplingParams(temperature=0.0)
    outputs = []
    for _ in range(2):
        session = tiny_model.start_session()
        session.feed_prompt(tiny_model, "hello world")
        outputs.append([session.infer_next_token(tiny_model, params) for _ in range(3)])

    assert outputs[0] == outputs[1]
    assert session.n_past == 3 + 3


@pytest.mark.unit
def test_context_full(tiny_model):
    """Test that the 64-position model rejects a 65th token."""
    session = tiny_model.start_session()
    tiny_model.evaluate(session, [3] * 64, OutputRequest())

    with pytest.raises(ContextFullError):
        tiny_model.evaluate(session, [3], OutputRequest())
