"""
Example demonstrating a reusable inference session.

This example loads a checkpoint, extracts the embedding of a prompt, and then
keeps decoding on the same session, showing that every evaluation continues
from the KV cache of the previous one.

Usage:
    python examples/session_generation_example.py gpt2
"""

import sys

from embed_bench.core.output_request import OutputRequest
from embed_bench.core.session import InferenceSessionConfig
from embed_bench.models.loader import load_dynamic, load_progress_callback_stdout
from embed_bench.sampling.sampling import SamplingParams

model_path = sys.argv[1] if len(sys.argv) > 1 else "gpt2"

print(f"Loading {model_path}...")
model = load_dynamic(None, model_path, load_progress_callback=load_progress_callback_stdout)

session = model.start_session(InferenceSessionConfig(n_batch=16))
request = OutputRequest.embeddings_only()

prompt = "The capital of France is"
prompt_ids = session.feed_prompt(model, prompt, request)
print(f"\nPrompt: {len(prompt_ids)} tokens, embedding length {len(request.embeddings)}")

params = SamplingParams(temperature=0.0)
generated = []
for _ in range(10):
    token_id = session.infer_next_token(model, params)
    if token_id == model.eot_token_id:
        break
    generated.append(token_id)

print(f"Generated: {model.tokenizer.decode(generated)!r}")
print(f"Session: {session}")
