"""
Basic environment example — answer a batch of questions with an LLM.

This script:
    1. Builds an EnvironmentServer around an LLMAnswerer
    2. Sends one batch with a SQuAD-style context question and a bare one
    3. Prints each Response, including per-query errors

Run:
    OPENAI_API_KEY=... python examples/basic_environment.py
"""

import logging

from aqa_environment import (
    Context,
    DispatcherConfig,
    EnvironmentRequest,
    EnvironmentServer,
    LLMConfig,
    Query,
)
from aqa_environment.answerers import LLMAnswerer


def main():
    logging.basicConfig(level=logging.INFO)

    server = EnvironmentServer(
        LLMAnswerer(LLMConfig(provider="openai", model_name="gpt-4o-mini")),
        DispatcherConfig(max_concurrency=4, timeout_seconds=60),
    )

    request = EnvironmentRequest(queries=[
        Query(
            id="squad-1",
            question="Who is the Iliad attributed to?",
            contexts=[Context(document=(
                "The Iliad is an ancient Greek epic poem traditionally "
                "attributed to Homer."
            ))],
            passthrough_debug={"split": "dev"},
        ),
        Query(id="open-1", question="What is the capital of France?"),
    ])

    response = server.get_observations_sync(request)
    for query, resp in zip(request.queries, response.responses):
        print(f"\nQ [{resp.id}]: {query.question}")
        if resp.error_message:
            print(f"   error: {resp.error_message}")
            continue
        print(f"A: {resp.answers[0].text}")
        print(f"   model: {resp.observations['model'].text}")
        print(f"   debug: {resp.passthrough_debug}")


if __name__ == "__main__":
    main()
