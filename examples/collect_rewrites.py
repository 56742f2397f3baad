"""
Rewrite collection example — build a QAInstance for one question.

This script:
    1. Rewrites a question three ways with an LLM
    2. Sends the original and the rewrites to the environment as one batch
    3. Picks the best QueryResponse by answer confidence
    4. Prints the resulting QAInstance as JSON

Run:
    OPENAI_API_KEY=... python examples/collect_rewrites.py
"""

import asyncio

from aqa_environment import EnvironmentServer, LLMConfig, Query, max_answer_score
from aqa_environment.answerers import FunctionAnswerer
from aqa_environment.models import Observation, Response
from aqa_environment.rewriting import LLMRewriter, collect_qa_instance

KNOWLEDGE = {"iliad": "Homer", "odyssey": "Homer", "aeneid": "Virgil"}


def keyword_answer(query: Query) -> Response:
    """Toy backend: confidence is the share of question words that are keywords."""
    words = query.question.lower().replace("?", "").split()
    hits = [KNOWLEDGE[w] for w in words if w in KNOWLEDGE]
    if not hits:
        return Response(answers=[])
    return Response(answers=[
        Observation(text=hits[0], scores={"confidence": len(hits) / len(words)}),
    ])


async def main():
    server = EnvironmentServer(FunctionAnswerer(keyword_answer))
    rewriter = LLMRewriter(LLMConfig(provider="openai", model_name="gpt-4o-mini"))

    instance = await collect_qa_instance(
        server,
        Query(id="ex-1", question="Who is the author of the epic poem called the Iliad?"),
        rewriter,
        gold_answers=["Homer"],
        scorer=max_answer_score("confidence"),
    )
    print(instance.model_dump_json(indent=2))


if __name__ == "__main__":
    asyncio.run(main())
