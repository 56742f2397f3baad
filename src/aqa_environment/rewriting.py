"""
Question rewriting and QAInstance collection.

This is the offline loop that produces evaluation data: take a question,
rewrite it a few ways, send the original and the rewrites to the
environment as ONE batch, and record everything in a QAInstance.

    rewriter = LLMRewriter(LLMConfig(), num_rewrites=3)
    instance = await collect_qa_instance(
        server, Query(question="who wrote the iliad", id="q1"), rewriter,
        gold_answers=["Homer"], scorer=max_answer_score("relevance"),
    )
    instance.qr_rewrites   # 3 QueryResponses
    instance.qr_best       # whichever scored best

Rewrites keep the original's contexts and passthrough_debug, and set
original_question so the environment (and the scorer) can relate each
rewrite back to what was actually asked.
"""

from typing import Iterable, Optional

from langchain_core.prompts import PromptTemplate
from pydantic import BaseModel, Field

from aqa_environment.assembler import Scorer, assemble_qa_instance
from aqa_environment.base.rewriter import BaseRewriter
from aqa_environment.config import LLMConfig
from aqa_environment.models.batch import EnvironmentRequest
from aqa_environment.models.instance import QAInstance, pair_batch
from aqa_environment.models.query import Query
from aqa_environment.server import EnvironmentServer
from aqa_environment.utils.helpers import call_maybe_async, get_llm


class RewriteSet(BaseModel):
    """Structured LLM output: alternative phrasings of one question."""

    rewrites: list[str] = Field(description="Alternative phrasings of the question")


class LLMRewriter(BaseRewriter):
    """
    Generates rewrites of a question with a chat model.

    Uses structured output (RewriteSet) so the LLM returns a clean list,
    not free-form text we'd have to parse. Blank rewrites, duplicates and
    echoes of the original question are dropped.
    """

    def __init__(self, llm_config: LLMConfig = None, num_rewrites: int = 3):
        if num_rewrites < 1:
            raise ValueError("num_rewrites must be at least 1")
        self._llm = get_llm(llm_config or LLMConfig())
        self._num_rewrites = num_rewrites
        self._prompt = PromptTemplate(
            input_variables=["question", "num_rewrites"],
            template=(
                "You rewrite questions that will be sent to a question answering "
                "system.\n\n"
                "Original question: {question}\n\n"
                "Write {num_rewrites} different versions of this question that:\n"
                "- Ask for exactly the same information\n"
                "- Use different wording or sentence structure\n"
                "- Are self-contained\n"
            ),
        )

    def rewrite(self, question: str) -> list[str]:
        chain = self._prompt | self._llm.with_structured_output(RewriteSet)
        result = chain.invoke({"question": question, "num_rewrites": self._num_rewrites})

        seen = {question.strip().lower()}
        rewrites = []
        for candidate in result.rewrites:
            text = candidate.strip()
            if not text or text.lower() in seen:
                continue
            seen.add(text.lower())
            rewrites.append(text)
        return rewrites[: self._num_rewrites]


def build_rewrite_queries(query: Query, rewrites: Iterable[str]) -> list[Query]:
    """
    One Query per rewrite, derived from the original query.

    Contexts, passthrough_debug, is_impossible and secondary_id are kept;
    original_question points at the original question; tokenization is
    dropped since it belonged to the original wording. Ids become
    "<id>_rewrite_<n>" (1-based) when the original has an id.
    """
    original_question = query.original_question or query.question
    return [
        query.model_copy(update={
            "question": rewrite,
            "tokenized_question": [],
            "original_question": original_question,
            "id": f"{query.id}_rewrite_{n}" if query.id is not None else None,
            "passthrough_debug": dict(query.passthrough_debug),
        })
        for n, rewrite in enumerate(rewrites, 1)
    ]


async def collect_qa_instance(
    server: EnvironmentServer,
    query: Query,
    rewriter: BaseRewriter,
    *,
    gold_answers: Iterable[str] = (),
    plausible_answers: Iterable[str] = (),
    title: Optional[str] = None,
    scorer: Optional[Scorer] = None,
) -> QAInstance:
    """
    Rewrite a question, query the environment, and assemble a QAInstance.

    The original and all rewrites go out as a single batch, so batch-level
    errors (e.g. SCRAPE_FAILED) propagate from here unchanged.
    """
    rewrites = await call_maybe_async(rewriter.rewrite, query.question)
    rewrite_queries = build_rewrite_queries(query, rewrites)

    request = EnvironmentRequest(queries=[query, *rewrite_queries])
    response = await server.get_observations(request)
    pairs = pair_batch(request, response)

    return assemble_qa_instance(
        pairs[0],
        pairs[1:],
        gold_answers=gold_answers,
        plausible_answers=plausible_answers,
        title=title,
        scorer=scorer,
    )
