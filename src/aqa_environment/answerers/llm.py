"""
LLM-backed answerer: asks a chat model to answer each query.

The query's contexts, when present, are numbered and placed in the
prompt so the model answers from them (reading-comprehension style, as
in SQuAD). Without contexts the model answers from its own knowledge.

The answerer is async (``ainvoke``), so the dispatcher runs many queries
against one model client concurrently without extra threads.

Usage:
    from aqa_environment.answerers import LLMAnswerer

    answerer = LLMAnswerer(LLMConfig(provider="openai", model_name="gpt-4o-mini"))
    server = EnvironmentServer(answerer)
"""

import anthropic
import openai
from langchain_core.prompts import PromptTemplate

from aqa_environment.config import LLMConfig
from aqa_environment.errors import AnswerError, BackendUnavailableError
from aqa_environment.models.query import Query
from aqa_environment.models.response import Observation, Response
from aqa_environment.utils.helpers import format_contexts, get_llm


# Transport-level failures: the provider cannot be reached at all, so no
# query in the batch can succeed. Rate limits and bad requests stay
# query-scoped.
_UNREACHABLE_ERRORS = (
    ConnectionError,
    TimeoutError,
    openai.APIConnectionError,
    anthropic.APIConnectionError,
)


class LLMAnswerer:
    """
    Question → chat model → one answer Observation.

    The Response carries:
        answers[0].text          — the model's answer
        observations["model"]    — "<provider>/<model_name>" that produced it
        processed_question       — the question as sent to the model
    """

    def __init__(self, llm_config: LLMConfig = None):
        config = llm_config or LLMConfig()
        self._llm = get_llm(config)
        self._model_name = f"{config.provider.value}/{config.model_name}"

        # Prompt for questions that come with contexts
        self._context_prompt = PromptTemplate(
            input_variables=["context", "question"],
            template=(
                "Answer the question using only the following context.\n\n"
                "Context:\n{context}\n\n"
                "Question: {question}\n\n"
                "Reply with the shortest span that answers the question, "
                "with no explanation.\n\n"
                "Answer:"
            ),
        )

        # Prompt for bare questions
        self._no_context_prompt = PromptTemplate(
            input_variables=["question"],
            template=(
                "Answer the following question.\n\n"
                "Question: {question}\n\n"
                "Reply with a short answer and no explanation.\n\n"
                "Answer:"
            ),
        )

    @property
    def model_name(self) -> str:
        return self._model_name

    async def answer(self, query: Query) -> Response:
        question = query.question.strip()
        context = format_contexts(query.contexts)

        try:
            if context:
                chain = self._context_prompt | self._llm
                result = await chain.ainvoke({"context": context, "question": question})
            else:
                chain = self._no_context_prompt | self._llm
                result = await chain.ainvoke({"question": question})
        except _UNREACHABLE_ERRORS as exc:
            raise BackendUnavailableError(
                f"{self._model_name} unreachable: {exc}"
            ) from exc

        # Chat models return AIMessage objects; extract the text
        text = result.content if hasattr(result, "content") else str(result)
        if not isinstance(text, str):
            text = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in text
            )
        text = text.strip()
        if not text:
            raise AnswerError(f"{self._model_name} returned an empty answer")

        return Response.for_query(
            query,
            processed_question=question,
            answers=[Observation(text=text)],
            observations={"model": Observation(text=self._model_name)},
        )
