"""
Shared utility functions.

Helpers used across the environment — LLM factory, sync/async call
bridging, context formatting.
"""

import asyncio
import inspect
from typing import Any, Callable

from langchain_core.language_models.chat_models import BaseChatModel

from aqa_environment.config import LLMConfig, LLMProvider
from aqa_environment.models.query import Context


def get_llm(config: LLMConfig) -> BaseChatModel:
    """
    Factory that returns a LangChain chat model based on config.

    Lazy imports so you only need the package for the provider you
    actually use.

    Used by:
        - answerers/llm.py (answering questions)
        - rewriting.py (rewriting questions)

    Args:
        config: LLMConfig with provider, model_name, temperature, max_tokens.

    Returns:
        A LangChain BaseChatModel instance.
    """
    if config.provider == LLMProvider.OPENAI:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    elif config.provider == LLMProvider.ANTHROPIC:
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    else:
        raise ValueError(
            f"Unknown LLM provider: '{config.provider}'. "
            f"Supported: 'openai', 'anthropic'."
        )


async def call_maybe_async(fn: Callable[..., Any], *args: Any) -> Any:
    """
    Call ``fn`` and return its result, whether it is sync or async.

    Coroutine functions are awaited directly. Plain callables run in a
    worker thread via asyncio.to_thread so a blocking backend doesn't
    stall the event loop. A plain callable that happens to return an
    awaitable gets that awaitable awaited too.
    """
    if inspect.iscoroutinefunction(fn):
        return await fn(*args)
    result = await asyncio.to_thread(fn, *args)
    if inspect.isawaitable(result):
        result = await result
    return result


def format_contexts(contexts: list[Context]) -> str:
    """
    Number the documents of a query for prompting: "[1] ...\\n\\n[2] ...".

    Contexts without a document fall back to their joined tokens; contexts
    with neither are skipped (numbering stays contiguous).
    """
    parts = []
    for context in contexts:
        text = context.document or " ".join(context.tokenized_document)
        if text.strip():
            parts.append(f"[{len(parts) + 1}] {text.strip()}")
    return "\n\n".join(parts)
