"""Shared utilities."""

from .helpers import call_maybe_async, format_contexts, get_llm

__all__ = ["call_maybe_async", "format_contexts", "get_llm"]
