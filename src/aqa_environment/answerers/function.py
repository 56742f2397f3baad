"""
Adapter that turns a plain callable into an answerer.

Handy for composition (wrapping an existing service client) and for
tests:

    answerer = FunctionAnswerer(lambda q: Response(answers=[Observation(text="42")]))
    server = EnvironmentServer(answerer)
"""

from typing import Any, Callable

from aqa_environment.models.query import Query
from aqa_environment.models.response import Response
from aqa_environment.utils.helpers import call_maybe_async


class FunctionAnswerer:
    """Answers queries by calling ``fn(query)``; ``fn`` may be sync or async."""

    def __init__(self, fn: Callable[[Query], Any]):
        if not callable(fn):
            raise TypeError("FunctionAnswerer needs a callable")
        self._fn = fn

    async def answer(self, query: Query) -> Response:
        return await call_maybe_async(self._fn, query)
