"""
The answerer contract.

An answerer is the backend that turns one Query into one Response — a
QA model, a search index, a scraper. The environment core never looks
inside it; it only calls ``answer``.

This is a structural Protocol, not a base class: any object with a
matching ``answer`` method is an answerer, and backends are swapped by
passing a different object to EnvironmentServer, not by subclassing.

``answer`` may be a plain method or a coroutine function. Plain methods
are run in a worker thread so they don't block the event loop; either
way the implementation must be safe to call concurrently, since one
answerer serves every in-flight query of every batch.

Failure signalling:
    raise AnswerError(...)             → this query fails, batch continues
    raise BackendUnavailableError(...) → whole batch fails with SCRAPE_FAILED

An answerer may also expose ``check_available()`` (sync or async). If it
does, the server calls it before dispatching a batch and fails fast with
SCRAPE_FAILED when it returns a falsy value.
"""

from typing import Awaitable, Protocol, Union, runtime_checkable

from aqa_environment.models.query import Query
from aqa_environment.models.response import Response


@runtime_checkable
class Answerer(Protocol):
    """Anything that can answer a single Query."""

    def answer(self, query: Query) -> Union[Response, Awaitable[Response]]:
        """
        Answer one query.

        Args:
            query: The query to answer. Never mutated.

        Returns:
            A Response with answers/observations filled in. Correlation
            fields (id, passthrough_debug) are enforced by the dispatcher,
            so implementations don't have to copy them.
        """
        ...
