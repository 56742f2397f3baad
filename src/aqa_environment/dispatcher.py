"""
Batch dispatch: one EnvironmentRequest in, one EnvironmentResponse out.

This is the core of the environment. For every request it:
    1. Validates the batch (non-empty, no empty questions)
    2. Fans each Query out to the answerer, at most max_concurrency at once
    3. Waits for every query — success or failure — before returning
    4. Places each Response at its query's input index

Failure isolation:
    - An answerer error on one query (AnswerError or any other exception)
      becomes that slot's Response.error_message. Its neighbours are
      unaffected and the batch still succeeds.
    - BackendUnavailableError means no query can succeed: remaining
      in-flight calls are cancelled and the error propagates.
    - A batch deadline (timeout_seconds) or an external cancellation
      cancels everything in flight. No partial response is returned.

Usage:
    dispatcher = Dispatcher(answerer, DispatcherConfig(max_concurrency=4))
    response = await dispatcher.dispatch(request)
    # len(response.responses) == len(request.queries)
"""

import asyncio
import contextlib
import logging
import time
from typing import Optional

from aqa_environment.base.answerer import Answerer
from aqa_environment.config import DispatcherConfig, EmptyQuestionPolicy
from aqa_environment.errors import (
    AnswerError,
    BackendUnavailableError,
    BatchTimeoutError,
    EmptyQuestionError,
    NoQueriesError,
)
from aqa_environment.models.batch import EnvironmentRequest, EnvironmentResponse
from aqa_environment.models.query import Query
from aqa_environment.models.response import Response
from aqa_environment.utils.helpers import call_maybe_async

logger = logging.getLogger(__name__)

EMPTY_QUESTION_MESSAGE = "Empty question"


class Dispatcher:
    """
    Fans a batch of queries out to an answerer and reassembles the results.

    The dispatcher holds no per-request state, so one instance can serve
    any number of concurrent requests. max_concurrency applies per request;
    max_total_concurrency, when set, is shared by every request this
    instance serves.
    """

    def __init__(self, answerer: Answerer, config: Optional[DispatcherConfig] = None):
        if not callable(getattr(answerer, "answer", None)):
            raise TypeError(
                f"{type(answerer).__name__} has no answer() method; "
                "an answerer must implement answer(query) -> Response"
            )
        self._answerer = answerer
        self._config = config or DispatcherConfig()
        self._shared_semaphore: Optional[asyncio.Semaphore] = None
        self._shared_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def answerer(self) -> Answerer:
        return self._answerer

    @property
    def config(self) -> DispatcherConfig:
        return self._config

    def validate(self, request: EnvironmentRequest) -> None:
        """
        Batch-level checks, cheap and done before any answerer call.

        Raises:
            NoQueriesError: the request has no queries.
            EmptyQuestionError: a query has an empty question and the
                policy is REJECT_BATCH. Under PER_QUERY empty questions
                are left for dispatch to fail individually.
        """
        if not request.queries:
            raise NoQueriesError()
        if self._config.empty_question_policy == EmptyQuestionPolicy.REJECT_BATCH:
            for index, query in enumerate(request.queries):
                if not query.has_question:
                    raise EmptyQuestionError(index, query.id)

    async def dispatch(self, request: EnvironmentRequest) -> EnvironmentResponse:
        """
        Validate the request, then answer every query in it.

        Args:
            request: The batch to answer.

        Returns:
            EnvironmentResponse with exactly one Response per query, in
            input order.

        Raises:
            NoQueriesError, EmptyQuestionError: see validate().
            BackendUnavailableError: the answerer's backend is down.
            BatchTimeoutError: the batch exceeded timeout_seconds.
        """
        self.validate(request)
        return await self.dispatch_validated(request)

    async def dispatch_validated(self, request: EnvironmentRequest) -> EnvironmentResponse:
        """Like dispatch(), for callers that already ran validate()."""
        queries = request.queries
        started = time.monotonic()
        logger.debug(
            "Dispatching batch of %d queries (max_concurrency=%d)",
            len(queries),
            self._config.max_concurrency,
        )

        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        shared = self._shared_limit()
        tasks = [
            asyncio.create_task(self._answer_one(index, query, semaphore, shared))
            for index, query in enumerate(queries)
        ]

        try:
            gathered = asyncio.gather(*tasks)
            if self._config.timeout_seconds is None:
                responses = await gathered
            else:
                responses = await asyncio.wait_for(
                    gathered, timeout=self._config.timeout_seconds
                )
        except asyncio.TimeoutError:
            logger.warning(
                "Batch of %d queries timed out after %.2fs",
                len(queries),
                self._config.timeout_seconds,
            )
            raise BatchTimeoutError(self._config.timeout_seconds, len(queries))
        finally:
            # On any early exit, nothing of this batch may keep running.
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        failed = sum(1 for r in responses if r.error_message is not None)
        logger.info(
            "Answered batch of %d queries (%d failed) in %.3fs",
            len(responses),
            failed,
            time.monotonic() - started,
        )
        # gather() preserves argument order, so responses[i] answers queries[i]
        # no matter which task finished first.
        return EnvironmentResponse(responses=responses)

    def dispatch_sync(self, request: EnvironmentRequest) -> EnvironmentResponse:
        """Blocking wrapper around dispatch() for callers without an event loop."""
        return asyncio.run(self.dispatch(request))

    def _shared_limit(self) -> contextlib.AbstractAsyncContextManager:
        """The cross-request limit for the running loop, or a no-op when unset."""
        if self._config.max_total_concurrency is None:
            return contextlib.nullcontext()
        # asyncio primitives are bound to one event loop; dispatch_sync()
        # starts a fresh loop per call.
        loop = asyncio.get_running_loop()
        if self._shared_semaphore is None or self._shared_loop is not loop:
            self._shared_semaphore = asyncio.Semaphore(self._config.max_total_concurrency)
            self._shared_loop = loop
        return self._shared_semaphore

    async def _answer_one(
        self,
        index: int,
        query: Query,
        semaphore: asyncio.Semaphore,
        shared: contextlib.AbstractAsyncContextManager,
    ) -> Response:
        """Answer one query, turning query-scoped failures into an error Response."""
        if not query.has_question:
            return Response.from_error(query, EMPTY_QUESTION_MESSAGE)

        async with semaphore, shared:
            try:
                result = await call_maybe_async(self._answerer.answer, query)
            except BackendUnavailableError:
                raise
            except AnswerError as exc:
                logger.warning("Query %d (id=%s) failed: %s", index, query.id, exc)
                return Response.from_error(query, str(exc))
            except Exception as exc:
                logger.warning(
                    "Query %d (id=%s) raised %s", index, query.id, type(exc).__name__,
                    exc_info=True,
                )
                return Response.from_error(query, f"{type(exc).__name__}: {exc}")

        return self._correlate(index, query, result)

    def _correlate(self, index: int, query: Query, result: object) -> Response:
        """
        Stamp the query's correlation fields onto the answerer's Response.

        id and passthrough_debug always come from the query. question and
        original_question are echoed only when the answerer left them unset.
        """
        if not isinstance(result, Response):
            logger.warning(
                "Query %d (id=%s): answerer returned %s instead of a Response",
                index, query.id, type(result).__name__,
            )
            return Response.from_error(
                query, f"Answerer returned {type(result).__name__}, expected Response"
            )

        update = {
            "id": query.id,
            "passthrough_debug": dict(query.passthrough_debug),
        }
        if result.question is None:
            update["question"] = query.question
        if result.original_question is None and query.original_question is not None:
            update["original_question"] = query.original_question
        return result.model_copy(update=update)
