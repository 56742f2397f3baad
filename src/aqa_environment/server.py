"""
The environment server: the GetObservations entry point.

EnvironmentServer is transport-agnostic. It owns a Dispatcher, runs the
batch-level checks, and maps failures onto the ErrorCode vocabulary:

    empty batch                  → NoQueriesError      (NO_QUERIES)
    empty question (reject mode) → EmptyQuestionError  (EMPTY_QUESTION)
    backend unreachable          → ScrapeFailedError   (SCRAPE_FAILED)

Per-query failures are NOT errors at this layer: they travel inside the
returned EnvironmentResponse as Response.error_message, and callers must
check each slot.

Transports wrap this class — see api.py for the HTTP one.

Usage:
    server = EnvironmentServer(LLMAnswerer(), DispatcherConfig(max_concurrency=16))
    response = await server.get_observations(request)
"""

import asyncio
import logging
from typing import Optional

from aqa_environment.base.answerer import Answerer
from aqa_environment.config import DispatcherConfig
from aqa_environment.dispatcher import Dispatcher
from aqa_environment.errors import (
    BackendUnavailableError,
    EnvironmentServerError,
    ScrapeFailedError,
)
from aqa_environment.models.batch import EnvironmentRequest, EnvironmentResponse
from aqa_environment.utils.helpers import call_maybe_async

logger = logging.getLogger(__name__)


class EnvironmentServer:
    """
    GetObservations(EnvironmentRequest) -> EnvironmentResponse.

    The answerer is injected here and shared by every request; it has to
    be safe for concurrent use.
    """

    def __init__(self, answerer: Answerer, config: Optional[DispatcherConfig] = None):
        """
        Args:
            answerer: Backend that answers single queries.
            config: Concurrency limit, batch deadline and empty-question
                policy. Defaults to DispatcherConfig().
        """
        self._dispatcher = Dispatcher(answerer, config)

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    async def get_observations(self, request: EnvironmentRequest) -> EnvironmentResponse:
        """
        Answer a batch of queries.

        Returns:
            The dispatcher's EnvironmentResponse, unchanged.

        Raises:
            NoQueriesError, EmptyQuestionError: the batch is malformed.
            ScrapeFailedError: the answerer backend is unavailable.
            BatchTimeoutError: the batch deadline expired.
        """
        try:
            self._dispatcher.validate(request)
        except EnvironmentServerError as exc:
            logger.warning("Rejected batch: %s", exc)
            raise

        await self._check_backend()

        try:
            return await self._dispatcher.dispatch_validated(request)
        except BackendUnavailableError as exc:
            logger.error("Answerer backend unavailable: %s", exc)
            raise ScrapeFailedError(str(exc) or "Answerer backend unavailable") from exc

    def get_observations_sync(self, request: EnvironmentRequest) -> EnvironmentResponse:
        """Blocking wrapper around get_observations()."""
        return asyncio.run(self.get_observations(request))

    async def _check_backend(self) -> None:
        """Fail fast with SCRAPE_FAILED if the answerer says it is down."""
        check = getattr(self._dispatcher.answerer, "check_available", None)
        if not callable(check):
            return
        try:
            available = await call_maybe_async(check)
        except BackendUnavailableError as exc:
            logger.error("Answerer availability check failed: %s", exc)
            raise ScrapeFailedError(str(exc) or "Answerer backend unavailable") from exc
        if not available:
            logger.error("Answerer reported itself unavailable")
            raise ScrapeFailedError("Answerer backend unavailable")
