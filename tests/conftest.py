"""
Shared test fixtures for the aqa-environment test suite.

Provides reusable fixtures: sample queries and batches, plus small
in-process answerers with controllable behaviour (failures, delays,
concurrency tracking). Nothing here talks to a network service.
"""

import asyncio
from typing import Any

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from aqa_environment.config import DispatcherConfig
from aqa_environment.errors import AnswerError, BackendUnavailableError
from aqa_environment.models import (
    Context,
    EnvironmentRequest,
    Observation,
    Query,
    Response,
)


# ---------------------------------------------------------------------------
# Fake answerers
# ---------------------------------------------------------------------------

class EchoAnswerer:
    """Answers every query with its upper-cased question."""

    def __init__(self):
        self.calls = []

    async def answer(self, query):
        self.calls.append(query)
        return Response(
            answers=[Observation(text=query.question.upper(), scores={"confidence": 0.9})],
        )


class SyncEchoAnswerer:
    """Same as EchoAnswerer but with a blocking answer() method."""

    def answer(self, query):
        return Response(answers=[Observation(text=query.question.upper())])


class FailingAnswerer:
    """Raises AnswerError for the query ids in ``fail_ids``."""

    def __init__(self, fail_ids, exc_type=AnswerError):
        self.fail_ids = set(fail_ids)
        self.exc_type = exc_type

    async def answer(self, query):
        if query.id in self.fail_ids:
            raise self.exc_type(f"scrape failed for {query.id}")
        return Response(answers=[Observation(text=f"answer to {query.question}")])


class DelayedAnswerer:
    """
    Sleeps ``delays[query.id]`` seconds before answering and records the
    order in which queries complete.
    """

    def __init__(self, delays):
        self.delays = delays
        self.completed = []

    async def answer(self, query):
        await asyncio.sleep(self.delays.get(query.id, 0))
        self.completed.append(query.id)
        return Response(answers=[Observation(text=query.id)])


class ConcurrencyTrackingAnswerer:
    """Records the peak number of simultaneous answer() calls."""

    def __init__(self, delay=0.02):
        self.delay = delay
        self.in_flight = 0
        self.peak = 0

    async def answer(self, query):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        return Response(answers=[Observation(text="ok")])


class UnavailableAnswerer:
    """A backend that is down for every query."""

    async def answer(self, query):
        raise BackendUnavailableError("connection refused")


class UnreachableChatModel(FakeListChatModel):
    """Chat model whose provider cannot be reached."""

    error: Any = None

    async def _agenerate(self, *args, **kwargs):
        raise self.error or ConnectionError("connection refused")


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_queries():
    """Three independent queries with ids and passthrough metadata."""
    return [
        Query(
            question="Who wrote the Iliad?",
            id="q0",
            passthrough_debug={"row": "0", "split": "dev"},
            contexts=[Context(document="The Iliad is attributed to Homer.")],
        ),
        Query(question="What is the capital of France?", id="q1", passthrough_debug={"row": "1"}),
        Query(question="When did Apollo 11 land?", id="q2"),
    ]


@pytest.fixture
def sample_request(sample_queries):
    return EnvironmentRequest(queries=sample_queries)


# ---------------------------------------------------------------------------
# Answerer fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def echo_answerer():
    return EchoAnswerer()


@pytest.fixture
def sync_echo_answerer():
    return SyncEchoAnswerer()


@pytest.fixture
def failing_answerer():
    """Fails only the query with id 'q1' (index 1 of sample_queries)."""
    return FailingAnswerer({"q1"})


@pytest.fixture
def reversed_answerer():
    """Completion order q2, q1, q0 — the reverse of input order."""
    return DelayedAnswerer({"q0": 0.06, "q1": 0.03, "q2": 0.0})


@pytest.fixture
def tracking_answerer():
    return ConcurrencyTrackingAnswerer()


@pytest.fixture
def unavailable_answerer():
    return UnavailableAnswerer()


@pytest.fixture
def dispatcher_config():
    return DispatcherConfig(max_concurrency=4)
