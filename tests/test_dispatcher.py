"""Tests for the batch dispatcher — in-process fake answerers only."""

import asyncio

import pytest

from aqa_environment.config import DispatcherConfig, EmptyQuestionPolicy
from aqa_environment.dispatcher import EMPTY_QUESTION_MESSAGE, Dispatcher
from aqa_environment.errors import (
    BackendUnavailableError,
    BatchTimeoutError,
    EmptyQuestionError,
    NoQueriesError,
)
from aqa_environment.models import EnvironmentRequest, Observation, Query, Response

from conftest import DelayedAnswerer, FailingAnswerer


class TestValidation:

    def test_requires_answer_method(self):
        with pytest.raises(TypeError, match="answer"):
            Dispatcher(object())

    def test_no_queries(self, echo_answerer):
        dispatcher = Dispatcher(echo_answerer)
        with pytest.raises(NoQueriesError) as info:
            dispatcher.dispatch_sync(EnvironmentRequest(queries=[]))
        assert info.value.error_code == 1

    def test_empty_question_rejects_batch(self, echo_answerer):
        dispatcher = Dispatcher(echo_answerer)
        request = EnvironmentRequest(queries=[Query(question="ok?"), Query(question="", id="bad")])
        with pytest.raises(EmptyQuestionError) as info:
            dispatcher.dispatch_sync(request)
        assert info.value.index == 1
        assert info.value.query_id == "bad"
        assert echo_answerer.calls == []  # nothing dispatched

    def test_missing_question_rejects_batch(self, echo_answerer):
        dispatcher = Dispatcher(echo_answerer)
        with pytest.raises(EmptyQuestionError):
            dispatcher.dispatch_sync(EnvironmentRequest(queries=[Query(id="no-question")]))

    def test_empty_question_per_query_policy(self, echo_answerer):
        config = DispatcherConfig(empty_question_policy=EmptyQuestionPolicy.PER_QUERY)
        dispatcher = Dispatcher(echo_answerer, config)
        request = EnvironmentRequest(queries=[
            Query(question="first?", id="a"),
            Query(question="  ", id="b", passthrough_debug={"x": "y"}),
        ])
        response = dispatcher.dispatch_sync(request)

        assert response.responses[0].ok
        assert response.responses[1].error_message == EMPTY_QUESTION_MESSAGE
        assert response.responses[1].id == "b"
        assert response.responses[1].passthrough_debug == {"x": "y"}
        # The answerer never saw the empty question
        assert [q.id for q in echo_answerer.calls] == ["a"]

    def test_per_query_policy_still_rejects_empty_batch(self, echo_answerer):
        config = DispatcherConfig(empty_question_policy="per_query")
        with pytest.raises(NoQueriesError):
            Dispatcher(echo_answerer, config).dispatch_sync(EnvironmentRequest())


class TestCorrespondence:

    def test_one_response_per_query(self, echo_answerer, sample_request):
        response = Dispatcher(echo_answerer).dispatch_sync(sample_request)
        assert len(response.responses) == len(sample_request.queries)

    def test_ids_and_passthrough_echoed(self, echo_answerer, sample_request):
        response = Dispatcher(echo_answerer).dispatch_sync(sample_request)
        for query, resp in zip(sample_request.queries, response.responses):
            assert resp.id == query.id
            assert resp.passthrough_debug == query.passthrough_debug
            assert resp.question == query.question

    def test_answers_filled(self, echo_answerer, sample_request):
        response = Dispatcher(echo_answerer).dispatch_sync(sample_request)
        assert response.responses[1].answers[0].text == "WHAT IS THE CAPITAL OF FRANCE?"

    def test_sync_answerer(self, sync_echo_answerer, sample_request):
        response = Dispatcher(sync_echo_answerer).dispatch_sync(sample_request)
        assert [r.answers[0].text for r in response.responses] == [
            q.question.upper() for q in sample_request.queries
        ]

    @pytest.mark.asyncio
    async def test_order_independent_of_completion(self, reversed_answerer, sample_request):
        dispatcher = Dispatcher(reversed_answerer, DispatcherConfig(max_concurrency=3))
        response = await dispatcher.dispatch(sample_request)

        assert reversed_answerer.completed == ["q2", "q1", "q0"]
        assert [r.id for r in response.responses] == ["q0", "q1", "q2"]
        assert [r.answers[0].text for r in response.responses] == ["q0", "q1", "q2"]

    def test_answerer_id_overridden_by_query(self, sample_request):
        class WrongId:
            def answer(self, query):
                return Response(id="something-else", passthrough_debug={"leak": "1"})

        response = Dispatcher(WrongId()).dispatch_sync(sample_request)
        assert [r.id for r in response.responses] == ["q0", "q1", "q2"]
        assert response.responses[2].passthrough_debug == {}

    def test_query_without_id_gets_response_without_id(self):
        class Labeled:
            def answer(self, query):
                return Response(id="made-up")

        request = EnvironmentRequest(queries=[Query(question="no id here")])
        response = Dispatcher(Labeled()).dispatch_sync(request)
        assert response.responses[0].id is None

    def test_original_question_echoed(self):
        class Bare:
            def answer(self, query):
                return Response()

        request = EnvironmentRequest(queries=[Query(question="rw", original_question="orig")])
        response = Dispatcher(Bare()).dispatch_sync(request)
        assert response.responses[0].question == "rw"
        assert response.responses[0].original_question == "orig"


class TestFailureIsolation:

    def test_middle_failure_isolated(self, failing_answerer, sample_request):
        response = Dispatcher(failing_answerer).dispatch_sync(sample_request)
        r0, r1, r2 = response.responses

        assert r1.error_message
        assert "scrape failed" in r1.error_message
        assert r1.answers == [] and r1.observations == {}
        assert r1.id == "q1"
        assert r1.passthrough_debug == {"row": "1"}

        for ok in (r0, r2):
            assert ok.error_message is None
            assert ok.answers

    def test_unexpected_exception_is_query_scoped(self, sample_request):
        answerer = FailingAnswerer({"q0"}, exc_type=KeyError)
        response = Dispatcher(answerer).dispatch_sync(sample_request)
        assert response.responses[0].error_message.startswith("KeyError")
        assert response.responses[1].ok and response.responses[2].ok

    def test_non_response_result_is_query_scoped(self, sample_request):
        class ReturnsString:
            def answer(self, query):
                return "Homer"

        response = Dispatcher(ReturnsString()).dispatch_sync(sample_request)
        assert all("expected Response" in r.error_message for r in response.responses)

    def test_all_queries_complete_despite_failure(self, sample_request):
        class SlowAfterFailure:
            def __init__(self):
                self.finished = []

            async def answer(self, query):
                if query.id == "q0":
                    raise RuntimeError("first one fails fast")
                await asyncio.sleep(0.02)
                self.finished.append(query.id)
                return Response(answers=[Observation(text="late")])

        answerer = SlowAfterFailure()
        response = Dispatcher(answerer).dispatch_sync(sample_request)
        assert sorted(answerer.finished) == ["q1", "q2"]
        assert response.responses[2].answers[0].text == "late"

    def test_backend_unavailable_aborts_batch(self, unavailable_answerer, sample_request):
        with pytest.raises(BackendUnavailableError):
            Dispatcher(unavailable_answerer).dispatch_sync(sample_request)


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self, tracking_answerer):
        request = EnvironmentRequest(
            queries=[Query(question=f"q{i}?", id=str(i)) for i in range(10)]
        )
        dispatcher = Dispatcher(tracking_answerer, DispatcherConfig(max_concurrency=3))
        response = await dispatcher.dispatch(request)

        assert len(response.responses) == 10
        assert tracking_answerer.peak <= 3
        assert tracking_answerer.peak > 1  # actually ran in parallel

    @pytest.mark.asyncio
    async def test_concurrency_of_one_is_sequential(self, tracking_answerer, sample_request):
        dispatcher = Dispatcher(tracking_answerer, DispatcherConfig(max_concurrency=1))
        await dispatcher.dispatch(sample_request)
        assert tracking_answerer.peak == 1

    @pytest.mark.asyncio
    async def test_timeout_cancels_in_flight(self, sample_request):
        cancelled = []

        class Hangs:
            async def answer(self, query):
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    cancelled.append(query.id)
                    raise
                return Response()

        dispatcher = Dispatcher(Hangs(), DispatcherConfig(timeout_seconds=0.05))
        with pytest.raises(BatchTimeoutError) as info:
            await dispatcher.dispatch(sample_request)

        assert info.value.num_queries == 3
        assert sorted(cancelled) == ["q0", "q1", "q2"]

    @pytest.mark.asyncio
    async def test_fast_batch_within_timeout(self, echo_answerer, sample_request):
        dispatcher = Dispatcher(echo_answerer, DispatcherConfig(timeout_seconds=5))
        response = await dispatcher.dispatch(sample_request)
        assert len(response.responses) == 3

    @pytest.mark.asyncio
    async def test_backend_unavailable_cancels_siblings(self, sample_request):
        cancelled = []

        class DownAfterOne:
            async def answer(self, query):
                if query.id == "q2":
                    raise BackendUnavailableError("lost connection")
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    cancelled.append(query.id)
                    raise
                return Response()

        with pytest.raises(BackendUnavailableError):
            await Dispatcher(DownAfterOne()).dispatch(sample_request)
        assert sorted(cancelled) == ["q0", "q1"]

    @pytest.mark.asyncio
    async def test_external_cancellation(self, sample_request):
        answerer = DelayedAnswerer({"q0": 10, "q1": 10, "q2": 10})
        task = asyncio.create_task(Dispatcher(answerer).dispatch(sample_request))
        await asyncio.sleep(0.02)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert answerer.completed == []

    @pytest.mark.asyncio
    async def test_concurrent_batches_share_dispatcher(self, echo_answerer):
        dispatcher = Dispatcher(echo_answerer)
        requests = [
            EnvironmentRequest(queries=[Query(question=f"batch {b} q {i}", id=f"{b}-{i}") for i in range(3)])
            for b in range(4)
        ]
        results = await asyncio.gather(*(dispatcher.dispatch(r) for r in requests))
        for b, result in enumerate(results):
            assert [r.id for r in result.responses] == [f"{b}-{i}" for i in range(3)]


class TestSharedConcurrencyLimit:

    def _batches(self, count, size):
        return [
            EnvironmentRequest(queries=[Query(question=f"b{b} q{i}?", id=f"{b}-{i}") for i in range(size)])
            for b in range(count)
        ]

    @pytest.mark.asyncio
    async def test_limit_spans_concurrent_batches(self, tracking_answerer):
        config = DispatcherConfig(max_concurrency=3, max_total_concurrency=2)
        dispatcher = Dispatcher(tracking_answerer, config)

        results = await asyncio.gather(
            *(dispatcher.dispatch(r) for r in self._batches(3, 4))
        )

        assert all(len(result.responses) == 4 for result in results)
        assert tracking_answerer.peak == 2

    @pytest.mark.asyncio
    async def test_without_shared_limit_batches_add_up(self, tracking_answerer):
        dispatcher = Dispatcher(tracking_answerer, DispatcherConfig(max_concurrency=2))
        await asyncio.gather(*(dispatcher.dispatch(r) for r in self._batches(3, 4)))
        assert tracking_answerer.peak > 2

    def test_shared_limit_with_repeated_sync_calls(self, tracking_answerer, sample_request):
        config = DispatcherConfig(max_total_concurrency=1)
        dispatcher = Dispatcher(tracking_answerer, config)

        first = dispatcher.dispatch_sync(sample_request)
        second = dispatcher.dispatch_sync(sample_request)

        assert len(first.responses) == len(second.responses) == 3
        assert tracking_answerer.peak == 1
