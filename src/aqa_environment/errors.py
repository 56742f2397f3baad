"""
Exception hierarchy for the environment.

Two tiers, matching where an error is allowed to end up:

    Batch-level (abort the whole GetObservations call, no response batch):
        EnvironmentServerError  — carries an ErrorCode
            NoQueriesError      — NO_QUERIES
            EmptyQuestionError  — EMPTY_QUESTION
            ScrapeFailedError   — SCRAPE_FAILED
        BatchTimeoutError       — the batch deadline expired

    Raised by answerers:
        AnswerError             — this one query failed; becomes
                                  Response.error_message, batch continues
        BackendUnavailableError — the backend as a whole is down; the
                                  server turns it into SCRAPE_FAILED
"""

from typing import Optional

from aqa_environment.models.batch import ErrorCode


class EnvironmentServerError(Exception):
    """Base class for batch-level failures of the environment server."""

    error_code: ErrorCode = ErrorCode.NO_ERROR

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code

    def __str__(self) -> str:
        return f"{self.error_code.name}: {self.message}"


class NoQueriesError(EnvironmentServerError):
    """The request contained no queries."""

    error_code = ErrorCode.NO_QUERIES

    def __init__(self, message: str = "Request contains no queries"):
        super().__init__(message)


class EmptyQuestionError(EnvironmentServerError):
    """A query in the request has an empty or missing question."""

    error_code = ErrorCode.EMPTY_QUESTION

    def __init__(self, index: int, query_id: Optional[str] = None):
        where = f"index {index}" + (f" (id={query_id!r})" if query_id else "")
        super().__init__(f"Query at {where} has an empty question")
        self.index = index
        self.query_id = query_id


class ScrapeFailedError(EnvironmentServerError):
    """The answerer backend could not be reached for this batch."""

    error_code = ErrorCode.SCRAPE_FAILED


class BatchTimeoutError(Exception):
    """The batch did not complete within DispatcherConfig.timeout_seconds."""

    def __init__(self, timeout_seconds: float, num_queries: int):
        super().__init__(
            f"Batch of {num_queries} queries did not complete within {timeout_seconds}s"
        )
        self.timeout_seconds = timeout_seconds
        self.num_queries = num_queries


class AnswerError(Exception):
    """Query-scoped answerer failure. Recorded on the Response, not raised further."""


class BackendUnavailableError(Exception):
    """The answerer's backend is unreachable; no query in the batch can succeed."""
