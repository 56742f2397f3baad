"""
Batch envelopes for the GetObservations call, and the RPC error codes.

The i-th Response in an EnvironmentResponse always answers the i-th
Query of the EnvironmentRequest it came from.
"""

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from .query import Query
from .response import Response


class ErrorCode(IntEnum):
    """
    Batch-level error codes of the environment server.

    The values are fixed; clients compare against the integers.
    """

    NO_ERROR = 0
    NO_QUERIES = 1
    EMPTY_QUESTION = 2
    SCRAPE_FAILED = 3


class EnvironmentRequest(BaseModel):
    """A batch of queries, handled independently by the environment."""

    model_config = ConfigDict(frozen=True)

    queries: list[Query] = Field(default_factory=list)


class EnvironmentResponse(BaseModel):
    """One Response per Query of the originating request, in the same order."""

    model_config = ConfigDict(frozen=True)

    responses: list[Response] = Field(default_factory=list)

    @property
    def errors(self) -> dict[int, str]:
        """Index → error_message for every failed slot."""
        return {
            i: r.error_message
            for i, r in enumerate(self.responses)
            if r.error_message is not None
        }
