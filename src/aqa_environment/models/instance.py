"""
Bookkeeping models for evaluation pipelines.

QueryResponse ties an emitted Response back to the exact Query that
produced it. QAInstance is one full datapoint: the original question's
QueryResponse, the QueryResponses of its rewrites, and the labels.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .batch import EnvironmentRequest, EnvironmentResponse
from .query import Query
from .response import Response


class QueryResponse(BaseModel):
    """Container for a corresponding Query and Response."""

    model_config = ConfigDict(frozen=True)

    query: Optional[Query] = None
    response: Optional[Response] = None


class QAInstance(BaseModel):
    """
    Everything associated with one datapoint.

    qr_best, when set, is the QueryResponse judged to hold the best
    answer. It must be qr_original or one of qr_rewrites; the validator
    rejects anything else.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(default=None, description="Id of the whole datapoint")
    qr_original: Optional[QueryResponse] = Field(
        default=None, description="Environment input/output for the original question",
    )
    qr_rewrites: list[QueryResponse] = Field(
        default_factory=list, description="Environment input/output for the rewrites",
    )
    gold_answers: list[str] = Field(default_factory=list, description="Ground truth answers")
    qr_best: Optional[QueryResponse] = Field(
        default=None, description="The QueryResponse containing the best answer",
    )
    is_impossible: Optional[bool] = Field(default=None, description="Is the question unanswerable?")
    plausible_answers: list[str] = Field(
        default_factory=list, description="Human-selected plausible extractive answers",
    )
    title: Optional[str] = Field(
        default=None, description="Title of the article the passages come from",
    )

    @model_validator(mode="after")
    def validate_qr_best(self) -> "QAInstance":
        """qr_best has to be one of the candidates, not a free-standing pair."""
        if self.qr_best is None:
            return self
        candidates = [self.qr_original, *self.qr_rewrites]
        if not any(self.qr_best == c for c in candidates if c is not None):
            raise ValueError("qr_best must be qr_original or one of qr_rewrites")
        return self


def pair_batch(
    request: EnvironmentRequest, response: EnvironmentResponse
) -> list[QueryResponse]:
    """
    Zip a request and its response batch into QueryResponse pairs.

    Pairing is positional, which is what the environment guarantees.
    A length mismatch means the two batches don't belong together.
    """
    if len(request.queries) != len(response.responses):
        raise ValueError(
            f"Cannot pair {len(request.queries)} queries with "
            f"{len(response.responses)} responses"
        )
    return [
        QueryResponse(query=q, response=r)
        for q, r in zip(request.queries, response.responses)
    ]
