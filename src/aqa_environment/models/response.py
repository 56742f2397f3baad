"""
Response-side models: what the environment sends back.

An Observation is one discrete piece of output — an answer, a snippet,
a URL. A Response groups the Observations produced for one Query.

Errors are response-scoped: a backend failure on one query is recorded
in that Response's error_message while the rest of the batch carries
normal answers.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .query import Query

# Observation reserves this numeric range for caller-defined extensions.
EXTENSION_RANGE_START = 10000


class Observation(BaseModel):
    """
    One unit of environment output.

    Scores are caller-defined (confidence, F1, rank, ...) — there is no
    fixed vocabulary. ``extensions`` is the open slot for structured
    payloads beyond text/scores, keyed by extension number.
    """

    model_config = ConfigDict(frozen=True)

    text: Optional[str] = Field(default=None, description="The observation text, e.g. an answer")
    scores: dict[str, float] = Field(
        default_factory=dict, description="Scores such as confidence, F1, or rank",
    )
    extensions: dict[int, Any] = Field(
        default_factory=dict,
        description=f"Caller-defined payloads keyed by extension number (>= {EXTENSION_RANGE_START})",
    )

    @field_validator("extensions")
    @classmethod
    def validate_extension_keys(cls, value: dict[int, Any]) -> dict[int, Any]:
        """Extension numbers below the reserved range would collide with core fields."""
        bad = sorted(k for k in value if k < EXTENSION_RANGE_START)
        if bad:
            raise ValueError(
                f"extension numbers must be >= {EXTENSION_RANGE_START}, got {bad}"
            )
        return value

    def score(self, name: str, default: Optional[float] = None) -> Optional[float]:
        return self.scores.get(name, default)


class Response(BaseModel):
    """The environment's answer to one Query."""

    model_config = ConfigDict(frozen=True)

    question: Optional[str] = Field(
        default=None, description="The input question sent to the environment",
    )
    processed_question: Optional[str] = Field(
        default=None, description="The question as processed by the environment",
    )
    answers: list[Observation] = Field(
        default_factory=list, description="Answers produced by the environment",
    )
    observations: dict[str, Observation] = Field(
        default_factory=dict,
        description="Additional context produced by the environment (snippets, documents, ...)",
    )
    id: Optional[str] = Field(default=None, description="Id of the originating Query")
    passthrough_debug: dict[str, str] = Field(
        default_factory=dict, description="Copied verbatim from the originating Query",
    )
    original_question: Optional[str] = Field(default=None, description="The original question")
    error_message: Optional[str] = Field(
        default=None, description="Per-response error; unset on success",
    )
    question_original_similarity: Optional[float] = Field(
        default=None, description="Similarity between question and original_question",
    )

    @property
    def ok(self) -> bool:
        return self.error_message is None

    @classmethod
    def for_query(cls, query: Query, **fields: Any) -> "Response":
        """
        Build a Response that echoes the correlation fields of ``query``.

        question, id, passthrough_debug and original_question come from the
        query; anything in ``fields`` is set on top (answers, observations,
        processed_question, ...).
        """
        echoed = {
            "question": query.question,
            "id": query.id,
            "passthrough_debug": dict(query.passthrough_debug),
            "original_question": query.original_question,
        }
        echoed.update(fields)
        return cls(**echoed)

    @classmethod
    def from_error(cls, query: Query, message: str) -> "Response":
        """A failed slot: correlation fields echoed, no answers, error_message set."""
        return cls.for_query(query, error_message=message or "unknown error")
