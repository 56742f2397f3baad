"""
Query-side models: what the caller sends into the environment.

A Query is one question plus optional supporting Contexts (e.g. the
SQuAD paragraph the answer is extracted from). Queries are independent
of each other; the only thing tying a Query to its Response is the
position in the batch and, when set, the ``id``.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Context(BaseModel):
    """A supporting document for a question."""

    model_config = ConfigDict(frozen=True)

    document: Optional[str] = Field(
        default=None, description="Raw document text the answer may be extracted from",
    )
    tokenized_document: list[str] = Field(
        default_factory=list, description="Tokenized version of the document",
    )


class Query(BaseModel):
    """
    One question to answer.

    passthrough_debug is opaque to the environment: whatever the caller
    puts here is copied verbatim onto the matching Response, success or
    failure. Callers use it to carry correlation data through backends
    they don't control.
    """

    model_config = ConfigDict(frozen=True)

    question: Optional[str] = Field(default=None, description="The question itself")
    contexts: list[Context] = Field(
        default_factory=list, description="Additional contexts for the question",
    )
    id: Optional[str] = Field(
        default=None, description="Identifier used to align Queries and Responses",
    )
    passthrough_debug: dict[str, str] = Field(
        default_factory=dict,
        description="Debug information passed through the environment unaltered",
    )
    tokenized_question: list[str] = Field(
        default_factory=list, description="Tokenized version of the question",
    )
    original_question: Optional[str] = Field(
        default=None,
        description="The question this one was rewritten from; may be used for scoring",
    )
    is_impossible: Optional[bool] = Field(
        default=None, description="Is the question unanswerable (SQuAD 2.0)?",
    )
    secondary_id: Optional[str] = Field(
        default=None,
        description=(
            "For impossible questions: id of an answerable question from the "
            "same passage"
        ),
    )

    @property
    def has_question(self) -> bool:
        """True when the question is present and not just whitespace."""
        return bool(self.question and self.question.strip())
