"""
Abstract base class for question rewriters.

A rewriter takes a question and produces alternative phrasings of it.
Each rewrite is sent to the environment alongside the original, and the
resulting QueryResponses end up in QAInstance.qr_rewrites — that's how
offline pipelines measure whether rewriting a question gets a better
answer out of the environment.

Examples:
    "who wrote the iliad" → ["author of the iliad",
                             "which poet composed the iliad"]
"""

from abc import ABC, abstractmethod


class BaseRewriter(ABC):
    """
    Contract for question rewriters.

    rewrite() returns a list because most strategies produce several
    variants. An empty list is valid: the datapoint is then collected
    with the original question only.
    """

    @abstractmethod
    def rewrite(self, question: str) -> list[str]:
        """
        Produce alternative phrasings of a question.

        Args:
            question: The original question.

        Returns:
            Rewritten questions, without the original itself.
        """
        ...
