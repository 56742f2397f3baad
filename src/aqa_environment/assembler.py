"""
QAInstance assembly for offline evaluation.

Takes QueryResponse pairs that the environment already produced — one
for the original question, any number for its rewrites — plus the label
data, and builds a QAInstance.

Choosing qr_best is delegated to a caller-supplied scorer:

    scorer(QueryResponse) -> Optional[float]

The candidate with the highest score wins. Candidates are considered in
order (original first, then rewrites), so on a tie the earliest one is
kept. A scorer returning None (or NaN) for a candidate excludes it. Without a
scorer, qr_best is left unset.

Usage:
    instance = assemble_qa_instance(
        qr_original, [qr_rw1, qr_rw2],
        id="q-17",
        gold_answers=["Homer"],
        scorer=max_answer_score("f1"),
    )
"""

import math
from typing import Callable, Iterable, Optional, Sequence

from aqa_environment.models.instance import QAInstance, QueryResponse

Scorer = Callable[[QueryResponse], Optional[float]]


def select_best(
    candidates: Sequence[QueryResponse], scorer: Scorer
) -> Optional[QueryResponse]:
    """Highest-scoring candidate, earliest on ties; None and NaN scores are skipped."""
    best: Optional[QueryResponse] = None
    best_score: Optional[float] = None
    for candidate in candidates:
        score = scorer(candidate)
        if score is None or math.isnan(score):
            continue
        if best_score is None or score > best_score:
            best, best_score = candidate, score
    return best


def assemble_qa_instance(
    qr_original: QueryResponse,
    qr_rewrites: Iterable[QueryResponse] = (),
    *,
    id: Optional[str] = None,
    gold_answers: Iterable[str] = (),
    plausible_answers: Iterable[str] = (),
    is_impossible: Optional[bool] = None,
    title: Optional[str] = None,
    scorer: Optional[Scorer] = None,
) -> QAInstance:
    """
    Build a QAInstance from already-completed QueryResponse pairs.

    Args:
        qr_original: Environment input/output for the original question.
        qr_rewrites: Environment input/output for each rewrite, in order.
        id: Datapoint id. Defaults to the original query's id.
        gold_answers: Ground truth answers.
        plausible_answers: Human-selected plausible answers.
        is_impossible: Defaults to the original query's flag.
        title: Title of the source article, if any.
        scorer: Selects qr_best. None leaves qr_best unset.

    Returns:
        The assembled QAInstance. qr_best, when set, is one of the
        QueryResponse objects passed in, not a copy.
    """
    rewrites = list(qr_rewrites)
    original_query = qr_original.query

    if id is None and original_query is not None:
        id = original_query.id
    if is_impossible is None and original_query is not None:
        is_impossible = original_query.is_impossible

    qr_best = None
    if scorer is not None:
        qr_best = select_best([qr_original, *rewrites], scorer)

    return QAInstance(
        id=id,
        qr_original=qr_original,
        qr_rewrites=rewrites,
        gold_answers=list(gold_answers),
        qr_best=qr_best,
        is_impossible=is_impossible,
        plausible_answers=list(plausible_answers),
        title=title,
    )


def max_answer_score(score_name: str) -> Scorer:
    """
    Scorer: the maximum ``scores[score_name]`` over a response's answers.

    Pairs without a response, failed responses, and responses where no
    answer carries a non-NaN ``score_name`` score None (excluded from
    selection).
    """

    def scorer(qr: QueryResponse) -> Optional[float]:
        response = qr.response
        if response is None or response.error_message is not None:
            return None
        values = [
            answer.scores[score_name]
            for answer in response.answers
            if not math.isnan(answer.scores.get(score_name, math.nan))
        ]
        return max(values) if values else None

    return scorer
