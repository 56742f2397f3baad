"""
Search-backed answerer: answers a query with the closest passages in a
LangChain vector store.

Each hit becomes one answer Observation, so a Response holds up to k
ranked candidate answers:

    answers[i].text               — the passage text
    answers[i].scores["relevance"] — 1 / (1 + distance), higher = better
    answers[i].scores["rank"]      — 0-based position
    observations["source_<i>"]     — where hit i came from, when known

Distances are normalised the same way for every backend: FAISS returns
L2 distance and Chroma cosine distance, both "lower = closer".
"""

from langchain_core.vectorstores import VectorStore

from aqa_environment.config import RetrieverConfig
from aqa_environment.errors import BackendUnavailableError
from aqa_environment.models.query import Query
from aqa_environment.models.response import Observation, Response


class VectorStoreAnswerer:
    """
    Similarity search as an environment backend.

    LangChain vector stores are synchronous, so answer() is a plain
    method; the dispatcher runs it in a worker thread.
    """

    def __init__(self, vector_store: VectorStore, config: RetrieverConfig = None):
        self._store = vector_store
        self._config = config or RetrieverConfig()

    def answer(self, query: Query) -> Response:
        try:
            hits = self._store.similarity_search_with_score(
                query.question.strip(), k=self._config.k
            )
        except (ConnectionError, TimeoutError) as exc:
            raise BackendUnavailableError(f"Vector store unreachable: {exc}") from exc

        answers = []
        observations = {}
        for rank, (doc, distance) in enumerate(hits):
            relevance = 1.0 / (1.0 + distance)
            answers.append(Observation(
                text=doc.page_content,
                scores={"relevance": relevance, "rank": float(rank)},
            ))
            source = doc.metadata.get("source")
            if source:
                observations[f"source_{rank}"] = Observation(text=str(source))

        return Response.for_query(
            query,
            processed_question=query.question.strip(),
            answers=answers,
            observations=observations,
        )
