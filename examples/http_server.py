"""
HTTP environment server example.

Serves GetObservations over HTTP with a vector-store answerer built from
a handful of in-memory passages.

Run:
    OPENAI_API_KEY=... python examples/http_server.py

Then:
    curl -s localhost:8000/v1/observations \\
        -H 'content-type: application/json' \\
        -d '{"queries": [{"id": "q1", "question": "who wrote the iliad"}]}'
"""

import logging

from langchain_core.vectorstores import InMemoryVectorStore
from langchain_openai import OpenAIEmbeddings

from aqa_environment import EnvironmentConfig, EnvironmentServer
from aqa_environment.answerers import VectorStoreAnswerer
from aqa_environment.api import serve

PASSAGES = [
    "The Iliad is an ancient Greek epic poem traditionally attributed to Homer.",
    "The Odyssey follows Odysseus on his ten-year journey home after the Trojan War.",
    "Paris is the capital and most populous city of France.",
]


def main():
    logging.basicConfig(level=logging.INFO)
    config = EnvironmentConfig.from_env()

    store = InMemoryVectorStore.from_texts(
        PASSAGES,
        OpenAIEmbeddings(model="text-embedding-3-small"),
        metadatas=[{"source": f"passage-{i}"} for i in range(len(PASSAGES))],
    )
    server = EnvironmentServer(
        VectorStoreAnswerer(store, config.retriever),
        config.dispatcher,
    )
    serve(server, config.server)


if __name__ == "__main__":
    main()
