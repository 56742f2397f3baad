"""
Ready-made answerer backends.

    FunctionAnswerer    — wrap any callable Query -> Response
    LLMAnswerer         — ask a chat model (OpenAI / Anthropic)
    VectorStoreAnswerer — similarity search over a LangChain vector store
"""

from .function import FunctionAnswerer
from .llm import LLMAnswerer
from .retrieval import VectorStoreAnswerer

__all__ = [
    "FunctionAnswerer",
    "LLMAnswerer",
    "VectorStoreAnswerer",
]
