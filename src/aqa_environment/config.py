"""
Configuration for the QA environment.

Split into one config per concern so each component only receives
what it needs. EnvironmentConfig bundles them all for convenience.

Usage:
    # Full config
    config = EnvironmentConfig()

    # Override specific parts
    config = EnvironmentConfig(
        llm=LLMConfig(provider="anthropic", model_name="claude-sonnet-4-5-20250929"),
        dispatcher=DispatcherConfig(max_concurrency=32, timeout_seconds=30),
    )

    # Standalone: use just one piece
    dispatcher_config = DispatcherConfig(max_concurrency=4)

    # From AQA_* environment variables (and .env)
    config = EnvironmentConfig.from_env()
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env from the project root (walks up from this file to find it).
# Provider API keys (OPENAI_API_KEY, ANTHROPIC_API_KEY) and the AQA_*
# settings below are picked up from there.
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)


# ---------------------------------------------------------------------------
# Enums: for things with a genuinely fixed set of choices
# ---------------------------------------------------------------------------

class LLMProvider(str, Enum):
    """
    Supported LLM providers.

    Each provider needs a different LangChain class (ChatOpenAI vs
    ChatAnthropic), so the set we can instantiate is closed.
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class EmptyQuestionPolicy(str, Enum):
    """
    What to do with a query whose question is empty or missing.

    REJECT_BATCH: the whole call fails with EMPTY_QUESTION.
    PER_QUERY:    only that slot gets an error_message; the rest of the
                  batch is answered normally.
    """

    REJECT_BATCH = "reject_batch"
    PER_QUERY = "per_query"


# ---------------------------------------------------------------------------
# Per-concern configs
# ---------------------------------------------------------------------------

class LLMConfig(BaseModel):
    """
    LLM configuration.

    Used by: answerers/llm.py, rewriting.py
    """

    provider: LLMProvider = Field(
        default=LLMProvider.OPENAI,
        description="Which LLM provider to use",
    )
    model_name: str = Field(
        default="gpt-4o-mini",
        description="Model identifier (e.g. 'gpt-4o-mini', 'claude-sonnet-4-5-20250929')",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature. 0 = deterministic, higher = more creative",
    )
    max_tokens: int = Field(
        default=512,
        gt=0,
        description="Maximum tokens in the LLM response",
    )


class RetrieverConfig(BaseModel):
    """
    Retrieval configuration for the vector-store answerer.

    Used by: answerers/retrieval.py
    """

    k: int = Field(
        default=4,
        gt=0,
        description="Number of answers (documents) to return per query",
    )


class DispatcherConfig(BaseModel):
    """
    Batch dispatch configuration.

    Used by: dispatcher.py, server.py

    max_concurrency bounds how many answerer calls of ONE batch are in
    flight at once. max_total_concurrency, when set, additionally bounds
    in-flight calls across all batches served by the same dispatcher.
    """

    max_concurrency: int = Field(
        default=8,
        gt=0,
        description="Maximum number of in-flight answerer calls per batch",
    )
    max_total_concurrency: Optional[int] = Field(
        default=None,
        gt=0,
        description="Maximum in-flight answerer calls across all concurrent batches. None = no shared limit",
    )
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Deadline for a whole batch. None = no deadline",
    )
    empty_question_policy: EmptyQuestionPolicy = Field(
        default=EmptyQuestionPolicy.REJECT_BATCH,
        description="Reject the whole batch on an empty question, or fail only that query",
    )


class ServerConfig(BaseModel):
    """
    HTTP transport configuration.

    Used by: api.py
    """

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8000, ge=1, le=65535, description="Port to bind")
    title: str = Field(default="AQA Environment Server", description="OpenAPI title")


# ---------------------------------------------------------------------------
# Top-level config: bundles everything
# ---------------------------------------------------------------------------

class EnvironmentConfig(BaseModel):
    """
    Complete environment configuration.

    All sub-configs have sensible defaults, so EnvironmentConfig() with
    no arguments gives a working setup out of the box.
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    retriever: RetrieverConfig = Field(default_factory=RetrieverConfig)
    dispatcher: DispatcherConfig = Field(default_factory=DispatcherConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> "EnvironmentConfig":
        """
        Build a config from AQA_* environment variables.

        Unset variables fall back to the model defaults. Values are
        validated by pydantic, so a malformed AQA_PORT raises here rather
        than at bind time.
        """
        dispatcher: dict = {}
        if os.getenv("AQA_MAX_CONCURRENCY"):
            dispatcher["max_concurrency"] = os.environ["AQA_MAX_CONCURRENCY"]
        if os.getenv("AQA_MAX_TOTAL_CONCURRENCY"):
            dispatcher["max_total_concurrency"] = os.environ["AQA_MAX_TOTAL_CONCURRENCY"]
        if os.getenv("AQA_TIMEOUT_SECONDS"):
            dispatcher["timeout_seconds"] = os.environ["AQA_TIMEOUT_SECONDS"]
        if os.getenv("AQA_EMPTY_QUESTION_POLICY"):
            dispatcher["empty_question_policy"] = os.environ["AQA_EMPTY_QUESTION_POLICY"]

        server: dict = {}
        if os.getenv("AQA_HOST"):
            server["host"] = os.environ["AQA_HOST"]
        if os.getenv("AQA_PORT"):
            server["port"] = os.environ["AQA_PORT"]

        llm: dict = {}
        if os.getenv("AQA_LLM_PROVIDER"):
            llm["provider"] = os.environ["AQA_LLM_PROVIDER"]
        if os.getenv("AQA_LLM_MODEL"):
            llm["model_name"] = os.environ["AQA_LLM_MODEL"]

        return cls(
            llm=LLMConfig(**llm),
            dispatcher=DispatcherConfig(**dispatcher),
            server=ServerConfig(**server),
        )
