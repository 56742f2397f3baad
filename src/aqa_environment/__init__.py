"""
AQA Environment — a batched question-answering environment server.

Quick start:
    from aqa_environment import EnvironmentServer, EnvironmentRequest, Query
    from aqa_environment.answerers import LLMAnswerer

    server = EnvironmentServer(LLMAnswerer())
    response = server.get_observations_sync(
        EnvironmentRequest(queries=[Query(question="Who wrote the Iliad?", id="q1")])
    )
    print(response.responses[0].answers[0].text)

Pieces:
    - EnvironmentServer: GetObservations entry point, error-code mapping
    - Dispatcher:        concurrent, order-preserving batch fan-out
    - answerers:         pluggable backends (LLM, vector store, callables)
    - assembler:         QAInstance construction for evaluation
    - rewriting:         question rewrites + QAInstance collection
"""

__version__ = "0.1.0"

from aqa_environment.config import (
    DispatcherConfig,
    EmptyQuestionPolicy,
    EnvironmentConfig,
    LLMConfig,
    RetrieverConfig,
    ServerConfig,
)
from aqa_environment.models import (
    Context,
    EnvironmentRequest,
    EnvironmentResponse,
    ErrorCode,
    Observation,
    QAInstance,
    Query,
    QueryResponse,
    Response,
)
from aqa_environment.errors import (
    AnswerError,
    BackendUnavailableError,
    BatchTimeoutError,
    EmptyQuestionError,
    EnvironmentServerError,
    NoQueriesError,
    ScrapeFailedError,
)
from aqa_environment.dispatcher import Dispatcher
from aqa_environment.server import EnvironmentServer
from aqa_environment.assembler import assemble_qa_instance, max_answer_score

__all__ = [
    # Server (public API)
    "EnvironmentServer",
    "Dispatcher",
    "assemble_qa_instance",
    "max_answer_score",
    # Models
    "Context",
    "Query",
    "Observation",
    "Response",
    "EnvironmentRequest",
    "EnvironmentResponse",
    "ErrorCode",
    "QueryResponse",
    "QAInstance",
    # Errors
    "EnvironmentServerError",
    "NoQueriesError",
    "EmptyQuestionError",
    "ScrapeFailedError",
    "BatchTimeoutError",
    "AnswerError",
    "BackendUnavailableError",
    # Config
    "DispatcherConfig",
    "EmptyQuestionPolicy",
    "EnvironmentConfig",
    "LLMConfig",
    "RetrieverConfig",
    "ServerConfig",
]
