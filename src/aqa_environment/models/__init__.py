"""
Pydantic models for the environment's wire contract.

Import from here rather than reaching into submodules:
    from aqa_environment.models import Query, Response, EnvironmentRequest
"""

from .query import Context, Query
from .response import EXTENSION_RANGE_START, Observation, Response
from .batch import EnvironmentRequest, EnvironmentResponse, ErrorCode
from .instance import QAInstance, QueryResponse, pair_batch

__all__ = [
    # Query
    "Context",
    "Query",
    # Response
    "EXTENSION_RANGE_START",
    "Observation",
    "Response",
    # Batch
    "EnvironmentRequest",
    "EnvironmentResponse",
    "ErrorCode",
    # Instance
    "QAInstance",
    "QueryResponse",
    "pair_batch",
]
