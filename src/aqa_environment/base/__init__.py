"""
Contracts for the pluggable pieces of the environment.

Import from here:
    from aqa_environment.base import Answerer, BaseRewriter
"""

from .answerer import Answerer
from .rewriter import BaseRewriter

__all__ = [
    "Answerer",
    "BaseRewriter",
]
