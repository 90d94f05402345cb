"""litescript: an indentation-delimited JavaScript dialect, transpiled to JavaScript."""

from .transpiler import DEFAULT_STAGES, Pipeline, transpile
from .types import (
    ExecutionError,
    ExpansionDivergence,
    MalformedExpression,
    TranspileError,
    UnbalancedDelimiter,
)

__all__ = [
    "DEFAULT_STAGES",
    "Pipeline",
    "transpile",
    "TranspileError",
    "UnbalancedDelimiter",
    "MalformedExpression",
    "ExpansionDivergence",
    "ExecutionError",
]
