"""
Railway-Oriented Programming helpers.

Explicit, composable error handling: adapters return Result values instead
of raising, and pipelines chain them so the first failure short-circuits.

    from railway import ErrorCode, Result

    def parse_port(raw: str) -> Result[int]:
        if not raw.isdigit():
            return Result.failure(ErrorCode.VALIDATION_ERROR, f"Not a port: {raw!r}")
        return Result.success(int(raw))
"""

from railway.assertions import ResultAssertions
from railway.execution import (
    ExecutionContext,
    LoggingExecutionContext,
    NoOpExecutionContext,
)
from railway.failure import ErrorCode, FailureDescription
from railway.result import Failure, Result, Success

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "ResultAssertions",
]

__version__ = "1.1.0"
