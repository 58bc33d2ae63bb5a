"""
Railway-Oriented Programming (ROP) support for the bundle generator.

Stages return Result instead of raising; failures carry an ErrorCode that
names the failing stage.

    from railway import Result, ErrorCode

    def require_roots(records: list) -> Result[list]:
        if not records:
            return Result.failure(ErrorCode.EMPTY_RESULT_ERROR, "zero roots")
        return Result.success(records)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.assertions import ResultAssertions

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
