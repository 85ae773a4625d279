"""
Railway-Oriented Programming primitives used across crl_server.

    from crl_server.railway import ErrorCode, Result

    def read_serial(field: str) -> Result[int]:
        return Result.from_computation(
            lambda: int(field, 16), ErrorCode.VALIDATION_ERROR, "bad serial"
        )
"""

from crl_server.railway.assertions import ResultAssertions
from crl_server.railway.execution import (
    ExecutionContext,
    LoggingExecutionContext,
    NoOpExecutionContext,
)
from crl_server.railway.failure import ErrorCode, FailureDescription
from crl_server.railway.result import Failure, Result, Success

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
