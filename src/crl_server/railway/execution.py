"""
Execution contexts — separate WHAT runs (a Result-returning computation)
from HOW it runs (timing, logging, exception capture).

    ctx = LoggingExecutionContext(operation="crl.regeneration")
    result = ctx.execute(lambda: run_regeneration(...))
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol, TypeVar, runtime_checkable

import structlog

from crl_server.railway.failure import ErrorCode, FailureDescription
from crl_server.railway.result import Failure, Result

T = TypeVar("T")
log = structlog.get_logger()


@runtime_checkable
class ExecutionContext(Protocol):
    """Anything that can run a Result-returning computation."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]: ...


class NoOpExecutionContext:
    """Runs the computation as-is. Used in tests and as the innermost context."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()


class LoggingExecutionContext:
    """
    Logs start, duration and outcome of a computation.

    An exception escaping the computation is logged and converted into a
    TECHNICAL_ERROR failure, so callers only ever see a Result.
    """

    def __init__(
        self,
        inner: ExecutionContext | None = None,
        operation: str = "unknown",
    ) -> None:
        self._inner = inner or NoOpExecutionContext()
        self._operation = operation

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        log.debug("execution.started", operation=self._operation)
        start = time.monotonic()

        try:
            result = self._inner.execute(computation)
        except Exception as e:
            elapsed = time.monotonic() - start
            log.exception(
                "execution.crashed",
                operation=self._operation,
                elapsed_seconds=round(elapsed, 3),
            )
            return Failure(
                FailureDescription(
                    ErrorCode.TECHNICAL_ERROR,
                    f"{self._operation} failed unexpectedly: {e}",
                    e,
                )
            )

        elapsed = time.monotonic() - start
        log.info(
            "execution.completed",
            operation=self._operation,
            elapsed_seconds=round(elapsed, 3),
            state="SUCCESS" if result.is_success() else "FAILURE",
        )
        return result
