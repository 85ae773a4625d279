"""
Test assertions for Result values.

    entries = ResultAssertions.assert_success(registry.load()).entries
    ResultAssertions.assert_failure(loader.load(), ErrorCode.CREDENTIAL_ERROR)
"""

from __future__ import annotations

from typing import TypeVar

from crl_server.railway.failure import ErrorCode, FailureDescription
from crl_server.railway.result import Result

T = TypeVar("T")


class ResultAssertions:
    """Assertions that fail with the underlying error code and message."""

    @staticmethod
    def assert_success(result: Result[T], message: str = "") -> T:
        """Assert the Result is a Success and return its value."""
        context = f" — {message}" if message else ""
        assert result.is_success(), (
            f"Expected Success but got Failure("
            f"{result.error().code.value}: {result.error().detail()!r}){context}"
        )
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        message: str = "",
    ) -> FailureDescription:
        """Assert the Result is a Failure, optionally with a given code."""
        context = f" — {message}" if message else ""
        assert result.is_failure(), (
            f"Expected Failure but got Success({result.value()!r}){context}"
        )
        error = result.error()
        if expected_code is not None:
            assert error.code == expected_code, (
                f"Expected error code {expected_code.value} "
                f"but got {error.code.value}: {error.message!r}{context}"
            )
        return error

    @staticmethod
    def assert_failure_message_contains(result: Result[T], substring: str) -> None:
        """Assert the failure message (or its exception text) contains substring."""
        error = ResultAssertions.assert_failure(result)
        assert substring.lower() in error.detail().lower(), (
            f"Expected failure to mention {substring!r} but it was: {error.detail()!r}"
        )
