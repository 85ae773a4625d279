"""
Failure description — structured error information for the failure track.

An ErrorCode names the stage that failed; a FailureDescription carries the
code, a human-readable message, the originating exception (if any) and the
moment the failure was recorded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique


@unique
class ErrorCode(Enum):
    """
    Error codes for the failure track, one per failing concern.

    Every code maps to HTTP 500 at the CRL endpoint; the code exists for
    operators reading the logs, not for clients.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """A single registry line is malformed (reported and skipped)."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Settings are missing or invalid."""

    CREDENTIAL_ERROR = "CREDENTIAL_ERROR"
    """CA certificate or private key cannot be loaded."""

    REGISTRY_ERROR = "REGISTRY_ERROR"
    """The revocation registry exists but cannot be read."""

    SIGNING_ERROR = "SIGNING_ERROR"
    """Building or signing the CRL failed."""

    STORAGE_ERROR = "STORAGE_ERROR"
    """Writing an artifact to the durable store failed."""

    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected exception escaped a stage."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor.

    >>> desc = FailureDescription(ErrorCode.REGISTRY_ERROR, "Permission denied")
    >>> desc.code
    <ErrorCode.REGISTRY_ERROR: 'REGISTRY_ERROR'>
    """

    code: ErrorCode
    message: str
    exception: BaseException | None = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def detail(self) -> str:
        """Message plus the exception text, when there is one."""
        if self.exception is None:
            return self.message
        return f"{self.message}: {self.exception}"
