"""
Revocation registry adapter — reads the operator's flat list of revoked serials.

Adapter layer — implements the RevocationRegistry port over a UTF-8 text file:

    # comment
    HEXSERIAL:EPOCHSECONDS:REASONCODE

Each line is parsed into its own Result. A failed line is logged, recorded
as a SkippedLine and dropped; it never fails the load. Only an unreadable
file (anything other than "does not exist") fails the load.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from pathlib import Path

import structlog

from crl_server.domain.models import (
    ReasonCode,
    RegistrySnapshot,
    RevocationEntry,
    SkippedLine,
)
from crl_server.railway import ErrorCode, FailureDescription, Result

log = structlog.get_logger()

_HEX_SERIAL = re.compile(r"[0-9A-Fa-f]+")
_EPOCH = re.compile(r"-?[0-9]+")
_REASON = re.compile(r"[0-9]+")
_COMMENT_PREFIX = "#"
_FIELD_SEPARATOR = ":"

# RFC 5280: serials are at most 20 octets, and UTCTime starts in 1950.
_MAX_SERIAL_BITS = 159
_EARLIEST_REVOCATION = datetime(1950, 1, 1, tzinfo=UTC)


def _invalid(message: str) -> Result[RevocationEntry]:
    return Result.failure(ErrorCode.VALIDATION_ERROR, message)


def _parse_revocation_time(field: str) -> Result[datetime]:
    if not _EPOCH.fullmatch(field):
        return Result.failure(ErrorCode.VALIDATION_ERROR, f"invalid epoch: {field!r}")
    return Result.from_computation(
        lambda: datetime.fromtimestamp(int(field), UTC),
        ErrorCode.VALIDATION_ERROR,
        f"epoch out of range: {field!r}",
    ).flat_map(lambda revoked_at: _check_encodable(revoked_at, field))


def _check_encodable(revoked_at: datetime, field: str) -> Result[datetime]:
    if revoked_at < _EARLIEST_REVOCATION:
        return Result.failure(ErrorCode.VALIDATION_ERROR, f"epoch out of range: {field!r} is before 1950")
    return Result.success(revoked_at)


def _parse_reason(field: str) -> Result[ReasonCode]:
    if not _REASON.fullmatch(field):
        return Result.failure(ErrorCode.VALIDATION_ERROR, f"invalid reason code: {field!r}")
    return Result.from_computation(
        lambda: ReasonCode(int(field)),
        ErrorCode.VALIDATION_ERROR,
        f"unknown reason code: {field!r}",
    )


def parse_registry_line(line: str) -> Result[RevocationEntry]:
    """
    Parse one non-blank, non-comment registry line.

    Returns Result.failure(VALIDATION_ERROR, ...) describing the first
    problem found: wrong field count, bad hex serial, bad epoch, or a
    reason code outside the CRLReason enumeration.
    """
    fields = line.split(_FIELD_SEPARATOR)
    if len(fields) != 3:
        return _invalid(f"expected 3 colon-separated fields, got {len(fields)}")

    serial_field, epoch_field, reason_field = fields
    if not _HEX_SERIAL.fullmatch(serial_field):
        return _invalid(f"invalid serial number: {serial_field!r}")
    serial = int(serial_field, 16)
    if serial == 0:
        return _invalid("serial number must be positive")
    if serial.bit_length() > _MAX_SERIAL_BITS:
        return _invalid(f"serial number longer than 20 octets: {serial_field!r}")

    return _parse_revocation_time(epoch_field).flat_map(
        lambda revoked_at: _parse_reason(reason_field).map(
            lambda reason: RevocationEntry(
                serial_number=serial,
                revocation_time=revoked_at,
                reason_code=reason,
            )
        )
    )


def is_ignorable(line: str) -> bool:
    """Blank lines and `#` comments carry no entry."""
    return not line or line.startswith(_COMMENT_PREFIX)


class FileRevocationRegistry:
    """
    Load revocation entries from a text file.

    Implements the RevocationRegistry port. The file is re-read on every
    call so edits take effect on the next regeneration.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> Result[RegistrySnapshot]:
        return Result.from_computation(
            self._read_lines,
            ErrorCode.REGISTRY_ERROR,
            f"Failed to read revocation registry {self._path}",
        ).map(self._parse_lines)

    def _read_lines(self) -> list[str]:
        try:
            text = self._path.read_text(encoding="utf-8-sig", errors="replace")
        except FileNotFoundError:
            log.info("registry.missing", path=str(self._path))
            return []
        return text.splitlines()

    def _parse_lines(self, lines: list[str]) -> RegistrySnapshot:
        entries: list[RevocationEntry] = []
        skipped: list[SkippedLine] = []

        for line_number, raw in enumerate(lines, start=1):
            line = raw.strip()
            if is_ignorable(line):
                continue

            def _skip(err: FailureDescription, number: int = line_number, text: str = line) -> None:
                log.warning(
                    "registry.line_skipped",
                    path=str(self._path),
                    line_number=number,
                    reason=err.message,
                )
                skipped.append(SkippedLine(line_number=number, content=text, reason=err.message))

            parse_registry_line(line).peek(entries.append).peek_failure(_skip)

        log.info(
            "registry.loaded",
            path=str(self._path),
            entries=len(entries),
            skipped=len(skipped),
        )
        return RegistrySnapshot(entries=tuple(entries), skipped=tuple(skipped))
