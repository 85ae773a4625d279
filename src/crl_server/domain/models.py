"""
Domain models — immutable value objects for revocations, CRL artifacts,
and the CA signing identity.

All models are frozen dataclasses. Timestamps are timezone-aware UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cryptography import x509
    from cryptography.hazmat.primitives.asymmetric.types import CertificateIssuerPrivateKeyTypes

# An artifact stays servable for this long after generation. Fixed on purpose.
FRESHNESS_WINDOW = timedelta(hours=1)


def is_fresh(generated_at: datetime, now: datetime) -> bool:
    """True while `now` is less than one freshness window past `generated_at`."""
    return now - generated_at < FRESHNESS_WINDOW


class ReasonCode(IntEnum):
    """CRLReason codes (RFC 5280 §5.3.1). 7 is unassigned."""

    UNSPECIFIED = 0
    KEY_COMPROMISE = 1
    CA_COMPROMISE = 2
    AFFILIATION_CHANGED = 3
    SUPERSEDED = 4
    CESSATION_OF_OPERATION = 5
    CERTIFICATE_HOLD = 6
    REMOVE_FROM_CRL = 8
    PRIVILEGE_WITHDRAWN = 9
    AA_COMPROMISE = 10


@dataclass(frozen=True, slots=True)
class RevocationEntry:
    """One revoked certificate, parsed from a registry line."""

    serial_number: int
    revocation_time: datetime
    reason_code: ReasonCode = ReasonCode.UNSPECIFIED


@dataclass(frozen=True, slots=True)
class SkippedLine:
    """A registry line that was reported and left out of the CRL."""

    line_number: int
    content: str
    reason: str


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """The outcome of one registry load: valid entries plus skipped lines."""

    entries: tuple[RevocationEntry, ...] = ()
    skipped: tuple[SkippedLine, ...] = ()


@dataclass(frozen=True, slots=True)
class CachedArtifact:
    """
    The current signed CRL.

    `number` is the CRL Number extension value, derived from the generation
    time in epoch seconds. `payload` is the DER encoding.
    """

    payload: bytes = field(repr=False)
    number: int
    generated_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return is_fresh(self.generated_at, now)


@dataclass(frozen=True, slots=True)
class StoredArtifactRecord:
    """A payload/metadata file pair found in the durable artifact store."""

    number: int
    payload_path: Path
    metadata_path: Path


@dataclass(frozen=True, slots=True)
class SigningIdentity:
    """
    CA certificate plus the private key that signs CRLs for it.

    Resolved from disk on every regeneration and never kept between them,
    so replacing the files rotates the CA without a restart.
    """

    certificate: x509.Certificate
    private_key: CertificateIssuerPrivateKeyTypes = field(repr=False)
