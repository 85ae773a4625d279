"""
Ports — Protocol-based interfaces for the adapters the cache manager drives.

    CrlCache ← Ports (protocols) ← Adapters (files, cryptography)

Adapters satisfy a port structurally by implementing its methods.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from crl_server.domain.models import (
    CachedArtifact,
    RegistrySnapshot,
    RevocationEntry,
    SigningIdentity,
)
from crl_server.railway import Result


@runtime_checkable
class CredentialLoader(Protocol):
    """
    Port: resolve the CA certificate and signing key from storage.

    Called once at startup (a failure is fatal) and again on every
    regeneration (a failure aborts only that regeneration).
    """

    def load(self) -> Result[SigningIdentity]: ...


@runtime_checkable
class RevocationRegistry(Protocol):
    """
    Port: read the operator-maintained list of revoked serials.

    A missing registry is a successful, empty snapshot. Malformed lines are
    reported in the snapshot, never turned into a failure.
    """

    def load(self) -> Result[RegistrySnapshot]: ...


@runtime_checkable
class CrlEncoder(Protocol):
    """Port: build and sign a DER CRL."""

    def encode(
        self,
        entries: Sequence[RevocationEntry],
        this_update: datetime,
        next_update: datetime,
        number: int,
        identity: SigningIdentity,
    ) -> Result[bytes]: ...


@runtime_checkable
class ArtifactStore(Protocol):
    """
    Port: durable storage for generated CRLs.

    `save` is best-effort from the caller's point of view; `recover` returns
    the newest artifact that is still fresh at `now`, or None.
    """

    def save(self, artifact: CachedArtifact) -> Result[Path]: ...

    def recover(self, now: datetime) -> CachedArtifact | None: ...
