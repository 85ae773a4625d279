"""
Regeneration — the ROP pipeline that produces one new CRL artifact.

Pure orchestration: all I/O is reached through ports.

  credentials.load()
    → registry.load()
      → stamp generation time + CRL number
        → encoder.encode(...)
          → CachedArtifact

Each stage returns Result[T]; the first failure short-circuits the rest
and nothing downstream runs.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from crl_server.domain.models import (
    FRESHNESS_WINDOW,
    CachedArtifact,
    RegistrySnapshot,
    SigningIdentity,
)
from crl_server.domain.ports import CredentialLoader, CrlEncoder, RevocationRegistry
from crl_server.railway import Result


@dataclass(frozen=True, slots=True)
class SigningInputs:
    """Everything loaded from storage for one regeneration."""

    identity: SigningIdentity
    snapshot: RegistrySnapshot


def next_artifact_number(generated_at: datetime, previous: CachedArtifact | None) -> int:
    """
    CRL number for an artifact generated at `generated_at`.

    Epoch seconds, bumped past the previous artifact's number when the clock
    has not moved forward enough to keep numbers strictly increasing.
    """
    number = int(generated_at.timestamp())
    if previous is not None and number <= previous.number:
        return previous.number + 1
    return number


def _load_inputs(
    identity: SigningIdentity,
    registry: RevocationRegistry,
) -> Result[SigningInputs]:
    return registry.load().map(
        lambda snapshot: SigningInputs(identity=identity, snapshot=snapshot)
    )


def _encode(
    inputs: SigningInputs,
    encoder: CrlEncoder,
    now: datetime,
    previous: CachedArtifact | None,
) -> Result[CachedArtifact]:
    generated_at = now.replace(microsecond=0)
    number = next_artifact_number(generated_at, previous)
    return encoder.encode(
        inputs.snapshot.entries,
        generated_at,
        generated_at + FRESHNESS_WINDOW,
        number,
        inputs.identity,
    ).map(
        lambda payload: CachedArtifact(
            payload=payload,
            number=number,
            generated_at=generated_at,
        )
    )


def run_regeneration(
    credentials: CredentialLoader,
    registry: RevocationRegistry,
    encoder: CrlEncoder,
    clock: Callable[[], datetime],
    previous: CachedArtifact | None = None,
) -> Result[CachedArtifact]:
    """
    Build a new artifact from freshly loaded credentials and registry.

    The generation time is read from `clock` only after both inputs have
    loaded. Returns the new CachedArtifact, or the failure of the first
    stage that failed.
    """
    return (
        credentials.load()
        .flat_map(lambda identity: _load_inputs(identity, registry))
        .flat_map(lambda inputs: _encode(inputs, encoder, clock(), previous))
    )
