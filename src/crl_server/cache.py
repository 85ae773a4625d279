"""
CRL cache manager — freshness policy and single-flight regeneration.

The manager owns the one current CachedArtifact. Requests go through
`get()`:

  1. shared lock:    fresh artifact?  → return it
  2. exclusive lock: fresh now?       → another request just rebuilt it, return it
                     still stale      → run the regeneration pipeline and install
  3. no lock:        persist the installed artifact (best effort)

Only the holder of the exclusive lock regenerates; everyone else blocks on
the lock and then sees the new artifact. A failed regeneration leaves the
cache untouched and the failure is returned to the caller, even when an
expired artifact is still resident.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from crl_server.domain.models import CachedArtifact
from crl_server.domain.ports import (
    ArtifactStore,
    CredentialLoader,
    CrlEncoder,
    RevocationRegistry,
)
from crl_server.locking import ReadWriteLock
from crl_server.railway import FailureDescription, LoggingExecutionContext, Result
from crl_server.regeneration import run_regeneration

log = structlog.get_logger()


def utc_now() -> datetime:
    return datetime.now(UTC)


class CrlCache:
    """
    In-memory CRL with lazy, request-triggered regeneration.

    All collaborators are ports; `clock` is injectable so tests can move
    time without sleeping.
    """

    def __init__(
        self,
        credentials: CredentialLoader,
        registry: RevocationRegistry,
        encoder: CrlEncoder,
        store: ArtifactStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._credentials = credentials
        self._registry = registry
        self._encoder = encoder
        self._store = store
        self._clock = clock
        self._lock = ReadWriteLock()
        self._artifact: CachedArtifact | None = None
        self._context = LoggingExecutionContext(operation="crl.regeneration")

    @property
    def current(self) -> CachedArtifact | None:
        """The installed artifact, fresh or not."""
        with self._lock.read():
            return self._artifact

    def restore(self) -> CachedArtifact | None:
        """
        Seed the cache from the durable store at startup.

        Installs the newest artifact that is still fresh, if any. Does not
        touch credentials or the encoder.
        """
        artifact = self._store.recover(self._clock())
        if artifact is None:
            log.info("crl.restore_skipped", reason="no fresh artifact on disk")
            return None
        with self._lock.write():
            if self._artifact is None or artifact.number > self._artifact.number:
                self._artifact = artifact
        log.info("crl.restored", number=artifact.number)
        return artifact

    def get(self) -> Result[CachedArtifact]:
        """Return a fresh CRL, regenerating it first if needed."""
        with self._lock.read():
            artifact = self._fresh_artifact()
        if artifact is not None:
            return Result.success(artifact)

        with self._lock.write():
            artifact = self._fresh_artifact()
            if artifact is not None:
                return Result.success(artifact)
            result = self._regenerate()

        return result.peek(self._persist)

    # ─────────────────────── Internals (call with the lock held) ───────────────────────

    def _fresh_artifact(self) -> CachedArtifact | None:
        artifact = self._artifact
        if artifact is not None and artifact.is_fresh(self._clock()):
            return artifact
        return None

    def _regenerate(self) -> Result[CachedArtifact]:
        previous = self._artifact
        result = self._context.execute(
            lambda: run_regeneration(
                self._credentials,
                self._registry,
                self._encoder,
                self._clock,
                previous,
            )
        )
        return result.peek(self._install).peek_failure(
            lambda err: self._report_failure(err, previous)
        )

    def _install(self, artifact: CachedArtifact) -> None:
        self._artifact = artifact
        log.info(
            "crl.regenerated",
            number=artifact.number,
            generated_at=artifact.generated_at.isoformat(),
            size_bytes=len(artifact.payload),
        )

    def _report_failure(
        self,
        error: FailureDescription,
        previous: CachedArtifact | None,
    ) -> None:
        log.error(
            "crl.regeneration_failed",
            error_code=error.code.value,
            error=error.detail(),
            resident_number=previous.number if previous is not None else None,
        )

    # ─────────────────────── Persistence (no lock) ───────────────────────

    def _persist(self, artifact: CachedArtifact) -> None:
        self._store.save(artifact).peek_failure(
            lambda err: log.warning(
                "store.save_failed",
                number=artifact.number,
                error=err.detail(),
            )
        )
