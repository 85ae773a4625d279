"""
Durable artifact store — one payload/metadata file pair per generated CRL.

Adapter layer — implements the ArtifactStore port on a plain directory:

    <directory>/crl-<number>.der    DER-encoded CRL
    <directory>/crl-<number>.meta   generation time, epoch seconds + newline

Nothing is ever deleted; old pairs accumulate.

Recovery walks the pairs from the highest number down and returns the first
one that is complete, parseable and still fresh. Broken pairs are skipped
without being reported as errors.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from pathlib import Path

import structlog
from cryptography import x509

from crl_server.domain.models import CachedArtifact, StoredArtifactRecord, is_fresh
from crl_server.railway import ErrorCode, Result

log = structlog.get_logger()

_PAYLOAD_NAME = re.compile(r"crl-([0-9]+)\.der")


def payload_filename(number: int) -> str:
    return f"crl-{number}.der"


def metadata_filename(number: int) -> str:
    return f"crl-{number}.meta"


class FileArtifactStore:
    """
    Persist CRL artifacts to a directory and recover the newest fresh one.

    Implements the ArtifactStore port.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory

    def ensure_directory(self) -> None:
        """Create the store directory (and parents) if missing."""
        self._directory.mkdir(parents=True, exist_ok=True)

    # ─────────────────────── Write ───────────────────────

    def save(self, artifact: CachedArtifact) -> Result[Path]:
        """
        Write the payload, then the metadata.

        Returns the payload path. A failure on either write is reported as
        STORAGE_ERROR; a payload left without metadata is ignored by recovery.
        """
        return Result.from_computation(
            lambda: self._write_pair(artifact),
            ErrorCode.STORAGE_ERROR,
            f"Failed to persist CRL {artifact.number}",
        )

    def _write_pair(self, artifact: CachedArtifact) -> Path:
        payload_path = self._directory / payload_filename(artifact.number)
        metadata_path = self._directory / metadata_filename(artifact.number)
        payload_path.write_bytes(artifact.payload)
        metadata_path.write_text(f"{int(artifact.generated_at.timestamp())}\n", encoding="utf-8")
        log.info("store.saved", number=artifact.number, path=str(payload_path))
        return payload_path

    # ─────────────────────── Recover ───────────────────────

    def records(self) -> list[StoredArtifactRecord]:
        """All payload files whose name carries a number, newest first."""
        if not self._directory.is_dir():
            return []
        found: list[StoredArtifactRecord] = []
        for path in self._directory.iterdir():
            match = _PAYLOAD_NAME.fullmatch(path.name)
            if match is None or not path.is_file():
                continue
            number = int(match.group(1))
            found.append(
                StoredArtifactRecord(
                    number=number,
                    payload_path=path,
                    metadata_path=self._directory / metadata_filename(number),
                )
            )
        return sorted(found, key=lambda record: record.number, reverse=True)

    def recover(self, now: datetime) -> CachedArtifact | None:
        """Return the highest-numbered artifact that is intact and fresh at `now`."""
        try:
            candidates = self.records()
        except OSError as e:
            log.warning("store.scan_failed", directory=str(self._directory), error=str(e))
            return None

        for record in candidates:
            artifact = self._load(record, now)
            if artifact is not None:
                log.info(
                    "store.recovered",
                    number=artifact.number,
                    generated_at=artifact.generated_at.isoformat(),
                )
                return artifact

        log.info("store.nothing_to_recover", directory=str(self._directory), candidates=len(candidates))
        return None

    def _load(self, record: StoredArtifactRecord, now: datetime) -> CachedArtifact | None:
        generated_at = _read_generated_at(record.metadata_path)
        if generated_at is None or not is_fresh(generated_at, now):
            return None
        try:
            payload = record.payload_path.read_bytes()
            x509.load_der_x509_crl(payload)
        except (OSError, ValueError):
            return None
        return CachedArtifact(payload=payload, number=record.number, generated_at=generated_at)


def _read_generated_at(path: Path) -> datetime | None:
    try:
        text = path.read_text(encoding="utf-8").strip()
        return datetime.fromtimestamp(int(text), UTC)
    except (OSError, ValueError, OverflowError):
        return None
