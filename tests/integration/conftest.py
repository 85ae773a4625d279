"""
Integration test fixtures — a throwaway deployment directory.

Lays out tls/, conf/ and temp/ under tmp_path the way the service expects
them in production and wires the real adapters into a CrlCache driven by a
FakeClock.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest

from crl_server.adapters.artifact_store import FileArtifactStore
from crl_server.adapters.credentials import PemCredentialLoader
from crl_server.adapters.crl_encoder import X509CrlEncoder
from crl_server.adapters.registry import FileRevocationRegistry
from crl_server.cache import CrlCache
from tests.conftest import CaMaterial, FakeClock


@dataclass(frozen=True, slots=True)
class Deployment:
    """Paths of one on-disk deployment."""

    root: Path

    @property
    def tls_dir(self) -> Path:
        return self.root / "tls"

    @property
    def registry_file(self) -> Path:
        return self.root / "conf" / "list.txt"

    @property
    def cache_dir(self) -> Path:
        return self.root / "temp"

    def write_registry(self, *lines: str) -> None:
        self.registry_file.parent.mkdir(parents=True, exist_ok=True)
        self.registry_file.write_text("\n".join(lines) + "\n", encoding="utf-8")

    def install_ca(self, ca: CaMaterial) -> None:
        ca.write(self.tls_dir)

    def adapters(self) -> tuple[PemCredentialLoader, FileRevocationRegistry, X509CrlEncoder, FileArtifactStore]:
        store = FileArtifactStore(self.cache_dir)
        store.ensure_directory()
        return (
            PemCredentialLoader(self.tls_dir / "tls.crt", self.tls_dir / "tls.key"),
            FileRevocationRegistry(self.registry_file),
            X509CrlEncoder(),
            store,
        )


@pytest.fixture()
def deployment(tmp_path: Path, ec_ca: CaMaterial) -> Deployment:
    """A deployment with the session EC CA installed and no registry file."""
    deployment = Deployment(root=tmp_path)
    deployment.install_ca(ec_ca)
    return deployment


@pytest.fixture()
def make_cache(deployment: Deployment, clock: FakeClock) -> Callable[[], CrlCache]:
    """Build a fresh CrlCache over the deployment, as a new process would."""

    def _make() -> CrlCache:
        credentials, registry, encoder, store = deployment.adapters()
        return CrlCache(credentials, registry, encoder, store, clock=clock)

    return _make
