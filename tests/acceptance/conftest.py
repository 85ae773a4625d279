"""
Acceptance test fixtures — a configured deployment reached only through
environment variables, the way the container is run.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.conftest import CaMaterial


@pytest.fixture()
def configured_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every configurable path into tmp_path and return that root."""
    monkeypatch.setenv("TLS__CERT_FILE", str(tmp_path / "tls" / "tls.crt"))
    monkeypatch.setenv("TLS__KEY_FILE", str(tmp_path / "tls" / "tls.key"))
    monkeypatch.setenv("REGISTRY__PATH", str(tmp_path / "conf" / "list.txt"))
    monkeypatch.setenv("CACHE__DIRECTORY", str(tmp_path / "temp"))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return tmp_path


@pytest.fixture()
def deployed_ca(configured_env: Path, ec_ca: CaMaterial) -> CaMaterial:
    ec_ca.write(configured_env / "tls")
    registry = configured_env / "conf" / "list.txt"
    registry.parent.mkdir(parents=True)
    registry.write_text(
        "# revoked for testing\n1A2B:1700000000:1\nBADHEX:100:1\n0F:1700000500:0\n",
        encoding="utf-8",
    )
    return ec_ca
