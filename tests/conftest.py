"""
Shared test fixtures and helpers for the crl-server test suite.

Provides throwaway CA key pairs and self-signed certificates, helpers to
write them as PEM files in the three supported key encodings, and a
controllable clock so freshness can be tested without sleeping.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.types import CertificateIssuerPrivateKeyTypes
from cryptography.x509.oid import NameOID

from crl_server.domain.models import SigningIdentity

# 2023-11-14T22:13:20Z, a round epoch value that makes CRL numbers easy to read.
EPOCH_START = datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class CaMaterial:
    """A CA certificate and its private key."""

    certificate: x509.Certificate
    private_key: CertificateIssuerPrivateKeyTypes

    @property
    def identity(self) -> SigningIdentity:
        return SigningIdentity(certificate=self.certificate, private_key=self.private_key)

    def cert_pem(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.PEM)

    def key_pem(
        self,
        key_format: serialization.PrivateFormat = serialization.PrivateFormat.PKCS8,
    ) -> bytes:
        return self.private_key.private_bytes(
            serialization.Encoding.PEM,
            key_format,
            serialization.NoEncryption(),
        )

    def write(
        self,
        directory: Path,
        key_format: serialization.PrivateFormat = serialization.PrivateFormat.PKCS8,
    ) -> tuple[Path, Path]:
        """Write tls.crt / tls.key into `directory`, replacing existing files."""
        directory.mkdir(parents=True, exist_ok=True)
        cert_file = directory / "tls.crt"
        key_file = directory / "tls.key"
        cert_file.write_bytes(self.cert_pem())
        key_file.write_bytes(self.key_pem(key_format))
        return cert_file, key_file


def make_ca(
    private_key: CertificateIssuerPrivateKeyTypes,
    common_name: str = "Test CA",
    with_ski: bool = True,
) -> CaMaterial:
    """Create a self-signed CA certificate for `private_key`."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(UTC)
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=3650))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
    )
    if with_ski:
        builder = builder.add_extension(
            x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
            critical=False,
        )
    algorithm = (
        None
        if isinstance(private_key, (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey))
        else hashes.SHA256()
    )
    return CaMaterial(certificate=builder.sign(private_key, algorithm), private_key=private_key)


def make_ec_ca(common_name: str = "Test EC CA", curve: ec.EllipticCurve | None = None) -> CaMaterial:
    return make_ca(ec.generate_private_key(curve or ec.SECP256R1()), common_name)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = EPOCH_START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


# ─────────────────────── Fixtures ───────────────────────


@pytest.fixture(scope="session")
def ec_ca() -> CaMaterial:
    """A P-256 CA, shared across the session."""
    return make_ec_ca()


@pytest.fixture(scope="session")
def rsa_ca() -> CaMaterial:
    """A 2048-bit RSA CA, shared across the session (key generation is slow)."""
    return make_ca(rsa.generate_private_key(public_exponent=65537, key_size=2048), "Test RSA CA")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def tls_dir(tmp_path: Path) -> Path:
    return tmp_path / "tls"


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "temp"
    directory.mkdir()
    return directory


@pytest.fixture()
def registry_file(tmp_path: Path) -> Path:
    """Path for the revocation registry; the file itself is not created."""
    return tmp_path / "conf" / "list.txt"
