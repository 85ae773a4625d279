"""
CA credential adapter — PEM certificate + PEM private key → SigningIdentity.

Adapter layer — implements the CredentialLoader port using:
  - asn1crypto: PEM unarmoring and structural checks of the key DER
  - cryptography (PyCA): certificate parsing and the private key object

Key decoding tries, in order:
  1. PKCS#8 PrivateKeyInfo      (BEGIN PRIVATE KEY)
  2. PKCS#1 RSAPrivateKey       (BEGIN RSA PRIVATE KEY)
  3. SEC1 ECPrivateKey          (BEGIN EC PRIVATE KEY)

The first decoder whose structure parses AND whose key can sign a CRL wins.
The PEM label is ignored; only the DER content decides.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import structlog
from asn1crypto import keys, pem
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.types import (
    CertificateIssuerPrivateKeyTypes,
    PrivateKeyTypes,
)

from crl_server.domain.models import SigningIdentity
from crl_server.railway import ErrorCode, Result

log = structlog.get_logger()

_SIGNING_KEY_TYPES = (
    rsa.RSAPrivateKey,
    ec.EllipticCurvePrivateKey,
    dsa.DSAPrivateKey,
    ed25519.Ed25519PrivateKey,
    ed448.Ed448PrivateKey,
)


_PRIVATE_KEY_LABEL = "PRIVATE KEY"


class CredentialError(Exception):
    """The CA certificate or key could not be turned into a SigningIdentity."""


# ─────────────────────── Key Decoders ───────────────────────
# Each decoder validates the DER against one ASN.1 structure, then hands the
# same bytes to cryptography to build the key object.


def _decode_pkcs8(der: bytes) -> PrivateKeyTypes:
    info = keys.PrivateKeyInfo.load(der, strict=True)
    info["private_key_algorithm"]["algorithm"].native  # noqa: B018 - forces parsing
    return serialization.load_der_private_key(der, password=None)


def _decode_pkcs1_rsa(der: bytes) -> PrivateKeyTypes:
    key = keys.RSAPrivateKey.load(der, strict=True)
    key["modulus"].native  # noqa: B018 - forces parsing
    return serialization.load_der_private_key(der, password=None)


def _decode_sec1_ec(der: bytes) -> PrivateKeyTypes:
    key = keys.ECPrivateKey.load(der, strict=True)
    key["private_key"].native  # noqa: B018 - forces parsing
    return serialization.load_der_private_key(der, password=None)


KEY_DECODERS: tuple[tuple[str, Callable[[bytes], PrivateKeyTypes]], ...] = (
    ("PKCS#8", _decode_pkcs8),
    ("PKCS#1 RSA", _decode_pkcs1_rsa),
    ("SEC1 EC", _decode_sec1_ec),
)


def _private_key_block(key_pem: bytes) -> bytes:
    try:
        blocks = list(pem.unarmor(key_pem, multiple=True))
    except (ValueError, TypeError) as e:
        raise CredentialError(f"private key is not PEM encoded: {e}") from e

    for block_type, _, der in blocks:
        if block_type.endswith(_PRIVATE_KEY_LABEL):
            return der
    found = ", ".join(block_type for block_type, _, _ in blocks) or "none"
    raise CredentialError(f"no {_PRIVATE_KEY_LABEL} block in PEM (found: {found})")


def decode_private_key(key_pem: bytes) -> CertificateIssuerPrivateKeyTypes:
    """
    Decode a PEM private key, trying each supported encoding in order.

    Only the first `... PRIVATE KEY` block is used; other blocks such as the
    `EC PARAMETERS` that `openssl ecparam -genkey` writes first are skipped.

    Raises CredentialError listing every attempted format and why it was
    rejected when none of them yields a signing-capable key.
    """
    der = _private_key_block(key_pem)

    attempts: list[str] = []
    for name, decoder in KEY_DECODERS:
        try:
            key = decoder(der)
        except Exception as e:  # noqa: BLE001 - every decoder failure is an attempt
            attempts.append(f"{name}: {e}")
            continue
        if not isinstance(key, _SIGNING_KEY_TYPES):
            attempts.append(f"{name}: {type(key).__name__} cannot sign")
            continue
        log.debug("credentials.key_decoded", encoding=name, key_type=type(key).__name__)
        return key

    raise CredentialError(
        "unable to decode private key (tried "
        + ", ".join(name for name, _ in KEY_DECODERS)
        + "): "
        + "; ".join(attempts)
    )


def _public_der(
    key: CertificateIssuerPrivateKeyTypes | x509.Certificate,
) -> bytes:
    public_key = key.public_key()
    return public_key.public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def build_signing_identity(cert_pem: bytes, key_pem: bytes) -> SigningIdentity:
    """Parse both PEM blobs and check that the key belongs to the certificate."""
    try:
        certificate = x509.load_pem_x509_certificate(cert_pem)
    except ValueError as e:
        raise CredentialError(f"invalid CA certificate: {e}") from e

    private_key = decode_private_key(key_pem)
    if _public_der(private_key) != _public_der(certificate):
        raise CredentialError("private key does not match the CA certificate")

    return SigningIdentity(certificate=certificate, private_key=private_key)


class PemCredentialLoader:
    """
    Load the CA certificate and key from PEM files.

    Implements the CredentialLoader port. Both files are re-read on every
    call; nothing is cached, so rotated files are picked up immediately.
    """

    def __init__(self, cert_file: Path, key_file: Path) -> None:
        self._cert_file = cert_file
        self._key_file = key_file

    def load(self) -> Result[SigningIdentity]:
        return Result.from_computation(
            self._load,
            ErrorCode.CREDENTIAL_ERROR,
            "Failed to load CA certificate and key",
        )

    def _load(self) -> SigningIdentity:
        identity = build_signing_identity(
            self._cert_file.read_bytes(),
            self._key_file.read_bytes(),
        )
        log.info(
            "credentials.loaded",
            subject=identity.certificate.subject.rfc4514_string(),
            key_type=type(identity.private_key).__name__,
        )
        return identity
