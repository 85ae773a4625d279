"""
CRL encoder adapter — builds and signs X.509 v2 CRLs with cryptography (PyCA).

Adapter layer — implements the CrlEncoder port.

Each CRL carries:
  - issuer = CA certificate subject
  - thisUpdate / nextUpdate
  - CRL Number (non-critical)
  - Authority Key Identifier (from the CA's SKI, else its public key)
  - one revoked entry per registry entry, with CRLReason when non-zero

The signature hash follows the CA key: SHA-256 for RSA/DSA and P-256,
SHA-384 for P-384, SHA-512 for P-521, none for Ed25519/Ed448.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519
from cryptography.hazmat.primitives.asymmetric.types import CertificateIssuerPrivateKeyTypes

from crl_server.domain.models import ReasonCode, RevocationEntry, SigningIdentity
from crl_server.railway import ErrorCode, Result

log = structlog.get_logger()

_REASON_FLAGS: dict[ReasonCode, x509.ReasonFlags] = {
    ReasonCode.UNSPECIFIED: x509.ReasonFlags.unspecified,
    ReasonCode.KEY_COMPROMISE: x509.ReasonFlags.key_compromise,
    ReasonCode.CA_COMPROMISE: x509.ReasonFlags.ca_compromise,
    ReasonCode.AFFILIATION_CHANGED: x509.ReasonFlags.affiliation_changed,
    ReasonCode.SUPERSEDED: x509.ReasonFlags.superseded,
    ReasonCode.CESSATION_OF_OPERATION: x509.ReasonFlags.cessation_of_operation,
    ReasonCode.CERTIFICATE_HOLD: x509.ReasonFlags.certificate_hold,
    ReasonCode.REMOVE_FROM_CRL: x509.ReasonFlags.remove_from_crl,
    ReasonCode.PRIVILEGE_WITHDRAWN: x509.ReasonFlags.privilege_withdrawn,
    ReasonCode.AA_COMPROMISE: x509.ReasonFlags.aa_compromise,
}

_EC_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "secp384r1": hashes.SHA384,
    "secp521r1": hashes.SHA512,
}


def signature_hash_for(
    private_key: CertificateIssuerPrivateKeyTypes,
) -> hashes.HashAlgorithm | None:
    """Pick the CRL signature hash for a CA key."""
    if isinstance(private_key, (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey)):
        return None
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        return _EC_HASHES.get(private_key.curve.name, hashes.SHA256)()
    return hashes.SHA256()


def _authority_key_identifier(ca_cert: x509.Certificate) -> x509.AuthorityKeyIdentifier:
    try:
        ski = ca_cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
    except x509.ExtensionNotFound:
        return x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_cert.public_key())  # type: ignore[arg-type]
    return x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski.value)


def _revoked_certificate(entry: RevocationEntry) -> x509.RevokedCertificate:
    builder = (
        x509.RevokedCertificateBuilder()
        .serial_number(entry.serial_number)
        .revocation_date(entry.revocation_time)
    )
    if entry.reason_code != ReasonCode.UNSPECIFIED:
        builder = builder.add_extension(
            x509.CRLReason(_REASON_FLAGS[entry.reason_code]),
            critical=False,
        )
    return builder.build()


class X509CrlEncoder:
    """
    Sign a CRL for the given entries and identity, returning DER bytes.

    Implements the CrlEncoder port. Stateless: everything it needs arrives
    as arguments, so one instance serves every regeneration.
    """

    def encode(
        self,
        entries: Sequence[RevocationEntry],
        this_update: datetime,
        next_update: datetime,
        number: int,
        identity: SigningIdentity,
    ) -> Result[bytes]:
        return Result.from_computation(
            lambda: self._sign(entries, this_update, next_update, number, identity),
            ErrorCode.SIGNING_ERROR,
            "Failed to build and sign CRL",
        )

    def _sign(
        self,
        entries: Sequence[RevocationEntry],
        this_update: datetime,
        next_update: datetime,
        number: int,
        identity: SigningIdentity,
    ) -> bytes:
        ca_cert = identity.certificate
        builder = (
            x509.CertificateRevocationListBuilder()
            .issuer_name(ca_cert.subject)
            .last_update(this_update)
            .next_update(next_update)
            .add_extension(x509.CRLNumber(number), critical=False)
            .add_extension(_authority_key_identifier(ca_cert), critical=False)
        )
        for entry in entries:
            builder = builder.add_revoked_certificate(_revoked_certificate(entry))

        crl = builder.sign(identity.private_key, signature_hash_for(identity.private_key))
        der = crl.public_bytes(serialization.Encoding.DER)
        log.debug("encoder.signed", number=number, revoked=len(entries), size_bytes=len(der))
        return der
