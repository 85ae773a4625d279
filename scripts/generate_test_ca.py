"""
Generate a throwaway CA and an example revocation list for local runs.

Infrastructure script — writes the files the server reads at its default
paths, relative to the project root:

  tls/tls.crt     self-signed P-256 CA certificate (10 years)
  tls/tls.key     its private key, SEC1 "EC PRIVATE KEY" PEM
  conf/list.txt   copied from conf/list.txt.example (kept if it already exists)

Usage:
  python scripts/generate_test_ca.py [--force]
"""

from __future__ import annotations

import argparse
import shutil
from datetime import UTC, datetime, timedelta
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

PROJECT_ROOT = Path(__file__).parent.parent
TLS_DIR = PROJECT_ROOT / "tls"
CONF_DIR = PROJECT_ROOT / "conf"
VALIDITY = timedelta(days=3650)


def _subject() -> x509.Name:
    return x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "CN"),
        x509.NameAttribute(NameOID.STATE_OR_PROVINCE_NAME, "Test"),
        x509.NameAttribute(NameOID.LOCALITY_NAME, "Test"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test"),
        x509.NameAttribute(NameOID.COMMON_NAME, "Test CA"),
    ])


def generate_ca(force: bool = False) -> tuple[Path, Path]:
    """Write tls/tls.crt and tls/tls.key, refusing to overwrite unless forced."""
    cert_path = TLS_DIR / "tls.crt"
    key_path = TLS_DIR / "tls.key"
    if not force and (cert_path.exists() or key_path.exists()):
        raise SystemExit(f"{TLS_DIR} already holds a CA; pass --force to replace it")

    key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.now(UTC)
    name = _subject()
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + VALIDITY)
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=False,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        .sign(key, hashes.SHA256())
    )

    TLS_DIR.mkdir(parents=True, exist_ok=True)
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        )
    )
    key_path.chmod(0o600)

    print(f"✓ {cert_path}")
    print(f"✓ {key_path}")
    print(f"  Subject: {cert.subject.rfc4514_string()}")
    print(f"  Valid until: {cert.not_valid_after_utc.isoformat()}")
    return cert_path, key_path


def copy_example_list() -> Path:
    """Seed conf/list.txt from the example unless one already exists."""
    target = CONF_DIR / "list.txt"
    if target.exists():
        print(f"  {target} already exists, left untouched")
        return target
    shutil.copyfile(CONF_DIR / "list.txt.example", target)
    print(f"✓ {target}")
    return target


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--force", action="store_true", help="replace an existing tls/ CA")
    args = parser.parse_args()
    generate_ca(force=args.force)
    copy_example_list()
