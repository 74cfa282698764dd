"""
Shared test fixtures and helpers for the x509tojson test suite.

Certificates are generated at runtime with cryptography, so no binary
fixtures are checked in. PEM armoring uses asn1crypto, the same library
the PEM source uses to unarmor.
"""

from __future__ import annotations

import base64
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest
import structlog
from asn1crypto import pem
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import AuthorityInformationAccessOID, ExtendedKeyUsageOID, NameOID

NOT_BEFORE = datetime(2024, 1, 1, tzinfo=UTC)
NOT_AFTER = NOT_BEFORE + timedelta(days=365)

_SIGNING_KEY = ec.generate_private_key(ec.SECP256R1())


def build_certificate(
    common_name: str = "www.example.com",
    dns_names: tuple[str, ...] = ("www.example.com", "example.com"),
    serial_number: int = 0x1234,
) -> bytes:
    """
    Build a self-signed P-256 certificate and return its DER encoding.

    Carries SAN, basic constraints, key usage, EKU, SKI, AIA (OCSP)
    and a CRL distribution point.
    """
    public_key = _SIGNING_KEY.public_key()
    name = x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "SC"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example Org"),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(public_key)
        .serial_number(serial_number)
        .not_valid_before(NOT_BEFORE)
        .not_valid_after(NOT_AFTER)
        .add_extension(
            x509.SubjectAlternativeName([x509.DNSName(dns) for dns in dns_names]),
            critical=False,
        )
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
        .add_extension(
            x509.AuthorityInformationAccess(
                [
                    x509.AccessDescription(
                        AuthorityInformationAccessOID.OCSP,
                        x509.UniformResourceIdentifier("http://ocsp.example.com"),
                    )
                ]
            ),
            critical=False,
        )
        .add_extension(
            x509.CRLDistributionPoints(
                [
                    x509.DistributionPoint(
                        full_name=[x509.UniformResourceIdentifier("http://crl.example.com/ca.crl")],
                        relative_name=None,
                        reasons=None,
                        crl_issuer=None,
                    )
                ]
            ),
            critical=False,
        )
        .sign(_SIGNING_KEY, hashes.SHA256())
    )
    return certificate.public_bytes(Encoding.DER)


def pem_block(der: bytes, block_type: str = "CERTIFICATE", headers: dict[str, str] | None = None) -> bytes:
    """Armor DER bytes as one PEM block, optionally with headers."""
    return pem.armor(block_type, der, headers=headers)


def b64(der: bytes) -> str:
    return base64.b64encode(der).decode("ascii")


@pytest.fixture(scope="session")
def certificate_der() -> bytes:
    """One well-formed certificate, reused across the session."""
    return build_certificate()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """main() reconfigures structlog to the captured stderr; undo that after each test."""
    yield
    structlog.reset_defaults()
