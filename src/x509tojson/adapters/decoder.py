"""
Certificate decoder adapter — DER bytes to ParsedCertificate.

Adapter layer — implements the CertificateDecoder port using
cryptography (PyCA) for X.509 parsing.

Every field is extracted eagerly inside one Result.from_computation call:
a malformed extension, a duplicate extension or an unsupported key shows
up here as a DECODE_ERROR Failure and never later during serialization.
"""

from __future__ import annotations

import hashlib
from typing import TypeVar

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, rsa, x448, x25519
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from cryptography.x509.oid import AuthorityInformationAccessOID
from railway import ErrorCode
from railway.result import Result

from x509tojson.domain.models import (
    DistinguishedName,
    ExtensionInfo,
    ParsedCertificate,
    PublicKeyInfo,
    RawBlob,
    SubjectAltNames,
)

E = TypeVar("E", bound=x509.ExtensionType)

_KEY_USAGE_FLAGS = (
    "digital_signature",
    "content_commitment",
    "key_encipherment",
    "data_encipherment",
    "key_agreement",
    "key_cert_sign",
    "crl_sign",
)
# Only readable when key_agreement is set; cryptography raises otherwise.
_KEY_AGREEMENT_FLAGS = ("encipher_only", "decipher_only")


# ─────────────────────── Small helpers ───────────────────────


def _oid_label(oid: x509.ObjectIdentifier) -> str:
    """Registered short name of an OID, or its dotted form when unknown."""
    name = getattr(oid, "_name", "Unknown OID")
    return oid.dotted_string if name == "Unknown OID" else name


def _extension_value(extensions: x509.Extensions, kind: type[E]) -> E | None:
    try:
        return extensions.get_extension_for_class(kind).value
    except x509.ExtensionNotFound:
        return None


def _uris(names: list[x509.GeneralName] | None) -> tuple[str, ...]:
    if not names:
        return ()
    return tuple(
        name.value for name in names if isinstance(name, x509.UniformResourceIdentifier)
    )


# ─────────────────────── Names & keys ───────────────────────


def _distinguished_name(name: x509.Name) -> DistinguishedName:
    """RFC 4514 rendering plus attribute values grouped by short name, in order."""
    grouped: dict[str, list[str]] = {}
    for attribute in name:
        value = attribute.value
        text = value.hex() if isinstance(value, bytes) else value
        grouped.setdefault(attribute.rfc4514_attribute_name, []).append(text)
    return DistinguishedName(
        rfc4514=name.rfc4514_string(),
        attributes={key: tuple(values) for key, values in grouped.items()},
    )


def _public_key_info(cert: x509.Certificate) -> PublicKeyInfo:
    """
    Describe the subject public key.

    Key algorithms cryptography cannot load are reported by OID instead of
    failing the whole certificate.
    """
    try:
        key = cert.public_key()
    except UnsupportedAlgorithm:
        return PublicKeyInfo(algorithm=_oid_label(cert.public_key_algorithm_oid))

    spki = hashlib.sha256(
        key.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
    ).hexdigest()

    match key:
        case rsa.RSAPublicKey():
            return PublicKeyInfo(
                algorithm="RSA",
                key_size=key.key_size,
                exponent=key.public_numbers().e,
                spki_sha256=spki,
            )
        case ec.EllipticCurvePublicKey():
            return PublicKeyInfo(
                algorithm="EC", key_size=key.key_size, curve=key.curve.name, spki_sha256=spki
            )
        case dsa.DSAPublicKey():
            return PublicKeyInfo(algorithm="DSA", key_size=key.key_size, spki_sha256=spki)
        case ed25519.Ed25519PublicKey():
            return PublicKeyInfo(algorithm="Ed25519", key_size=256, spki_sha256=spki)
        case ed448.Ed448PublicKey():
            return PublicKeyInfo(algorithm="Ed448", key_size=456, spki_sha256=spki)
        case x25519.X25519PublicKey():
            return PublicKeyInfo(algorithm="X25519", key_size=256, spki_sha256=spki)
        case x448.X448PublicKey():
            return PublicKeyInfo(algorithm="X448", key_size=448, spki_sha256=spki)
    return PublicKeyInfo(algorithm=_oid_label(cert.public_key_algorithm_oid), spki_sha256=spki)


# ─────────────────────── Extensions ───────────────────────


def _subject_alt_names(extensions: x509.Extensions) -> SubjectAltNames:
    san = _extension_value(extensions, x509.SubjectAlternativeName)
    if san is None:
        return SubjectAltNames()

    other: list[str] = []
    for name in san:
        if isinstance(name, x509.RegisteredID):
            other.append(name.value.dotted_string)
        elif isinstance(name, x509.OtherName):
            other.append(f"{name.type_id.dotted_string}:{name.value.hex()}")

    return SubjectAltNames(
        dns_names=tuple(san.get_values_for_type(x509.DNSName)),
        email_addresses=tuple(san.get_values_for_type(x509.RFC822Name)),
        ip_addresses=tuple(str(ip) for ip in san.get_values_for_type(x509.IPAddress)),
        uris=tuple(san.get_values_for_type(x509.UniformResourceIdentifier)),
        directory_names=tuple(
            name.rfc4514_string() for name in san.get_values_for_type(x509.DirectoryName)
        ),
        other=tuple(other),
    )


def _key_usage(extensions: x509.Extensions) -> tuple[str, ...]:
    usage = _extension_value(extensions, x509.KeyUsage)
    if usage is None:
        return ()
    flags = [flag for flag in _KEY_USAGE_FLAGS if getattr(usage, flag)]
    if usage.key_agreement:
        flags.extend(flag for flag in _KEY_AGREEMENT_FLAGS if getattr(usage, flag))
    return tuple(flags)


def _crl_distribution_points(extensions: x509.Extensions) -> tuple[str, ...]:
    points = _extension_value(extensions, x509.CRLDistributionPoints)
    if points is None:
        return ()
    return tuple(uri for point in points for uri in _uris(point.full_name))


def _access_locations(
    extensions: x509.Extensions,
    method: x509.ObjectIdentifier,
) -> tuple[str, ...]:
    aia = _extension_value(extensions, x509.AuthorityInformationAccess)
    if aia is None:
        return ()
    return _uris([desc.access_location for desc in aia if desc.access_method == method])


def _extension_list(extensions: x509.Extensions) -> tuple[ExtensionInfo, ...]:
    return tuple(
        ExtensionInfo(
            oid=ext.oid.dotted_string,
            name=_oid_label(ext.oid),
            critical=ext.critical,
            value=ext.value.value.hex()
            if isinstance(ext.value, x509.UnrecognizedExtension)
            else None,
        )
        for ext in extensions
    )


# ─────────────────────── Assembly ───────────────────────


def to_parsed_certificate(der: bytes) -> ParsedCertificate:
    """
    Parse DER bytes and extract every modelled field.

    Raises on any malformation; callers wrap this in Result.from_computation.
    """
    cert = x509.load_der_x509_certificate(der)
    extensions = cert.extensions

    basic = _extension_value(extensions, x509.BasicConstraints)
    eku = _extension_value(extensions, x509.ExtendedKeyUsage)
    ski = _extension_value(extensions, x509.SubjectKeyIdentifier)
    aki = _extension_value(extensions, x509.AuthorityKeyIdentifier)
    policies = _extension_value(extensions, x509.CertificatePolicies)

    return ParsedCertificate(
        version=cert.version.value + 1,
        serial_number=hex(cert.serial_number),
        signature_algorithm=_oid_label(cert.signature_algorithm_oid),
        issuer=_distinguished_name(cert.issuer),
        subject=_distinguished_name(cert.subject),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        public_key=_public_key_info(cert),
        subject_alt_names=_subject_alt_names(extensions),
        is_ca=basic.ca if basic is not None else None,
        max_path_length=basic.path_length if basic is not None else None,
        key_usage=_key_usage(extensions),
        extended_key_usage=tuple(_oid_label(oid) for oid in eku) if eku is not None else (),
        subject_key_id=ski.digest.hex() if ski is not None else None,
        authority_key_id=(
            aki.key_identifier.hex()
            if aki is not None and aki.key_identifier is not None
            else None
        ),
        crl_distribution_points=_crl_distribution_points(extensions),
        ocsp_servers=_access_locations(extensions, AuthorityInformationAccessOID.OCSP),
        issuing_certificate_urls=_access_locations(
            extensions, AuthorityInformationAccessOID.CA_ISSUERS
        ),
        policy_identifiers=(
            tuple(policy.policy_identifier.dotted_string for policy in policies)
            if policies is not None
            else ()
        ),
        extensions=_extension_list(extensions),
        signature=cert.signature.hex(),
        fingerprint_sha1=hashlib.sha1(der).hexdigest(),
        fingerprint_sha256=hashlib.sha256(der).hexdigest(),
    )


class CryptographyCertificateDecoder:
    """
    Decode RawBlobs with cryptography.

    Implements the CertificateDecoder port. Never raises: every exception
    becomes Result.failure(DECODE_ERROR, ...).
    """

    def decode(self, blob: RawBlob) -> Result[ParsedCertificate]:
        return Result.from_computation(
            lambda: to_parsed_certificate(blob.der),
            ErrorCode.DECODE_ERROR,
            "Failed to decode certificate",
        )
