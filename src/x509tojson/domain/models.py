"""
Domain models — immutable values flowing through the conversion pipeline.

  RawBlob            DER bytes of one certificate + where they came from
  ParsedCertificate  decoded certificate fields, ready for JSON
  ConversionError    a blob that failed decoding (logged, then skipped)
  ConversionStats    counters reported at the end of a run

All models are frozen dataclasses. ParsedCertificate holds only JSON-ready
values (str, int, bool, datetime, tuples, nested dataclasses) so encoding
it cannot fail for a successfully decoded certificate.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True)
class RawBlob:
    """
    One DER-encoded certificate as read from an input file.

    `position` is 1-based: the PEM block ordinal in PEM mode,
    the line number in CSV mode.
    """

    der: bytes = field(repr=False)
    source: str
    position: int

    def to_base64(self) -> str:
        return base64.b64encode(self.der).decode("ascii")


@dataclass(frozen=True, slots=True)
class DistinguishedName:
    """An X.509 Name as an RFC 4514 string plus its attributes grouped by short name."""

    rfc4514: str
    attributes: dict[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PublicKeyInfo:
    algorithm: str
    key_size: int | None = None
    curve: str | None = None
    exponent: int | None = None
    spki_sha256: str | None = None


@dataclass(frozen=True, slots=True)
class SubjectAltNames:
    dns_names: tuple[str, ...] = ()
    email_addresses: tuple[str, ...] = ()
    ip_addresses: tuple[str, ...] = ()
    uris: tuple[str, ...] = ()
    directory_names: tuple[str, ...] = ()
    other: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ExtensionInfo:
    """
    Generic view of one extension.

    `value` is only set for extensions the decoder does not model
    explicitly, as the hex of the raw extension value.
    """

    oid: str
    name: str
    critical: bool
    value: str | None = None


@dataclass(frozen=True, slots=True)
class ParsedCertificate:
    """
    The decoded fields of one X.509 certificate.

    Produced by the CertificateDecoder, consumed by exactly one sink
    emission. Hex strings are lowercase without separators.
    """

    version: int
    serial_number: str
    signature_algorithm: str
    issuer: DistinguishedName
    subject: DistinguishedName
    not_before: datetime
    not_after: datetime
    public_key: PublicKeyInfo
    subject_alt_names: SubjectAltNames = field(default_factory=SubjectAltNames)
    is_ca: bool | None = None
    max_path_length: int | None = None
    key_usage: tuple[str, ...] = ()
    extended_key_usage: tuple[str, ...] = ()
    subject_key_id: str | None = None
    authority_key_id: str | None = None
    crl_distribution_points: tuple[str, ...] = ()
    ocsp_servers: tuple[str, ...] = ()
    issuing_certificate_urls: tuple[str, ...] = ()
    policy_identifiers: tuple[str, ...] = ()
    extensions: tuple[ExtensionInfo, ...] = ()
    signature: str = field(default="", repr=False)
    fingerprint_sha1: str = ""
    fingerprint_sha256: str = ""


@dataclass(frozen=True, slots=True)
class ConversionError:
    """A blob the decoder rejected. Not fatal: it is logged and skipped."""

    message: str
    der_base64: str = field(repr=False)
    source: str
    position: int

    @staticmethod
    def from_blob(blob: RawBlob, message: str) -> ConversionError:
        return ConversionError(
            message=message,
            der_base64=blob.to_base64(),
            source=blob.source,
            position=blob.position,
        )

    def as_log_fields(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "source": self.source,
            "position": self.position,
            "der_base64": self.der_base64,
        }


class Delivery(Enum):
    """What a sink did with one certificate."""

    WRITTEN = "written"
    INDEXED = "indexed"
    REJECTED = "rejected"


@dataclass(slots=True)
class ConversionStats:
    """Counters for one pipeline run. Owned by the consumer side only."""

    blobs_read: int = 0
    converted: int = 0
    decode_failures: int = 0
    rejected: int = 0

    def record(self, delivery: Delivery) -> None:
        if delivery is Delivery.REJECTED:
            self.rejected += 1
        else:
            self.converted += 1
