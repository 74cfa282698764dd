"""
JSON encoding of ParsedCertificate via a pydantic TypeAdapter.

pydantic serializes the frozen dataclasses directly: nested dataclasses
become objects, tuples become arrays, datetimes become ISO 8601 strings.
"""

from __future__ import annotations

from pydantic import TypeAdapter

from x509tojson.domain.models import ParsedCertificate

_CERTIFICATE_ADAPTER = TypeAdapter(ParsedCertificate)


def encode_certificate(certificate: ParsedCertificate) -> bytes:
    """Compact UTF-8 JSON for one certificate, without a trailing newline."""
    return _CERTIFICATE_ADAPTER.dump_json(certificate)
