"""
Ports — Protocol-based interfaces the pipeline depends on.

  BlobSource          input file → RawBlob sequence
  CertificateDecoder  RawBlob → ParsedCertificate
  CertificateSink     ParsedCertificate → stdout line / index document

Adapters satisfy these structurally; nothing inherits from them.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Protocol, runtime_checkable

from railway.result import Result

from x509tojson.domain.models import Delivery, ParsedCertificate, RawBlob


@runtime_checkable
class BlobSource(Protocol):
    """
    Port: read one input file lazily into RawBlob values.

    A Failure item means the file is unusable (missing, unreadable,
    structurally malformed). It is always the last item yielded for that
    file and the pipeline treats it as fatal.
    """

    def read(self, path: Path) -> Iterator[Result[RawBlob]]: ...


@runtime_checkable
class CertificateDecoder(Protocol):
    """
    Port: decode DER bytes into a ParsedCertificate.

    A Failure here is per-record: the caller logs it and moves on.
    """

    def decode(self, blob: RawBlob) -> Result[ParsedCertificate]: ...


@runtime_checkable
class CertificateSink(Protocol):
    """
    Port: deliver one certificate somewhere.

    Success(Delivery.REJECTED) is a remote refusal the run survives;
    a Failure is fatal. close() releases resources and flushes output.
    """

    def emit(self, certificate: ParsedCertificate) -> Result[Delivery]: ...

    def close(self) -> None: ...
