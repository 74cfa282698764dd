"""
Sink adapters — deliver each ParsedCertificate as one JSON document.

Adapter layer — implements the CertificateSink port:
  - StdoutCertificateSink: newline-delimited JSON on standard output
  - HttpIndexSink: one synchronous HTTP POST per certificate via httpx

Fatal conditions come back as Failures (serialization, broken stdout,
transport errors). An index answering with a status above 299 is logged
and reported as Delivery.REJECTED; the run goes on. No retries.
"""

from __future__ import annotations

import sys
from typing import BinaryIO

import httpx
import structlog
from railway import ErrorCode
from railway.result import Result

from x509tojson.adapters.json_codec import encode_certificate
from x509tojson.domain.models import Delivery, ParsedCertificate

log = structlog.get_logger()

JSON_CONTENT_TYPE = "application/json"


def _serialize(certificate: ParsedCertificate) -> Result[bytes]:
    """A failure here means the decoder produced something unencodable: a bug, not bad data."""
    return Result.from_computation(
        lambda: encode_certificate(certificate),
        ErrorCode.TECHNICAL_ERROR,
        "Failed to serialize certificate to JSON",
    )


class StdoutCertificateSink:
    """
    Write one JSON object per line to a binary stream (stdout by default).

    Implements the CertificateSink port.
    """

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout.buffer

    def emit(self, certificate: ParsedCertificate) -> Result[Delivery]:
        return _serialize(certificate).flat_map(self._write)

    def _write(self, document: bytes) -> Result[Delivery]:
        return Result.from_computation(
            lambda: self._write_line(document),
            ErrorCode.TECHNICAL_ERROR,
            "Failed to write to standard output",
        )

    def _write_line(self, document: bytes) -> Delivery:
        self._stream.write(document + b"\n")
        return Delivery.WRITTEN

    def close(self) -> None:
        self._stream.flush()


class HttpIndexSink:
    """
    POST each certificate as a JSON document to a search index URL.

    Implements the CertificateSink port. One httpx.Client is reused for the
    whole run; requests are strictly sequential.
    """

    def __init__(
        self,
        index_url: str,
        timeout: float = 60,
        client: httpx.Client | None = None,
    ) -> None:
        self._index_url = index_url
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def emit(self, certificate: ParsedCertificate) -> Result[Delivery]:
        """
        Serialize and POST one certificate.

        Returns Success(INDEXED) for 2xx/3xx, Success(REJECTED) for anything
        above 299 (logged as index.rejected with status and body), and
        Failure(EXTERNAL_SERVICE_ERROR) when no response was obtained at all.
        """
        return _serialize(certificate).flat_map(self._post).map(self._inspect)

    def _post(self, document: bytes) -> Result[httpx.Response]:
        return Result.from_computation(
            lambda: self._client.post(
                self._index_url,
                content=document,
                headers={"Content-Type": JSON_CONTENT_TYPE},
            ),
            ErrorCode.EXTERNAL_SERVICE_ERROR,
            f"Index request to {self._index_url} failed",
        )

    def _inspect(self, response: httpx.Response) -> Delivery:
        if response.status_code > 299:
            log.warning(
                "index.rejected",
                url=self._index_url,
                status=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
            )
            return Delivery.REJECTED
        return Delivery.INDEXED

    def close(self) -> None:
        self._client.close()
