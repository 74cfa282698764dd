"""
Source adapters — turn PEM bundles and base64 CSV exports into RawBlobs.

Adapter layer — implements the BlobSource port:
  - PemBlobSource: locate every BEGIN/END block, unarmor it with asn1crypto,
    keep header-less CERTIFICATE blocks
  - CsvBlobSource: one base64 DER field per line at a configured column

Both read lazily and yield Result[RawBlob]. Structural problems (missing
file, short CSV line, invalid base64) are yielded as a single Failure and
end the file; PEM blocks that are not plain certificates are skipped.
"""

from __future__ import annotations

import base64
import re
from collections.abc import Iterator
from pathlib import Path

import structlog
from asn1crypto import pem
from railway import ErrorCode
from railway.result import Result

from x509tojson.domain.models import RawBlob

log = structlog.get_logger()

CERTIFICATE_BLOCK_TYPE = "CERTIFICATE"

# BEGIN must start a line; the END label must repeat the BEGIN label and no
# other BEGIN line may come in between.
_PEM_BLOCK = re.compile(
    rb"^-----BEGIN (?P<label>[^\r\n]+?)-----[ \t]*\r?$"
    rb"(?P<body>(?:(?!^-----BEGIN ).)*?)"
    rb"^-----END (?P=label)-----",
    re.MULTILINE | re.DOTALL,
)


# ─────────────────────── PEM ───────────────────────


def _unarmor(block: re.Match[bytes]) -> tuple[str, dict[str, str], bytes]:
    """
    Unarmor one located block with asn1crypto.

    asn1crypto drops characters outside the base64 alphabet; a certificate
    body is decoded again strictly so such a block raises instead.
    """
    block_type, headers, der = pem.unarmor(block.group(0))
    if block_type == CERTIFICATE_BLOCK_TYPE and not headers:
        der = base64.b64decode(b"".join(block.group("body").split()), validate=True)
    return block_type, headers, der


def iter_pem_certificates(data: bytes, source: str) -> Iterator[RawBlob]:
    """
    Yield the DER body of every header-less CERTIFICATE block in `data`.

    Blocks of other types, blocks carrying headers and blocks whose body is
    not valid base64 are skipped. Text between or after blocks is ignored.
    `position` counts every block found, skipped or not.
    """
    for position, match in enumerate(_PEM_BLOCK.finditer(data), start=1):
        try:
            block_type, headers, der = _unarmor(match)
        except ValueError as e:
            log.debug("pem.block_unreadable", source=source, position=position, error=str(e))
            continue
        if block_type != CERTIFICATE_BLOCK_TYPE or headers:
            log.debug(
                "pem.block_skipped",
                source=source,
                position=position,
                block_type=block_type,
                headers=len(headers),
            )
            continue
        yield RawBlob(der=der, source=source, position=position)


class PemBlobSource:
    """
    Read concatenated PEM files.

    Implements the BlobSource port. The whole file is loaded at once;
    only the read itself can fail.
    """

    def read(self, path: Path) -> Iterator[Result[RawBlob]]:
        loaded = Result.from_computation(
            path.read_bytes,
            ErrorCode.VALIDATION_ERROR,
            f"Cannot read PEM file {path}",
        )
        if loaded.is_failure():
            yield Result.failure_from(loaded.error())
            return
        for blob in iter_pem_certificates(loaded.value(), source=str(path)):
            yield Result.success(blob)


# ─────────────────────── CSV ───────────────────────


class CsvBlobSource:
    """
    Read files with one certificate per line, base64 DER in a fixed column.

    Implements the BlobSource port. Lines are split on plain commas, no
    quoting rules. `column` is zero-based.
    """

    def __init__(self, column: int = 1) -> None:
        if column < 0:
            raise ValueError(f"Invalid CSV column: {column}")
        self._column = column

    def read(self, path: Path) -> Iterator[Result[RawBlob]]:
        opened = Result.from_computation(
            lambda: path.open("rb"),
            ErrorCode.VALIDATION_ERROR,
            f"Cannot open CSV file {path}",
        )
        if opened.is_failure():
            yield Result.failure_from(opened.error())
            return

        with opened.value() as handle:
            for line_number, line in enumerate(handle, start=1):
                item = self._parse_line(line, path, line_number)
                yield item
                if item.is_failure():
                    return

    def _parse_line(self, line: bytes, path: Path, line_number: int) -> Result[RawBlob]:
        """Pick the configured column of one line and base64-decode it."""
        fields = line.rstrip(b"\r\n").split(b",")
        if len(fields) <= self._column:
            return Result.failure(
                ErrorCode.VALIDATION_ERROR,
                f"Malformed line in {path}:{line_number} "
                f"(expected at least {self._column + 1} comma-separated fields, got {len(fields)})",
            )
        return Result.from_computation(
            lambda: base64.b64decode(fields[self._column], validate=True),
            ErrorCode.VALIDATION_ERROR,
            f"Malformed base64 in {path}:{line_number}",
        ).map(lambda der: RawBlob(der=der, source=str(path), position=line_number))
