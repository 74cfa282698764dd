"""
Pipeline — one producer thread, one consumer, a bounded queue between them.

  producer thread:  for path in paths: source.read(path) ──put──▶ queue
  consumer (caller): queue ──get──▶ decoder.decode ──▶ sink.emit

Two-tier error handling on the railway:
  - Failure from the source or the sink → fatal, run_pipeline returns it
  - Failure from the decoder → logged with the blob in base64, skipped

Close-and-drain handshake: the producer always finishes with an
end-of-input sentinel. If the consumer stops early it sets the stop event
and drains up to that sentinel, so the producer never blocks on a full
queue. The producer thread is joined before run_pipeline returns.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Final

import structlog
from railway import ErrorCode, FailureDescription
from railway.result import Result

from x509tojson.domain.models import ConversionError, ConversionStats, RawBlob
from x509tojson.domain.ports import BlobSource, CertificateDecoder, CertificateSink

log = structlog.get_logger()

_END_OF_INPUT: Final = object()

type _Handoff = queue.Queue[Result[RawBlob] | object]


# ─────────────────────── Producer ───────────────────────


def _produce(
    paths: Iterable[Path],
    source: BlobSource,
    handoff: _Handoff,
    stop: threading.Event,
) -> None:
    """Feed every blob of every file into the queue, then close it with the sentinel."""
    try:
        for path in paths:
            log.info("source.loading", path=str(path))
            for item in source.read(path):
                if stop.is_set():
                    return
                handoff.put(item)
                if item.is_failure():
                    return
    except Exception as e:
        handoff.put(Result.failure(ErrorCode.TECHNICAL_ERROR, "Reading input failed", e))
    finally:
        handoff.put(_END_OF_INPUT)


def _drain(handoff: _Handoff) -> None:
    while handoff.get() is not _END_OF_INPUT:
        pass


# ─────────────────────── Consumer ───────────────────────


def _skip(blob: RawBlob, error: FailureDescription, stats: ConversionStats) -> Result[ConversionStats]:
    """Recoverable path: log the undecodable blob once and keep going."""
    conversion_error = ConversionError.from_blob(blob, error.detail())
    log.warning("certificate.decode_failed", **conversion_error.as_log_fields())
    stats.decode_failures += 1
    return Result.success(stats)


def _convert(
    blob: RawBlob,
    decoder: CertificateDecoder,
    sink: CertificateSink,
    stats: ConversionStats,
) -> Result[ConversionStats]:
    stats.blobs_read += 1
    return decoder.decode(blob).either(
        on_success=lambda certificate: sink.emit(certificate).peek(stats.record).map(lambda _: stats),
        on_failure=lambda error: _skip(blob, error, stats),
    )


def _consume(
    handoff: _Handoff,
    decoder: CertificateDecoder,
    sink: CertificateSink,
    stats: ConversionStats,
) -> Result[ConversionStats]:
    """
    Process items in arrival order until the sentinel or the first fatal Failure.

    Returns Success only after the sentinel has been taken from the queue.
    """
    while (item := handoff.get()) is not _END_OF_INPUT:
        outcome = item.flat_map(lambda blob: _convert(blob, decoder, sink, stats))
        if outcome.is_failure():
            return outcome
    return Result.success(stats)


# ─────────────────────── Entry point ───────────────────────


def run_pipeline(
    paths: Iterable[Path],
    source: BlobSource,
    decoder: CertificateDecoder,
    sink: CertificateSink,
    queue_size: int = 1,
) -> Result[ConversionStats]:
    """
    Convert every certificate in `paths` and hand it to `sink`.

    Input order is output order. Returns Success(ConversionStats) once all
    input is consumed, or the first fatal Failure. The sink is not closed
    here; its owner does that.
    """
    handoff: _Handoff = queue.Queue(maxsize=queue_size)
    stop = threading.Event()
    producer = threading.Thread(
        target=_produce,
        args=(list(paths), source, handoff, stop),
        name="x509tojson-reader",
        daemon=True,
    )
    producer.start()

    stats = ConversionStats()
    finished = False
    try:
        result = _consume(handoff, decoder, sink, stats)
        finished = result.is_success()
    finally:
        if not finished:
            stop.set()
            _drain(handoff)
        producer.join()

    if finished:
        log.info(
            "pipeline.complete",
            blobs_read=stats.blobs_read,
            converted=stats.converted,
            decode_failures=stats.decode_failures,
            rejected=stats.rejected,
        )
    return result
