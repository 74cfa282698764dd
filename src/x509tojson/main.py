"""
Application entry point — parses flags, wires adapters, runs the pipeline.

Composition root: the ONLY place where concrete adapters are instantiated.
Everything else depends on the Protocol ports.

Responsibilities:
  1. Parse command-line flags into AppSettings (pydantic-settings)
  2. Configure structlog (human-readable, always on stderr)
  3. Pick the source (PEM or CSV) and the sink (stdout or search index)
  4. Run the pipeline inside a LoggingExecutionContext
  5. Map the outcome to the exit status: 0 on completion, 1 on a fatal error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import structlog
from railway import ErrorCode, LoggingExecutionContext
from railway.result import Result

from x509tojson import __version__
from x509tojson.adapters.decoder import CryptographyCertificateDecoder
from x509tojson.adapters.sinks import HttpIndexSink, StdoutCertificateSink
from x509tojson.adapters.sources import CsvBlobSource, PemBlobSource
from x509tojson.config import DEFAULT_ES_URL, AppSettings
from x509tojson.domain.ports import BlobSource, CertificateSink
from x509tojson.pipeline import run_pipeline


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for human-readable console logging on stderr.

    stdout carries the JSON documents, so no log line may ever land there.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    """
    Flags keep their historical single-dash spellings (-csv, -esurl, ...) as aliases.

    Every default is None so that unset flags fall through to the
    environment and .env file.
    """
    parser = argparse.ArgumentParser(
        prog="x509tojson",
        description="Convert X.509 certificates from PEM or base64 CSV files into JSON.",
    )
    parser.add_argument("files", nargs="*", type=Path, help="input files, processed in order")
    parser.add_argument(
        "--csv", "-csv", action="store_true", default=None,
        help="input files are CSV rather than PEM",
    )
    parser.add_argument(
        "--column", "-column", type=int, default=None,
        help="CSV column holding base64 DER, 0 is first (default: 1)",
    )
    parser.add_argument(
        "--es", "-es", action="store_true", default=None,
        help="send the documents to the search index instead of stdout",
    )
    parser.add_argument(
        "--esurl", "-esurl", dest="es_url", default=None,
        help=f"search index URL to POST to (default: {DEFAULT_ES_URL})",
    )
    parser.add_argument(
        "--timeout", dest="http_timeout_seconds", type=float, default=None,
        help="HTTP timeout in seconds for the index sink (default: 60)",
    )
    parser.add_argument(
        "--queue-size", type=int, default=None,
        help="blobs buffered between reader and converter (default: 1)",
    )
    parser.add_argument("--log-level", default=None, help="log level (default: INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_settings(argv: list[str] | None = None) -> Result[AppSettings]:
    """Merge command-line flags over environment settings and validate the result."""
    args = build_arg_parser().parse_args(argv)
    overrides: dict[str, Any] = {
        name: value for name, value in vars(args).items() if value is not None
    }
    if not overrides.get("files"):
        overrides.pop("files", None)
    return Result.from_computation(
        lambda: AppSettings(**overrides),
        ErrorCode.CONFIGURATION_ERROR,
        "Configuration error",
    )


def _create_source(settings: AppSettings) -> BlobSource:
    if settings.csv:
        return CsvBlobSource(column=settings.column)
    return PemBlobSource()


def _create_sink(settings: AppSettings) -> CertificateSink:
    if settings.es:
        return HttpIndexSink(index_url=settings.es_url, timeout=settings.http_timeout_seconds)
    return StdoutCertificateSink()


def _close_sink(sink: CertificateSink) -> Result[CertificateSink]:
    """Flush and release the sink; a broken stdout or client shows up as a Failure."""

    def close() -> CertificateSink:
        sink.close()
        return sink

    return Result.from_computation(close, ErrorCode.TECHNICAL_ERROR, "Failed to close output")


def main(argv: list[str] | None = None) -> None:
    """Run one conversion; exits with status 1 on any fatal error."""
    loaded = load_settings(argv)
    if loaded.is_failure():
        print(f"FATAL: {loaded.error().detail()}", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    settings = loaded.value()

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    if not settings.files:
        log.error("app.no_input_files", message="No files specified")
        sys.exit(1)

    log.info(
        "app.starting",
        version=__version__,
        files=len(settings.files),
        input_format="csv" if settings.csv else "pem",
        output="index" if settings.es else "stdout",
    )

    source = _create_source(settings)
    decoder = CryptographyCertificateDecoder()
    sink = _create_sink(settings)
    ctx = LoggingExecutionContext(operation="x509tojson")

    try:
        result = ctx.execute(
            lambda: run_pipeline(
                settings.files,
                source=source,
                decoder=decoder,
                sink=sink,
                queue_size=settings.queue_size,
            )
        )
    except KeyboardInterrupt:
        log.info("app.shutdown", reason="interrupted")
        sys.exit(130)
    finally:
        closed = _close_sink(sink)

    result = result.flat_map(lambda stats: closed.map(lambda _: stats))
    if result.is_failure():
        error = result.error()
        log.error("app.fatal_error", code=error.code.value, error=error.detail())
        sys.exit(1)


if __name__ == "__main__":
    main()
