"""
Unit tests for the main module — composition root and flag parsing.

Tests verify structlog configuration, flag-to-settings mapping and
adapter selection without touching the network.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import structlog
from railway import ErrorCode, ResultAssertions

from tests.conftest import build_certificate, pem_block
from x509tojson.adapters.sinks import HttpIndexSink, StdoutCertificateSink
from x509tojson.adapters.sources import CsvBlobSource, PemBlobSource
from x509tojson.config import AppSettings
from x509tojson.main import _create_sink, _create_source, configure_structlog, load_settings, main


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("CSV", "COLUMN", "ES", "ES_URL", "LOG_LEVEL", "FILES"):
        monkeypatch.delenv(f"X509TOJSON_{name}", raising=False)


class TestConfigureStructlog:
    def test_logs_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_structlog("INFO")
        structlog.get_logger().info("probe.event", answer=42)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "probe.event" in captured.err

    def test_level_filters_lower_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_structlog("WARNING")
        structlog.get_logger().info("quiet.event")

        assert "quiet.event" not in capsys.readouterr().err

    def test_invalid_level_falls_back_to_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_structlog("NONEXISTENT")
        structlog.get_logger().info("still.logged")

        assert "still.logged" in capsys.readouterr().err


class TestLoadSettings:
    def test_long_flags(self) -> None:
        result = load_settings(
            ["--csv", "--column", "0", "--es", "--esurl", "http://es:9200/ct/", "a.csv", "b.csv"]
        )

        settings = ResultAssertions.assert_success(result)
        assert settings.csv is True
        assert settings.column == 0
        assert settings.es is True
        assert settings.es_url == "http://es:9200/ct/"
        assert settings.files == [Path("a.csv"), Path("b.csv")]

    def test_single_dash_aliases(self) -> None:
        settings = ResultAssertions.assert_success(
            load_settings(["-csv", "-column", "2", "-es", "-esurl", "http://es/x/", "in.csv"])
        )

        assert settings.csv is True
        assert settings.column == 2
        assert settings.es is True
        assert settings.es_url == "http://es/x/"

    def test_unset_flags_keep_defaults(self) -> None:
        settings = ResultAssertions.assert_success(load_settings(["certs.pem"]))

        assert settings.csv is False
        assert settings.column == 1
        assert settings.es is False

    def test_no_files_gives_empty_list(self) -> None:
        settings = ResultAssertions.assert_success(load_settings([]))
        assert settings.files == []

    def test_invalid_column_is_configuration_error(self) -> None:
        result = load_settings(["--column", "-1", "certs.csv"])
        ResultAssertions.assert_failure(result, ErrorCode.CONFIGURATION_ERROR)


class TestAdapterSelection:
    def test_pem_source_and_stdout_sink_by_default(self) -> None:
        settings = AppSettings()
        assert isinstance(_create_source(settings), PemBlobSource)
        assert isinstance(_create_sink(settings), StdoutCertificateSink)

    def test_csv_source_and_index_sink_when_requested(self) -> None:
        settings = AppSettings(csv=True, es=True)
        assert isinstance(_create_source(settings), CsvBlobSource)
        sink = _create_sink(settings)
        assert isinstance(sink, HttpIndexSink)
        sink.close()


class TestMainExitStatus:
    def test_no_files_exits_with_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "No files specified" in captured.err
        assert captured.out == ""

    def test_configuration_error_exits_with_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--esurl", "ftp://nowhere", "certs.pem"])

        assert exc_info.value.code == 1
        assert "FATAL" in capsys.readouterr().err

    def test_broken_stdout_on_close_is_reported_as_fatal(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "one.pem"
        path.write_bytes(pem_block(build_certificate()))
        stream = MagicMock()
        stream.flush.side_effect = BrokenPipeError("Broken pipe")
        monkeypatch.setattr(
            "x509tojson.main._create_sink", lambda settings: StdoutCertificateSink(stream=stream)
        )

        with pytest.raises(SystemExit) as exc_info:
            main([str(path)])

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "app.fatal_error" in err
        assert "Failed to close output" in err
        stream.write.assert_called_once()
