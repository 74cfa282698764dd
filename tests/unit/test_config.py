"""
Unit tests for AppSettings — defaults, environment overrides, validation.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from x509tojson.config import DEFAULT_ES_URL, AppSettings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run from an empty directory so no stray .env file is picked up."""
    monkeypatch.chdir(tmp_path)
    for name in ("CSV", "COLUMN", "ES", "ES_URL", "HTTP_TIMEOUT_SECONDS", "QUEUE_SIZE", "LOG_LEVEL", "FILES"):
        monkeypatch.delenv(f"X509TOJSON_{name}", raising=False)


class TestDefaults:
    def test_defaults_match_command_line_defaults(self) -> None:
        settings = AppSettings()

        assert settings.files == []
        assert settings.csv is False
        assert settings.column == 1
        assert settings.es is False
        assert settings.es_url == DEFAULT_ES_URL
        assert settings.http_timeout_seconds == 60
        assert settings.queue_size == 1
        assert settings.log_level == "INFO"


class TestOverrides:
    def test_environment_variables_apply(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("X509TOJSON_CSV", "true")
        monkeypatch.setenv("X509TOJSON_COLUMN", "3")
        monkeypatch.setenv("X509TOJSON_ES_URL", "https://search.internal/ct/_doc")

        settings = AppSettings()

        assert settings.csv is True
        assert settings.column == 3
        assert settings.es_url == "https://search.internal/ct/_doc"

    def test_init_kwargs_win_over_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("X509TOJSON_COLUMN", "3")

        assert AppSettings(column=0).column == 0

    def test_dotenv_file_is_read(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("X509TOJSON_ES=true\n")

        assert AppSettings().es is True

    def test_log_level_is_normalized(self) -> None:
        assert AppSettings(log_level=" debug ").log_level == "DEBUG"


class TestValidation:
    def test_negative_column_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AppSettings(column=-1)

    def test_non_http_index_url_rejected(self) -> None:
        with pytest.raises(ValidationError, match="http"):
            AppSettings(es_url="ftp://localhost/ct")

    @pytest.mark.parametrize("field", ["http_timeout_seconds", "queue_size"])
    def test_non_positive_values_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            AppSettings(**{field: 0})
