"""
Configuration — typed, validated settings for one conversion run.

Uses pydantic-settings so every option can come from, in priority order:
  1. Explicit overrides (the command-line flags, passed as init kwargs)
  2. Environment variables prefixed with X509TOJSON_ (e.g. X509TOJSON_ES_URL)
  3. A .env file in the working directory
  4. Defaults below

AppSettings is built once in main() and handed to the composition root;
nothing reads configuration from module-level state.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ES_URL = "http://localhost:9200/ct/certificates/"


class AppSettings(BaseSettings):
    """
    Root settings.

    `files` is normally supplied by the positional command-line arguments;
    an empty list is rejected by main() before anything is read.
    """

    model_config = SettingsConfigDict(
        env_prefix="X509TOJSON_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    files: list[Path] = Field(default_factory=list, description="Input files, processed in order")
    csv: bool = Field(default=False, description="Input files are CSV rather than PEM")
    column: int = Field(default=1, ge=0, description="Zero-based CSV column holding base64 DER")
    es: bool = Field(default=False, description="POST to the search index instead of stdout")
    es_url: str = Field(default=DEFAULT_ES_URL, description="Search index POST target")
    http_timeout_seconds: float = Field(default=60, gt=0)
    queue_size: int = Field(default=1, ge=1, description="Blobs buffered between reader and converter")
    log_level: str = Field(default="INFO")

    @field_validator("es_url")
    @classmethod
    def validate_es_url(cls, value: str) -> str:
        """Only plain HTTP(S) endpoints make sense for the index sink."""
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"Index URL must start with http:// or https://, got {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()
