"""
Failure description — what travels on the failure track of a Result.

An ErrorCode classifies the failure; FailureDescription carries the code,
a human-readable message, the originating exception (if any) and the
moment the failure was recorded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique


@unique
class ErrorCode(Enum):
    """Classification of failures produced by adapters and pipelines."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input artifact is not in the expected shape (missing file, bad CSV, bad base64)."""

    DECODE_ERROR = "DECODE_ERROR"
    """A single record could not be decoded; callers may skip it and go on."""

    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Internal failure such as serialization or a broken output stream."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Settings could not be loaded or validated."""

    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """A remote service could not be reached (connection, DNS, timeout)."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Anything not covered above."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure record.

    >>> desc = FailureDescription(ErrorCode.DECODE_ERROR, "truncated DER")
    >>> desc.code
    <ErrorCode.DECODE_ERROR: 'DECODE_ERROR'>
    """

    code: ErrorCode
    message: str
    exception: BaseException | None = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def detail(self) -> str:
        """Message followed by the underlying exception text, when there is one."""
        if self.exception is None:
            return self.message
        return f"{self.message}: {self.exception}"

    def __str__(self) -> str:
        return f"{self.code.value}: {self.detail()}"
