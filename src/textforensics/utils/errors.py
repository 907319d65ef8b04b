"""Structured error codes and error handling for textforensics.

The detection core never raises for conditions derived from the analyzed text:
malformed payload candidates are dropped and absent capabilities degrade a
single check. The errors below cover the surfaces around the core
(configuration loading, reading input files).

Error codes follow the pattern: E{category}{number}
- E1xx: Input errors
- E8xx: Configuration errors

Example:
    >>> from textforensics.utils.errors import ErrorCode, TextForensicsError
    >>> raise TextForensicsError(ErrorCode.E801_INVALID_CONFIG_FILE, "Not a mapping")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes."""

    # E1xx: Input errors
    E110_INPUT_UNREADABLE = "E110"

    # E8xx: Configuration errors
    E800_CONFIG_ERROR = "E800"
    E801_INVALID_CONFIG_FILE = "E801"
    E802_MISSING_REQUIRED_CONFIG = "E802"
    E803_CONFIG_VALIDATION_FAILED = "E803"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.E110_INPUT_UNREADABLE: "Input could not be read as UTF-8 text",
    ErrorCode.E800_CONFIG_ERROR: "Configuration error",
    ErrorCode.E801_INVALID_CONFIG_FILE: "Invalid configuration file format",
    ErrorCode.E802_MISSING_REQUIRED_CONFIG: "Required configuration file missing",
    ErrorCode.E803_CONFIG_VALIDATION_FAILED: "Configuration validation failed",
}


@dataclass
class ErrorDetails:
    """Structured error details for reports."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error_code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class TextForensicsError(Exception):
    """Base exception with a structured error code.

    Example:
        >>> try:
        ...     raise TextForensicsError(
        ...         ErrorCode.E803_CONFIG_VALIDATION_FAILED,
        ...         details={"field": "limits.max_payload_findings"},
        ...     )
        ... except TextForensicsError as e:
        ...     print(e.error_details.to_dict())
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Unknown error")
        self.error_details = ErrorDetails(code=code, message=self.message, details=details or {})
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class ConfigurationError(TextForensicsError):
    """Raised when a configuration file is missing, malformed or invalid."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        code: ErrorCode = ErrorCode.E800_CONFIG_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(details or {})
        if path is not None:
            merged["path"] = path
        super().__init__(code, message, merged)
        self.path = path


class InputError(TextForensicsError):
    """Raised by the outer surfaces when the input cannot be turned into text."""

    def __init__(self, message: str | None = None, **details: Any) -> None:
        super().__init__(ErrorCode.E110_INPUT_UNREADABLE, message, details)


__all__ = [
    "ERROR_MESSAGES",
    "ConfigurationError",
    "ErrorCode",
    "ErrorDetails",
    "InputError",
    "TextForensicsError",
]
