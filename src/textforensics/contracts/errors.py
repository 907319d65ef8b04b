"""
Standard API error model for textforensics.

The analysis endpoint keeps the original ``{"ok": ..., ...}`` envelope on its
success path. Errors raised by the HTTP glue (oversized bodies, wrong methods,
unexpected failures) carry an ``ApiError`` next to ``ok: false`` so clients
get a machine-readable code as well.

Usage:
    error = ApiError.payload_too_large(limit=1_048_576)
    response = {"ok": False, "error": error.message, "detail": error.model_dump()}
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ApiError(BaseModel):
    """Standard API error response format.

    Attributes:
        code: Machine-readable error code (e.g., 'method_not_allowed').
        message: Human-readable error message.
        details: Optional additional context.
    """

    code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["method_not_allowed", "payload_too_large", "internal_error"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None)

    @classmethod
    def method_not_allowed(cls, method: str) -> ApiError:
        return cls(
            code="method_not_allowed",
            message="Use POST JSON",
            details={"method": method},
        )

    @classmethod
    def payload_too_large(cls, limit: int) -> ApiError:
        """Create an error for request bodies above the configured limit."""
        return cls(
            code="payload_too_large",
            message=f"Request body exceeds {limit} bytes",
            details={"limit": limit},
        )

    @classmethod
    def internal_error(
        cls, message: str = "An internal error occurred. Please try again later."
    ) -> ApiError:
        return cls(code="internal_error", message=message)

    def to_envelope(self) -> dict[str, Any]:
        """Wrap the error in the analysis response envelope."""
        return {"ok": False, "error": self.message, "detail": self.model_dump()}
