"""Exception hierarchy for the clinical codes search tool.

Every error raised by the core derives from CodesServerError so transports can
catch one type and turn it into their own error shape.
"""

from typing import Optional


class CodesServerError(Exception):
    """Base exception for all search tool errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(CodesServerError):
    """Bad or missing caller input."""


class ToolNotFoundError(CodesServerError):
    """The requested tool name is not registered."""


class UpstreamError(CodesServerError):
    """Base for failures reported by the Clinical Tables API."""


class UpstreamHttpError(UpstreamError):
    """Non-2xx response from the Clinical Tables API."""

    def __init__(self, status_code: int, status_text: Optional[str] = None) -> None:
        self.status_code = status_code
        self.status_text = status_text or ""
        super().__init__(f"API request failed: {status_code} {self.status_text}".rstrip())


class UpstreamFormatError(UpstreamError):
    """Response body does not have the expected array shape."""
