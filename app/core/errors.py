"""
core/errors.py
Relay failure taxonomy.

Every error knows the HTTP status it maps to and how to render itself as the
JSON error envelope. Errors raised before the first streamed byte become real
HTTP responses; later ones can only be appended to the stream.
"""

from __future__ import annotations

from typing import Any, Optional

from app.models.response import UpstreamErrorDetail


class RelayError(Exception):
    """Base relay error."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def detail(self) -> Any:
        return self.message

    def to_envelope(self) -> dict[str, Any]:
        return {"error": self.detail(), "status_code": self.status_code}


class ConfigError(RelayError):
    """API key or assistant id missing. Raised before any upstream I/O."""


class RequestShapeError(RelayError):
    """Inbound payload does not match RelayRequest."""

    status_code = 400


class UpstreamError(RelayError):
    """Upstream answered with a non-success status, or could not be reached."""

    def __init__(self, status_code: int, detail: UpstreamErrorDetail):
        super().__init__(detail.message or f"Upstream returned HTTP {status_code}", status_code)
        self.upstream = detail

    def detail(self) -> Any:
        return self.upstream.model_dump()


class StreamDecodeError(RelayError):
    """A required field could not be decoded from an upstream event."""


class StreamReadError(RelayError):
    """Transport failure while reading the upstream body."""
