"""Error kinds raised by the relay."""

from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base exception carrying the HTTP status used when it reaches a handler."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(RelayError):
    """Inbound request is missing a message or is not valid JSON."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status_code=400, details=details)


class ConfigurationError(RelayError):
    """Server is not configured to call the upstream API."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status_code=500, details=details)


class UpstreamTransportError(RelayError):
    """Network failure talking to the upstream API (connect, DNS, reset, timeout)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status_code=502, details=details)


class UpstreamProtocolError(RelayError):
    """Upstream answered with a non-200 status or an unusable body."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status_code=502, details=details)


class FrameParseError(RelayError):
    """A single SSE data line could not be decoded. Never leaves the decoder."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status_code=502, details=details)
