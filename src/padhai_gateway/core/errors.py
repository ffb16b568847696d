"""
Gateway error types.

Only InvalidRequestError and ConfigurationError are allowed to reach the
HTTP boundary. Everything raised by an adapter is folded into an attempt
outcome by the fallback executor.
"""

from typing import Optional


class GatewayError(Exception):
    """Base exception for gateway errors."""

    def __init__(self, message: str, provider: str = None):
        self.message = message
        self.provider = provider
        super().__init__(message)


class InvalidRequestError(GatewayError):
    """Raised when the inbound request is malformed."""
    pass


class ConfigurationError(GatewayError):
    """Raised at startup when no provider credential is usable."""
    pass


class ModeUnsupportedError(GatewayError):
    """Raised when the declared mode is outside the supported set."""

    def __init__(self, mode: str):
        super().__init__(f"Unsupported mode: {mode!r}")
        self.mode = mode


class UpstreamError(GatewayError):
    """Raised when a provider answers with a hard failure."""

    def __init__(self, message: str, provider: str = None, status_code: Optional[int] = None):
        super().__init__(message, provider)
        self.status_code = status_code


class UpstreamTransientError(UpstreamError):
    """Raised when a provider is warming up or rate limiting."""

    def __init__(
        self,
        message: str,
        provider: str = None,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, provider, status_code)
        self.retry_after = retry_after


class ExtractionFailedError(UpstreamError):
    """Raised when a success body does not contain a usable answer."""
    pass


class AttemptTimeoutError(UpstreamError):
    """Raised when a single candidate attempt exceeds its time box."""
    pass
