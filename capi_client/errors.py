"""Client error types for CAPI interactions."""

from __future__ import annotations


class CapiClientError(Exception):
    """Base error for CAPI client failures."""


class CapiInvalidMethod(CapiClientError):
    """HTTP method is not one of the allowed methods."""


class CapiTransportError(CapiClientError):
    """Network connection to the API failed."""


class CapiTimeout(CapiTransportError):
    """Timeout while communicating with the API."""


class CapiInvalidBody(CapiClientError):
    """Response body is not valid text or JSON."""


class CapiHttpError(CapiClientError):
    """HTTP response error from the API."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


class CapiAuthRequired(CapiHttpError):
    """Login answered without a token."""

    def __init__(self, message: str) -> None:
        super().__init__(401, message)


class CapiRetryExhausted(CapiClientError):
    """A bounded retry ran out of attempts."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(f"Giving up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class CapiRegistrationFailed(CapiRetryExhausted):
    """Watcher registration kept failing after credential regeneration."""


class CapiAuthRetryExhausted(CapiRetryExhausted):
    """Request kept being rejected as unauthorized after a fresh login."""


class CapiInvalidLength(CapiClientError):
    """Requested random string length is not positive."""


class ConfigValidationError(CapiClientError, ValueError):
    """Configuration does not match the expected schema."""


class CapiSignalValidationError(ConfigValidationError):
    """Signal properties or source do not match the signal schema."""
