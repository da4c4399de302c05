"""
Exception taxonomy for wrapkit.

Every error raised by the interception pipeline itself derives from
WrapkitError. Errors raised by the wrapped client pass through untouched.
"""

from __future__ import annotations


class WrapkitError(Exception):
    """Base exception for wrapkit errors."""

    def __init__(self, message: str, method: str | None = None):
        super().__init__(message)
        self.method = method


class ConfigurationError(WrapkitError):
    """Raised at wrap time when the configuration is contradictory."""


class AccessDeniedError(WrapkitError):
    """Raised when a method path is blocked or not allowlisted."""

    def __init__(self, method: str, reason: str):
        super().__init__(reason, method)
        self.reason = reason


class QueueFullError(WrapkitError):
    """Raised when a request is submitted to a full queue."""

    def __init__(self, method: str | None = None):
        super().__init__("Queue is full", method)


class QueueClearedError(WrapkitError):
    """Delivered to queued requests dropped by clear()."""

    def __init__(self, method: str | None = None):
        super().__init__("Queue cleared", method)


class RequestTimeoutError(WrapkitError, TimeoutError):
    """Raised when a request exceeds its timeout."""

    def __init__(self, method: str, timeout_ms: float):
        super().__init__(
            f'Request timed out: "{method}" exceeded {timeout_ms:g}ms', method
        )
        self.timeout_ms = timeout_ms
