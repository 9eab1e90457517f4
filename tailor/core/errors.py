"""Failure taxonomy for the vision request pipeline.

Every failure surfaced by the orchestrator is a ``VisionError`` carrying a
structured ``kind`` and a ``retryable`` flag. Callers use ``retryable`` to
decide whether to offer the user another attempt; the retry executor uses
``kind``/``status`` to decide whether to try again on its own.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    CONFIGURATION_MISSING = "configuration_missing"
    NO_USABLE_IMAGE = "no_usable_image"
    NETWORK = "network"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    MALFORMED_OUTPUT = "malformed_output"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.RATE_LIMITED})


class VisionError(Exception):
    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


class ConfigurationMissingError(VisionError):
    kind = ErrorKind.CONFIGURATION_MISSING


class NoUsableImageError(VisionError):
    kind = ErrorKind.NO_USABLE_IMAGE


class MalformedModelOutputError(VisionError):
    kind = ErrorKind.MALFORMED_OUTPUT


class TransportError(VisionError):
    """Failure reported by the model transport.

    The kind is assigned where the SDK exception is caught, so nothing
    downstream needs to inspect message text.
    """

    def __init__(self, message: str, *, kind: ErrorKind, status: Optional[int] = None):
        super().__init__(message, status=status)
        self.kind = kind


class RateLimitExceededError(VisionError):
    """Local limiter rejected the call before it reached the network."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str, *, retry_after_s: float):
        super().__init__(message, status=429)
        self.retry_after_s = retry_after_s
