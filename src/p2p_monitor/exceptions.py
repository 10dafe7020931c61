"""Custom exceptions for the P2P quote monitor.

Every error raised by the sampling core lives here so the quote source,
the persistence gateway and the scheduler can share them without
circular imports.
"""

from enum import Enum


class MonitorError(Exception):
    """Base exception for all monitor errors."""


class FailureKind(str, Enum):
    """Why a quote source call failed."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"


class AdapterFailure(MonitorError):
    """Raised when the quote source cannot deliver one side of the order book.

    A single failure per call; the caller decides whether to try again
    on the next tick.
    """

    def __init__(self, kind: FailureKind, message: str = "") -> None:
        self.kind = kind
        super().__init__(message or kind.value)


class InvalidConfiguration(MonitorError):
    """Raised when sampling is started with an unusable configuration."""


class PersistenceFailure(MonitorError):
    """Raised when the sample snapshot cannot be loaded or saved."""
