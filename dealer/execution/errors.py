"""Hard failures of the execution boundary.

Both abort a call before anything is sent to the exchange. Network and
exchange-side failures are not exceptions; they come back as OrderResult data.
"""

from __future__ import annotations


class ExecutionError(Exception):
    """Base exception for execution boundary errors."""


class NotReadyError(ExecutionError):
    """No signing capability is loaded."""

    def __init__(self, message: str = "No signing capability loaded. Cannot sign without a capability."):
        super().__init__(message)


class SigningError(ExecutionError):
    """The signing step failed; no signature was produced."""


class InvalidOrderError(ExecutionError, ValueError):
    """The request cannot be turned into an exchange action; nothing was signed."""
