"""
Module: errors.py
Description: Exception taxonomy for reconciliation runs.

Every failure that aborts a run derives from RedeliveryError so entry
points can report it uniformly.
"""

from typing import Optional


class RedeliveryError(Exception):
    """Base class for errors that abort a reconciliation run."""


class ConfigurationError(RedeliveryError):
    """Raised when a required input is missing or invalid."""


class TransportError(RedeliveryError):
    """
    Raised when a remote call fails.

    Attributes:
        status_code: HTTP status of the failed response, if there was one
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(TransportError):
    """Raised when the remote resource does not exist (HTTP 404)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)
