"""Exceptions raised by the registry client and its rate limiter."""
from __future__ import annotations


class AcquireCancelled(Exception):
    """Raised when a caller waiting for a rate limit slot is cancelled."""


class RegistryError(RuntimeError):
    """Base class for failed document submissions."""


class RegistryTransportError(RegistryError):
    """Raised when the request could not be sent or no response arrived."""


class RegistryStatusError(RegistryError):
    """Raised when the registry answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Document creation failed ({status_code}). Response: {body[:200]}")
