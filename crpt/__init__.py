"""Rate-limited client for the goods registry document API."""

from .config import Settings, get_settings
from .errors import AcquireCancelled, RegistryError, RegistryStatusError, RegistryTransportError
from .logging_config import configure_logging
from .rate_limit import SlidingWindowRateLimiter, TimeUnit

__all__ = [
    "AcquireCancelled",
    "RegistryError",
    "RegistryStatusError",
    "RegistryTransportError",
    "Settings",
    "SlidingWindowRateLimiter",
    "TimeUnit",
    "configure_logging",
    "get_settings",
]
