"""HTTP clients for external services."""
from .registry import RegistryClient, StaticTokenProvider  # noqa: F401
