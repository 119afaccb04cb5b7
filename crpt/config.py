"""Client settings and environment loading utilities."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from crpt.rate_limit import TimeUnit

DEFAULT_API_URL = "https://ismp.crpt.ru/api/v3/lk/documents/create"
DEFAULT_PRODUCT_GROUP = "clothes"


def _load_dotenv(env_path: Path = Path(".env")) -> None:
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}") from None


def _unit_env(name: str, default: TimeUnit) -> TimeUnit:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return TimeUnit.parse(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name}: {exc}") from None


@dataclass(frozen=True)
class Settings:
    """Runtime configuration derived from environment variables."""

    api_url: str = DEFAULT_API_URL
    product_group: str = DEFAULT_PRODUCT_GROUP
    rate_limit_requests: int = 5
    rate_limit_unit: TimeUnit = TimeUnit.SECONDS
    auth_token: str = "token"
    timeout_seconds: int = 30

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_url=os.getenv("CRPT_API_URL") or DEFAULT_API_URL,
            product_group=os.getenv("CRPT_PRODUCT_GROUP") or DEFAULT_PRODUCT_GROUP,
            rate_limit_requests=_int_env("CRPT_RATE_LIMIT_REQUESTS", 5),
            rate_limit_unit=_unit_env("CRPT_RATE_LIMIT_UNIT", TimeUnit.SECONDS),
            auth_token=os.getenv("CRPT_AUTH_TOKEN") or "token",
            timeout_seconds=_int_env("CRPT_TIMEOUT_SECONDS", 30),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings, reading ``.env`` first."""

    _load_dotenv()
    return Settings.from_env()
