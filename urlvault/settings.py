"""Environment-driven settings shared by the web app and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import List, Optional

from dotenv import load_dotenv

from urlvault.errors import ConfigError
from urlvault.extraction.download import DEFAULT_USER_AGENT


DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5002",
    "http://127.0.0.1:5002",
]


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


def _parse_timeout(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigError(f"FETCH_TIMEOUT must be a number of seconds, got {value!r}")
    if timeout <= 0:
        raise ConfigError("FETCH_TIMEOUT must be positive.")
    return timeout


@dataclass
class Settings:
    storage_root: str = field(default_factory=lambda: os.path.join(os.getcwd(), "storage"))
    fetch_timeout: Optional[float] = None
    user_agent: str = DEFAULT_USER_AGENT
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    ratelimit_enabled: bool = True
    rate_limit_default: str = "1000 per day;100 per hour"


def load_settings(storage_root: Optional[str] = None) -> Settings:
    """Load settings from .env / environment; explicit arguments win."""
    load_dotenv()
    origins = os.environ.get("CORS_ORIGINS", "")
    return Settings(
        storage_root=storage_root or os.environ.get("STORAGE_ROOT") or os.path.join(os.getcwd(), "storage"),
        fetch_timeout=_parse_timeout(os.environ.get("FETCH_TIMEOUT")),
        user_agent=os.environ.get("FETCH_USER_AGENT") or DEFAULT_USER_AGENT,
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or list(DEFAULT_CORS_ORIGINS),
        ratelimit_enabled=_parse_bool(os.environ.get("RATELIMIT_ENABLED"), True),
        rate_limit_default=os.environ.get("RATE_LIMIT_DEFAULT") or "1000 per day;100 per hour",
    )
