"""Client configuration.

Environment (.env)
  HUEFY_API_KEY=...
  HUEFY_BASE_URL=...      (optional)
  HUEFY_TIMEOUT=...       (optional, seconds)
  HUEFY_MAX_RETRIES=...   (optional)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_BASE_URL = "https://api.huefy.dev/api/v1/sdk"
LOCAL_BASE_URL = "http://localhost:8080/api/v1/sdk"
DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds
DEFAULT_MULTIPLIER = 2.0

BULK_MODES = ("batch", "individual")


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    multiplier: float = DEFAULT_MULTIPLIER

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("retry delays must be >= 0")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


@dataclass(frozen=True)
class ClientConfig:
    api_key: str = field(repr=False)
    base_url: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    retry: RetryConfig = field(default_factory=RetryConfig)
    local: bool = False
    bulk_mode: str = "batch"
    validate_recipient_syntax: bool = False

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key is required")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.bulk_mode not in BULK_MODES:
            raise ValueError(f"bulk_mode must be one of {BULK_MODES}")
        if self.base_url is None:
            object.__setattr__(
                self, "base_url", LOCAL_BASE_URL if self.local else DEFAULT_BASE_URL
            )
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """Build a config from the process environment (and a .env file, if any)."""
        load_dotenv(find_dotenv(usecwd=True))
        values: dict = {"api_key": os.getenv("HUEFY_API_KEY", "")}
        base_url = os.getenv("HUEFY_BASE_URL")
        if base_url:
            values["base_url"] = base_url
        timeout = os.getenv("HUEFY_TIMEOUT")
        if timeout:
            values["timeout"] = float(timeout)
        max_retries = os.getenv("HUEFY_MAX_RETRIES")
        if max_retries:
            values["retry"] = RetryConfig(max_retries=int(max_retries))
        values.update(overrides)
        return cls(**values)
