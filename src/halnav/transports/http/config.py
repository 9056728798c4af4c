from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv

from .client import HttpLinkResolver, RetryConfig


def _get_bool_env(name: str, default: bool) -> bool:
    """Parse a boolean environment variable with a safe default."""
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _read_number_env(name: str, default: float, cast=float) -> Any:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip().replace("_", ""))
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class HttpResolverConfig:
    """Settings for HttpLinkResolver, usually read from HALNAV_* variables."""

    base_url: str = ""
    api_key: str = ""
    api_user: str = "apikey"
    timeout_seconds: float = 10.0
    max_retries: int = 2
    backoff_seconds: float = 0.3
    retry_on_429: bool = False
    follow_redirects: bool = True

    @classmethod
    def from_env(cls, *, use_dotenv: bool = True) -> "HttpResolverConfig":
        if use_dotenv:
            load_dotenv()

        timeout_seconds = _read_number_env("HALNAV_TIMEOUT_SECONDS", cls.timeout_seconds)
        max_retries = _read_number_env("HALNAV_MAX_RETRIES", cls.max_retries, int)
        backoff_seconds = _read_number_env("HALNAV_BACKOFF_SECONDS", cls.backoff_seconds)

        if timeout_seconds <= 0:
            raise ValueError("HALNAV_TIMEOUT_SECONDS must be greater than zero")
        if max_retries < 0:
            raise ValueError("HALNAV_MAX_RETRIES must not be negative")
        if backoff_seconds < 0:
            raise ValueError("HALNAV_BACKOFF_SECONDS must not be negative")

        return cls(
            base_url=os.getenv("HALNAV_BASE_URL", "").strip(),
            api_key=os.getenv("HALNAV_API_KEY", "").strip(),
            api_user=os.getenv("HALNAV_API_USER", cls.api_user).strip() or cls.api_user,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            backoff_seconds=backoff_seconds,
            retry_on_429=_get_bool_env("HALNAV_RETRY_ON_429", cls.retry_on_429),
            follow_redirects=_get_bool_env(
                "HALNAV_FOLLOW_REDIRECTS", cls.follow_redirects
            ),
        )

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_retries=self.max_retries,
            backoff_base_seconds=self.backoff_seconds,
            retry_on_429=self.retry_on_429,
        )

    def create_resolver(self, **kwargs: Any) -> HttpLinkResolver:
        return HttpLinkResolver(
            base_url=self.base_url,
            api_key=self.api_key or None,
            api_user=self.api_user,
            timeout_seconds=self.timeout_seconds,
            follow_redirects=self.follow_redirects,
            retry=self.retry_config(),
            **kwargs,
        )


def create_resolver_from_env(**kwargs: Any) -> HttpLinkResolver:
    """Create an HttpLinkResolver from HALNAV_* environment variables."""
    return HttpResolverConfig.from_env().create_resolver(**kwargs)


__all__ = ["HttpResolverConfig", "create_resolver_from_env"]
