# Sigma Query MCP Server
# File: config.py
# Version: v1

"""Configuration loading for the Sigma Query MCP Server."""

from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_API_BASE_URL = "https://api.stripe.com"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int_env(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an int environment variable with clamping and safe fallback."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = int(default)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


def _parse_float_env(
    name: str,
    default: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Float counterpart of _parse_int_env."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = float(default)
    else:
        try:
            value = float(str(raw).strip())
        except ValueError:
            value = float(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


def _clean_str_env(name: str) -> str | None:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    return val.strip()


@dataclass(frozen=True)
class SigmaConfig:
    """Configuration values required to talk to the Sigma query API.

    Instances are immutable and handed to SigmaClient at construction time.
    The poll budget (interval x attempts) is the hard upper bound on how long
    a single query may wait for its run to finish.
    """

    api_key: str | None
    api_base_url: str = DEFAULT_API_BASE_URL

    # Credential for the artifact download host. Falls back to api_key.
    files_api_key: str | None = None

    poll_interval_seconds: float = 2.0
    max_poll_attempts: int = 30
    http_timeout_seconds: float = 30.0

    verify_tls: bool = True
    mock_mode: bool = False
    log_level: str = "INFO"

    @property
    def max_wait_seconds(self) -> float:
        return self.poll_interval_seconds * self.max_poll_attempts

    @classmethod
    def from_env(cls) -> "SigmaConfig":
        """Create configuration from environment variables."""
        api_key = _clean_str_env("SIGMA_API_KEY")
        files_api_key = _clean_str_env("SIGMA_FILES_API_KEY")
        api_base_url = _clean_str_env("SIGMA_API_BASE_URL") or DEFAULT_API_BASE_URL

        # Poll policy
        poll_interval_seconds = _parse_float_env(
            "SIGMA_POLL_INTERVAL_SECONDS", default=2.0, min_value=0.0, max_value=300.0
        )
        max_poll_attempts = _parse_int_env(
            "SIGMA_MAX_POLL_ATTEMPTS", default=30, min_value=1, max_value=10000
        )
        http_timeout_seconds = _parse_float_env(
            "SIGMA_HTTP_TIMEOUT_SECONDS", default=30.0, min_value=1.0, max_value=600.0
        )

        verify_tls = _parse_bool_env("SIGMA_VERIFY_TLS", default=True)
        mock_mode = _parse_bool_env("SIGMA_MOCK_MODE", default=False)
        log_level = (_clean_str_env("SIGMA_LOG_LEVEL") or "INFO").upper()
        if log_level not in _LOG_LEVELS:
            log_level = "INFO"

        return cls(
            api_key=api_key,
            api_base_url=api_base_url.rstrip("/"),
            files_api_key=files_api_key,
            poll_interval_seconds=poll_interval_seconds,
            max_poll_attempts=max_poll_attempts,
            http_timeout_seconds=http_timeout_seconds,
            verify_tls=verify_tls,
            mock_mode=mock_mode,
            log_level=log_level,
        )
