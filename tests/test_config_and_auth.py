# Sigma Query MCP Server
# File: tests/test_config_and_auth.py
# Version: v1

from __future__ import annotations

import base64
import dataclasses

import httpx
import pytest

from sigma_query_mcp.auth import ApiKeyAuth
from sigma_query_mcp.config import DEFAULT_API_BASE_URL, SigmaConfig
from sigma_query_mcp.errors import ConfigError

_ENV_VARS = [
    "SIGMA_API_KEY",
    "SIGMA_FILES_API_KEY",
    "SIGMA_API_BASE_URL",
    "SIGMA_POLL_INTERVAL_SECONDS",
    "SIGMA_MAX_POLL_ATTEMPTS",
    "SIGMA_HTTP_TIMEOUT_SECONDS",
    "SIGMA_VERIFY_TLS",
    "SIGMA_MOCK_MODE",
    "SIGMA_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def _basic_username(auth) -> str:
    request = next(auth.auth_flow(_dummy_request()))
    header = request.headers["Authorization"]
    return base64.b64decode(header.split(" ", 1)[1]).decode("utf-8")


def _dummy_request() -> httpx.Request:
    return httpx.Request("GET", "https://example.invalid/")


def test_defaults_when_env_is_empty(clean_env) -> None:
    cfg = SigmaConfig.from_env()

    assert cfg.api_key is None
    assert cfg.api_base_url == DEFAULT_API_BASE_URL
    assert cfg.poll_interval_seconds == 2.0
    assert cfg.max_poll_attempts == 30
    assert cfg.max_wait_seconds == 60.0
    assert cfg.verify_tls is True
    assert cfg.mock_mode is False
    assert cfg.log_level == "INFO"


def test_env_values_are_parsed_and_clamped(clean_env) -> None:
    clean_env.setenv("SIGMA_API_KEY", "  sk_test_abc  ")
    clean_env.setenv("SIGMA_API_BASE_URL", "https://sigma.local/")
    clean_env.setenv("SIGMA_POLL_INTERVAL_SECONDS", "0.5")
    clean_env.setenv("SIGMA_MAX_POLL_ATTEMPTS", "0")
    clean_env.setenv("SIGMA_HTTP_TIMEOUT_SECONDS", "not-a-number")
    clean_env.setenv("SIGMA_VERIFY_TLS", "off")
    clean_env.setenv("SIGMA_MOCK_MODE", "yes")
    clean_env.setenv("SIGMA_LOG_LEVEL", "debug")

    cfg = SigmaConfig.from_env()

    assert cfg.api_key == "sk_test_abc"
    assert cfg.api_base_url == "https://sigma.local"
    assert cfg.poll_interval_seconds == 0.5
    assert cfg.max_poll_attempts == 1
    assert cfg.http_timeout_seconds == 30.0
    assert cfg.verify_tls is False
    assert cfg.mock_mode is True
    assert cfg.log_level == "DEBUG"


def test_unknown_log_level_falls_back_to_info(clean_env) -> None:
    clean_env.setenv("SIGMA_LOG_LEVEL", "chatty")
    assert SigmaConfig.from_env().log_level == "INFO"


def test_config_is_immutable() -> None:
    cfg = SigmaConfig(api_key="sk_test")
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.api_key = "other"  # type: ignore[misc]


def test_api_host_uses_main_key_with_empty_password() -> None:
    auth = ApiKeyAuth(SigmaConfig(api_key="sk_main", files_api_key="sk_files"))

    basic = auth.for_url("https://api.stripe.com/v1/sigma/query_runs")
    assert _basic_username(basic) == "sk_main:"


def test_file_host_uses_files_key_when_configured() -> None:
    auth = ApiKeyAuth(SigmaConfig(api_key="sk_main", files_api_key="sk_files"))

    basic = auth.for_url("https://files.stripe.com/v1/files/file_1/contents")
    assert _basic_username(basic) == "sk_files:"


def test_file_host_falls_back_to_main_key() -> None:
    auth = ApiKeyAuth(SigmaConfig(api_key="sk_main"))

    basic = auth.for_url("https://files.stripe.com/v1/files/file_1/contents")
    assert _basic_username(basic) == "sk_main:"


def test_missing_key_raises_config_error() -> None:
    auth = ApiKeyAuth(SigmaConfig(api_key=None))

    with pytest.raises(ConfigError):
        auth.for_url("https://api.stripe.com/v1/sigma/query_runs")
