# Sigma Query MCP Server
# File: tests/test_sanity.py
# Version: v1

"""Basic sanity tests for the package wiring."""

from sigma_query_mcp import __version__
from sigma_query_mcp.auth import ApiKeyAuth
from sigma_query_mcp.client import SigmaClient
from sigma_query_mcp.config import SigmaConfig


def test_version_is_a_string() -> None:
    assert isinstance(__version__, str)
    assert __version__


def test_config_from_env_minimal() -> None:
    config = SigmaConfig.from_env()
    assert config is not None


def test_client_ping_runs() -> None:
    config = SigmaConfig.from_env()
    client = SigmaClient(config=config, auth=ApiKeyAuth(config=config))

    # ping should always return a boolean
    # even if no API key is configured yet.
    import asyncio

    result = asyncio.run(client.ping())
    assert isinstance(result, bool)
