# Sigma Query MCP Server
# File: tools/tasks.py
# Version: v1
#
# NOTE: This module is the single place where we define the logic that is
# exposed as MCP tools. The stdio transport simply calls
# `register_tools(server)` to wire these up.

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..auth import ApiKeyAuth
from ..client import SigmaClient
from ..config import SigmaConfig
from ..decoder import decode_csv
from ..errors import SigmaError
from ..models import QueryOutcome


# ---------------------------------------------------------------------------
# Internal helpers (error shape, mock client)
# ---------------------------------------------------------------------------


def _make_error(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Small, LLM-friendly error shape used by tools and diagnostics."""
    err: Dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return err


def _error_details(exc: SigmaError) -> Dict[str, Any]:
    details: Dict[str, Any] = {"retryable": bool(exc.retryable)}
    for attr in ("status_code", "attempts", "detail", "url"):
        value = getattr(exc, attr, None)
        if value is not None:
            details[attr] = value
    return details


_MOCK_RESULT_CSV = (
    "month_end,total_mrr_in_usd\n"
    "2025-10-31,1050211.40\n"
    "2025-11-30,1087345.12\n"
    "2025-12-31,1110902.02\n"
)


class MockSigmaClient:
    """Small in-memory stand-in for SigmaClient.

    Activated when SIGMA_MOCK_MODE is truthy. Every query "succeeds" on the
    first poll and returns the same small MRR table, so tools work without
    a Stripe account.
    """

    def __init__(self) -> None:
        self._run_count = 0

    async def ping(self) -> bool:
        return True

    async def run_query(self, sql: str) -> QueryOutcome:
        if not sql or not sql.strip():
            raise ValueError("SQL text must not be empty.")

        self._run_count += 1
        table = decode_csv(_MOCK_RESULT_CSV)
        return QueryOutcome(
            run_id=f"sqr_mock_{self._run_count}",
            file_id=f"file_mock_{self._run_count}",
            columns=table.columns,
            records=table.records,
            attempts=1,
        )


def _make_client(cfg: Optional[SigmaConfig] = None) -> SigmaClient:
    """Create a SigmaClient from environment variables.

    If SIGMA_MOCK_MODE is truthy, a lightweight in-process mock client
    is returned instead of a real HTTP client.

    Note: Callers should prefer invoking this with *no arguments* to keep
    unit tests monkeypatch-friendly (tests often replace _make_client with
    a no-arg lambda).
    """
    cfg = cfg or SigmaConfig.from_env()

    if cfg.mock_mode:
        return MockSigmaClient()  # type: ignore[return-value]

    return SigmaClient(config=cfg, auth=ApiKeyAuth(config=cfg))


# ---------------------------------------------------------------------------
# Core async tasks (library-style)
# ---------------------------------------------------------------------------


async def ping() -> Dict[str, Any]:
    client = _make_client()
    ok = await client.ping()
    return {"ok": bool(ok)}


async def execute_query(sql: str) -> Dict[str, Any]:
    """Run a Sigma SQL query and return its rows as column -> string mappings.

    Failures are returned as ``{"ok": False, "error": {...}}`` rather than
    raised; ``error.details.retryable`` tells the caller whether running the
    same query again could help.
    """
    started = time.time()

    if not sql or not sql.strip():
        return {
            "ok": False,
            "error": _make_error("INVALID_ARGUMENT", "SQL text must not be empty."),
        }

    client = _make_client()
    try:
        outcome = await client.run_query(sql)
    except SigmaError as exc:
        return {
            "ok": False,
            "error": _make_error(exc.code, str(exc), _error_details(exc)),
            "meta": {"elapsed_ms": int((time.time() - started) * 1000)},
        }

    return {
        "ok": True,
        "columns": outcome.columns,
        "rows": outcome.records,
        "meta": {
            "run_id": outcome.run_id,
            "file_id": outcome.file_id,
            "row_count": outcome.row_count,
            "attempts": outcome.attempts,
            "elapsed_ms": int((time.time() - started) * 1000),
        },
    }


# ---------------------------------------------------------------------------
# Diagnostics & connection info
# ---------------------------------------------------------------------------


def _collect_connection_info() -> Dict[str, Any]:
    """Redacted snapshot of API configuration from env."""
    cfg = SigmaConfig.from_env()

    host = None
    if cfg.api_base_url:
        try:
            host = urlparse(cfg.api_base_url).hostname or cfg.api_base_url
        except ValueError:
            host = cfg.api_base_url

    return {
        "api_base_url": cfg.api_base_url,
        "host": host,
        "mock_mode": bool(cfg.mock_mode),
        "verify_tls": bool(cfg.verify_tls),
        "credentials": {
            "api_key_configured": bool(cfg.api_key),
            "files_api_key_configured": bool(cfg.files_api_key),
        },
        "polling": {
            "interval_seconds": cfg.poll_interval_seconds,
            "max_attempts": cfg.max_poll_attempts,
            "max_wait_seconds": cfg.max_wait_seconds,
        },
        "http_timeout_seconds": cfg.http_timeout_seconds,
    }


async def get_connection_info() -> Dict[str, Any]:
    return _collect_connection_info()


async def diagnostics() -> Dict[str, Any]:
    started = time.time()
    config_info = _collect_connection_info()

    checks: List[Dict[str, Any]] = []
    overall_ok = True

    # Client init
    t0 = time.time()
    try:
        client = _make_client()
        checks.append(
            {"name": "client_init", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)}
        )
    except Exception as exc:  # pragma: no cover
        overall_ok = False
        checks.append(
            {
                "name": "client_init",
                "ok": False,
                "error": _make_error("CONFIG_ERROR", str(exc)),
                "elapsed_ms": int((time.time() - t0) * 1000),
            }
        )
        return {
            "ok": False,
            "mock_mode": config_info["mock_mode"],
            "config": config_info,
            "checks": checks,
            "meta": {"elapsed_ms": int((time.time() - started) * 1000)},
        }

    # Credentials
    t0 = time.time()
    ok_ping = await client.ping()
    if ok_ping:
        checks.append({"name": "credentials", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)})
    else:
        overall_ok = False
        checks.append(
            {
                "name": "credentials",
                "ok": False,
                "error": _make_error("CONFIG_ERROR", "SIGMA_API_KEY is not set."),
                "elapsed_ms": int((time.time() - t0) * 1000),
            }
        )

    return {
        "ok": overall_ok,
        "mock_mode": config_info["mock_mode"],
        "config": config_info,
        "checks": checks,
        "meta": {"elapsed_ms": int((time.time() - started) * 1000)},
    }


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance."""
    if server is None or not hasattr(server, "tool"):
        raise ValueError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(
        name="sigma_ping",
        description="Check that the Sigma Query MCP server is running and has an API key configured.",
    )
    async def mcp_ping() -> Dict[str, Any]:
        return await ping()

    @server.tool(
        name="sigma_execute_query",
        description="Run a Sigma SQL query, wait for it to finish and return the result rows.",
    )
    async def mcp_execute_query(sql: str) -> Dict[str, Any]:
        return await execute_query(sql=sql)

    @server.tool(
        name="sigma_get_connection_info",
        description="Return redacted Sigma API configuration (no secrets).",
    )
    async def mcp_get_connection_info() -> Dict[str, Any]:
        return await get_connection_info()

    @server.tool(
        name="sigma_diagnostics",
        description="Run basic health checks against the Sigma Query MCP server configuration.",
    )
    async def mcp_diagnostics() -> Dict[str, Any]:
        return await diagnostics()
