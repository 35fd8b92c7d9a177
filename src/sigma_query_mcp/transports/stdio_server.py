# Sigma Query MCP Server
# File: transports/stdio_server.py
# Version: v1

"""STDIO entrypoint for the Sigma Query MCP server.

This is the script behind the ``sigma-query-mcp`` console command.

It:

- configures logging to stderr (stdout carries the MCP protocol),
- creates a FastMCP server,
- registers the Sigma query tools, and
- runs the built-in stdio transport.
"""

from __future__ import annotations

import logging
import sys

from mcp.server.fastmcp import FastMCP

from ..config import SigmaConfig
from ..tools import tasks


def configure_logging(level: str = "INFO") -> None:
    """Send package logs to stderr at ``level``."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root_logger.addHandler(handler)

    # httpx logs every request at INFO; keep it quiet.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main() -> None:
    """Synchronous entrypoint for console_scripts."""
    configure_logging(SigmaConfig.from_env().log_level)

    mcp = FastMCP("sigma-query-mcp")

    tasks.register_tools(mcp)

    # Let FastMCP handle stdio + event loop setup.
    mcp.run()


if __name__ == "__main__":
    main()
