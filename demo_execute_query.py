# demo_execute_query.py
# Version: v1

r"""
Demo: call the MCP task `execute_query` to run a Sigma SQL query and print
the decoded rows.

Usage (bash):

  export SIGMA_API_KEY=sk_test_...
  python demo_execute_query.py

  # Custom SQL, without touching Stripe:
  export SIGMA_MOCK_MODE=1
  export SIGMA_TEST_SQL="SELECT id, amount FROM charges LIMIT 5"
  python demo_execute_query.py
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, List

from sigma_query_mcp.tools.tasks import execute_query

SQL = os.environ.get("SIGMA_TEST_SQL", "SELECT id, amount, currency FROM charges LIMIT 10")


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    print("Calling MCP task: execute_query()")
    print(f"SQL: {SQL}")

    result: Dict[str, Any] = await execute_query(SQL)

    if not result.get("ok"):
        print("\nQuery failed:", result.get("error"))
        return

    columns: List[str] = result.get("columns", []) or []
    rows: List[Dict[str, str]] = result.get("rows", []) or []

    print("\nColumns:", columns)
    print("Rows returned:", len(rows))
    print("Meta:", result.get("meta"))

    for i, row in enumerate(rows[:10], start=1):
        print(f"  Row {i}:", row)


if __name__ == "__main__":
    asyncio.run(main())
