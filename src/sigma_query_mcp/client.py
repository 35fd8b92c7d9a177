# Sigma Query MCP Server
# File: client.py
# Version: v1
"""High-level client for the Sigma query-run REST API.

Implements the asynchronous query workflow:

- create_query_run() submits SQL and returns the run id
- poll_query_run() waits for the run to succeed or fail
- get_file_metadata() / download_file() resolve and fetch the result file
- execute_query() chains all steps and decodes the CSV into records

Every request opens its own ``httpx.AsyncClient`` and closes it before
returning, so no connection outlives the call that made it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from urllib.parse import quote, urlsplit, urlunsplit

import httpx
from httpx import HTTPStatusError, RequestError

from .auth import ApiKeyAuth
from .config import SigmaConfig
from .decoder import decode_csv
from .errors import (
    ProtocolError,
    QueryTimeoutError,
    RemoteError,
    RemoteQueryError,
    TransportError,
)
from .models import FileMetadata, QueryOutcome, QueryRun, RecordSet, RunStatus

logger = logging.getLogger(__name__)


def _display_url(url: str) -> str:
    """Strip the query string so signed download tokens never reach logs."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


@dataclass
class SigmaClient:
    """Wrapper around the Sigma query-run and file APIs."""

    config: SigmaConfig
    auth: ApiKeyAuth

    # Test seam: an httpx transport (e.g. httpx.MockTransport) used for
    # every request instead of the network.
    transport: Optional[httpx.AsyncBaseTransport] = None

    # Suspension between polls. Must be cancellable.
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    # ------------------------------------------------------------------
    # Basic health
    # ------------------------------------------------------------------

    async def ping(self) -> bool:
        """Lightweight health check: is an API key configured?"""
        return bool(self.config.api_key)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _api_url(self, path: str) -> str:
        return f"{self.config.api_base_url.rstrip('/')}{path}"

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.http_timeout_seconds,
            verify=self.config.verify_tls,
            follow_redirects=True,
            transport=self.transport,
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        action: str,
        data: Optional[Dict[str, Any]] = None,
        accept: str = "application/json",
    ) -> httpx.Response:
        """Send one authenticated request and return the successful response."""
        auth = self.auth.for_url(url)
        shown_url = _display_url(url)

        async with self._http_client() as http_client:
            try:
                response = await http_client.request(
                    method,
                    url,
                    data=data,
                    auth=auth,
                    headers={"Accept": accept},
                )
            except RequestError as exc:
                raise TransportError(
                    f"Error calling Sigma API to {action} at '{shown_url}': {exc}",
                    url=shown_url,
                ) from exc

            try:
                response.raise_for_status()
            except HTTPStatusError as exc:
                raise RemoteError(
                    response.status_code, response.text, url=shown_url
                ) from exc

        return response

    @staticmethod
    def _json_object(response: httpx.Response, action: str) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise ProtocolError(
                f"Response to {action} is not valid JSON: {exc}"
            ) from exc

        if not isinstance(data, dict):
            raise ProtocolError(
                f"Unexpected response to {action}: "
                f"expected JSON object, got {type(data).__name__}."
            )
        return data

    # ------------------------------------------------------------------
    # Query runs
    # ------------------------------------------------------------------

    async def create_query_run(self, sql: str) -> str:
        """Submit ``sql`` and return the id of the new query run.

        The SQL is sent as-is; syntax problems come back from the service
        either as an HTTP error here or as a failed run while polling.
        """
        if not sql or not sql.strip():
            raise ValueError("SQL text must not be empty.")

        action = "create a query run"
        response = await self._request(
            "POST",
            self._api_url("/v1/sigma/query_runs"),
            action=action,
            data={"sql": sql},
        )
        data = self._json_object(response, action)

        run_id = data.get("id")
        if not isinstance(run_id, str) or not run_id:
            raise ProtocolError("Query run response did not contain 'id'.")

        logger.info("Created query run: %s", run_id)
        return run_id

    async def get_query_run(self, run_id: str) -> QueryRun:
        """Fetch the current status snapshot of a query run."""
        action = f"fetch query run '{run_id}'"
        response = await self._request(
            "GET",
            self._api_url(f"/v1/sigma/query_runs/{quote(run_id, safe='')}"),
            action=action,
        )
        return QueryRun.from_payload(self._json_object(response, action), run_id)

    async def _wait_for_run(self, run_id: str) -> Tuple[QueryRun, int]:
        max_attempts = self.config.max_poll_attempts
        interval = self.config.poll_interval_seconds

        # Most recent throttled / 5xx status check, if the run was never seen
        # again after it.
        last_error: Optional[RemoteError] = None

        for attempt in range(1, max_attempts + 1):
            run: Optional[QueryRun] = None
            try:
                run = await self.get_query_run(run_id)
            except RemoteError as exc:
                # Throttling / server hiccups on a status check use up an
                # attempt instead of failing the whole query.
                if not exc.retryable:
                    raise
                logger.warning(
                    "Attempt %d/%d: status check for run %s returned HTTP %d",
                    attempt,
                    max_attempts,
                    run_id,
                    exc.status_code,
                )
                last_error = exc

            if run is not None:
                last_error = None
                logger.info(
                    "Attempt %d/%d: run %s status = %s",
                    attempt,
                    max_attempts,
                    run_id,
                    run.raw_status,
                )

                if run.status is RunStatus.SUCCEEDED:
                    if not run.file_id:
                        raise ProtocolError(
                            f"Query run '{run_id}' succeeded but its result "
                            "has no 'file'."
                        )
                    return run, attempt

                if run.status is RunStatus.FAILED:
                    raise RemoteQueryError(run.error)

                if not run.is_recognized:
                    logger.warning(
                        "Run %s reported unrecognized status %r; "
                        "treating it as still running.",
                        run_id,
                        run.raw_status,
                    )

            if attempt < max_attempts:
                await self.sleep(interval)

        raise QueryTimeoutError(max_attempts) from last_error

    async def poll_query_run(self, run_id: str) -> str:
        """Poll ``run_id`` until it finishes and return its result file id.

        Raises RemoteQueryError as soon as the run is reported failed and
        QueryTimeoutError once ``max_poll_attempts`` polls have all seen a
        non-terminal status.
        """
        run, _ = await self._wait_for_run(run_id)
        return run.file_id  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Result files
    # ------------------------------------------------------------------

    async def get_file_metadata(self, file_id: str) -> FileMetadata:
        """Look up a result file and return its signed download location."""
        action = f"fetch metadata for file '{file_id}'"
        response = await self._request(
            "GET",
            self._api_url(f"/v1/files/{quote(file_id, safe='')}"),
            action=action,
        )
        data = self._json_object(response, action)

        url = data.get("url")
        if not isinstance(url, str) or not url:
            raise ProtocolError(f"File metadata for '{file_id}' did not contain 'url'.")

        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ProtocolError(
                f"File metadata for '{file_id}' has a 'url' that is not an "
                f"absolute http(s) URL: '{_display_url(url)}'."
            )

        size = data.get("size")
        return FileMetadata(
            id=str(data.get("id") or file_id),
            url=url,
            filename=data.get("filename"),
            size=size if isinstance(size, int) else None,
            type=data.get("type"),
            raw=data,
        )

    async def download_file(self, url: str) -> bytes:
        """Fetch the raw bytes behind a signed download URL."""
        logger.info("Downloading from: %s", _display_url(url))
        response = await self._request(
            "GET", url, action="download the result file", accept="text/csv, */*"
        )
        return response.content

    async def download_result(self, file_id: str) -> bytes:
        metadata = await self.get_file_metadata(file_id)
        return await self.download_file(metadata.url)

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    async def run_query(self, sql: str) -> QueryOutcome:
        """Submit, wait, download and decode; return records plus run metadata."""
        run_id = await self.create_query_run(sql)
        run, attempts = await self._wait_for_run(run_id)
        file_id = run.file_id or ""
        logger.info("Query completed, file ID: %s", file_id)

        payload = await self.download_result(file_id)
        table = decode_csv(payload)

        return QueryOutcome(
            run_id=run_id,
            file_id=file_id,
            columns=table.columns,
            records=table.records,
            attempts=attempts,
        )

    async def execute_query(self, sql: str) -> RecordSet:
        """Run ``sql`` end to end and return the decoded records."""
        outcome = await self.run_query(sql)
        return outcome.records
