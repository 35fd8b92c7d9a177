# Sigma Query MCP Server
# File: errors.py
# Version: v1

"""Error taxonomy for the query workflow.

Every failure surfaces as exactly one of these classes so callers can decide
whether re-running the whole query makes sense (see ``retryable``).
"""

from __future__ import annotations

from typing import Any

_BODY_PREVIEW_CHARS = 500


class SigmaError(RuntimeError):
    """Base class for all Sigma client failures."""

    code = "SIGMA_ERROR"
    retryable = False


class ConfigError(SigmaError):
    """Required configuration (e.g. the API key) is missing."""

    code = "CONFIG_ERROR"


class TransportError(SigmaError):
    """Connection, DNS, TLS or timeout failure before a response arrived."""

    code = "TRANSPORT_ERROR"
    retryable = True

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class RemoteError(SigmaError):
    """The service answered with a non-success HTTP status."""

    code = "REMOTE_ERROR"

    def __init__(self, status_code: int, body: str, url: str | None = None) -> None:
        self.status_code = int(status_code)
        self.body = body or ""
        self.url = url
        where = f" from '{url}'" if url else ""
        super().__init__(
            f"HTTP {self.status_code}{where}. "
            f"Response snippet: {self.body[:_BODY_PREVIEW_CHARS]}"
        )

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status_code == 429 or self.status_code >= 500


class ProtocolError(SigmaError):
    """A response did not have the expected shape (API contract change)."""

    code = "PROTOCOL_ERROR"


class RemoteQueryError(SigmaError):
    """The query run itself failed server-side."""

    code = "QUERY_FAILED"

    def __init__(self, detail: Any) -> None:
        self.detail = detail
        super().__init__(f"Query failed: {_describe_detail(detail)}")


class QueryTimeoutError(SigmaError):
    """The run did not reach a terminal state within the poll budget."""

    code = "QUERY_TIMEOUT"
    retryable = True

    def __init__(self, attempts: int) -> None:
        self.attempts = int(attempts)
        super().__init__(
            f"Query did not complete within {self.attempts} attempts"
        )


def _describe_detail(detail: Any) -> str:
    # Stripe-style error objects carry a human message.
    if isinstance(detail, dict):
        message = detail.get("message")
        if isinstance(message, str) and message:
            return message
    return str(detail)
