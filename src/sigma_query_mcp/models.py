# Sigma Query MCP Server
# File: models.py
# Version: v1

"""Domain models used by the Sigma Query MCP server."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Decoded CSV result: one column-name -> cell mapping per data row.
RecordSet = List[Dict[str, str]]


class RunStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @classmethod
    def from_wire(cls, value: Any) -> "RunStatus":
        """Map a wire status to a RunStatus.

        Only ``succeeded`` and ``failed`` are terminal; anything else
        (``running``, ``pending``, or a value we do not know yet) keeps the
        run in PENDING.
        """
        if value == cls.SUCCEEDED.value:
            return cls.SUCCEEDED
        if value == cls.FAILED.value:
            return cls.FAILED
        return cls.PENDING


KNOWN_WIRE_STATUSES = frozenset({"pending", "running", "succeeded", "failed"})


@dataclass
class QueryRun:
    """Snapshot of a Sigma query run as returned by the API."""

    id: str
    status: RunStatus
    raw_status: Optional[str] = None

    # Present only when status is FAILED; kept verbatim from the server.
    error: Any = None

    # Artifact reference; present only when status is SUCCEEDED.
    file_id: Optional[str] = None

    # Raw JSON payload from the API, for debugging / advanced use.
    raw: Optional[Dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not RunStatus.PENDING

    @property
    def is_recognized(self) -> bool:
        return self.raw_status in KNOWN_WIRE_STATUSES

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], run_id: str) -> "QueryRun":
        raw_status = payload.get("status")
        status = RunStatus.from_wire(raw_status)

        file_id: Optional[str] = None
        result = payload.get("result")
        if isinstance(result, dict):
            file_ref = result.get("file")
            # Either a bare file id or an expanded file object.
            if isinstance(file_ref, dict):
                file_ref = file_ref.get("id")
            if isinstance(file_ref, str) and file_ref:
                file_id = file_ref

        return cls(
            id=str(payload.get("id") or run_id),
            status=status,
            raw_status=None if raw_status is None else str(raw_status),
            error=payload.get("error") if status is RunStatus.FAILED else None,
            file_id=file_id,
            raw=payload,
        )


@dataclass
class FileMetadata:
    """Metadata for a result file, including its signed download URL."""

    id: str
    url: str
    filename: Optional[str] = None
    size: Optional[int] = None
    type: Optional[str] = None

    raw: Optional[Dict[str, Any]] = None


@dataclass
class QueryOutcome:
    """Result of one full submit / poll / download / decode pipeline."""

    run_id: str
    file_id: str
    columns: List[str]
    records: RecordSet = field(default_factory=list)

    # Number of status polls it took to reach "succeeded".
    attempts: int = 0

    @property
    def row_count(self) -> int:
        return len(self.records)
