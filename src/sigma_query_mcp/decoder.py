# Sigma Query MCP Server
# File: decoder.py
# Version: v1

"""CSV decoding for Sigma result files.

The first row is the header; every following row becomes one mapping from
column name to cell text. No type inference is done: all cells stay strings.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import List, Union

from .errors import ProtocolError
from .models import RecordSet


@dataclass
class DecodedTable:
    columns: List[str]
    records: RecordSet = field(default_factory=list)


def _to_text(payload: Union[str, bytes]) -> str:
    if isinstance(payload, bytes):
        try:
            # utf-8-sig drops a leading BOM if the exporter wrote one.
            return payload.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ProtocolError(
                f"Result file is not UTF-8 encoded text: {exc}"
            ) from exc
    return payload.lstrip("\ufeff")


def decode_csv(payload: Union[str, bytes]) -> DecodedTable:
    """Parse a CSV payload into columns and records.

    - Empty or whitespace-only payloads yield no columns and no records.
    - Quoted fields may contain commas, doubled quotes and line breaks.
    - Every line after the header is a record. A blank line is a row of empty
      cells (a single-column NULL is written that way). Short rows are padded
      with "" and cells past the header are dropped, so every record has
      exactly the header's keys.
    - Duplicate header names collapse to one key (last value wins).
    """
    text = _to_text(payload)
    if not text.strip():
        return DecodedTable(columns=[], records=[])

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    try:
        rows = list(reader)
    except csv.Error as exc:
        raise ProtocolError(
            f"Malformed CSV in result file (line {reader.line_num}): {exc}"
        ) from exc

    # Blank lines ahead of the header carry no columns.
    while rows and not rows[0]:
        rows.pop(0)
    if not rows:
        return DecodedTable(columns=[], records=[])

    columns = rows[0]
    width = len(columns)

    records: RecordSet = []
    for row in rows[1:]:
        if len(row) < width:
            row = row + [""] * (width - len(row))
        records.append(dict(zip(columns, row)))

    return DecodedTable(columns=list(columns), records=records)


def decode_records(payload: Union[str, bytes]) -> RecordSet:
    """Shortcut returning only the records of decode_csv()."""
    return decode_csv(payload).records
