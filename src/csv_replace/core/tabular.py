"""Delimited-text parsing and serialization for the row engines.

Parsing is header-driven: the first non-empty record names the columns and
every following record becomes a ``dict`` keyed by those names. Header names
are trimmed and made unique (``name``, ``name_1``, ``name_2``...). Columns
whose header is blank are carried through untouched but are never searched.
"""

from __future__ import annotations

import csv
import io
import sys
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from .errors import ParseError

Row = dict[str, str]

_LINE_TERMINATOR = "\r\n"

# Cells are unbounded; the limit is a C long, 32-bit on some platforms.
csv.field_size_limit(min(sys.maxsize, 2**31 - 1))


@dataclass(slots=True)
class ParsedTable:
    columns: list[str]
    headers: list[str]
    rows: list[Row] = field(default_factory=list)

    @property
    def header_set(self) -> frozenset[str]:
        return frozenset(self.headers)


def decode_text(data: bytes) -> str:
    """Decode file bytes as UTF-8, dropping a leading byte-order mark."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(
            "CSV parsing errors: file is not valid UTF-8 text",
            details=[str(exc)],
        ) from exc


def parse_csv(data: bytes) -> ParsedTable:
    return parse_text(decode_text(data))


def parse_text(text: str) -> ParsedTable:
    """Parse ``text`` into a :class:`ParsedTable` or raise :class:`ParseError`.

    Empty lines are skipped. Every structural problem is collected and the
    whole file is rejected if any were found.
    """
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    errors: list[str] = []
    columns: list[str] | None = None
    headers: list[str] = []
    rows: list[Row] = []
    position = 0

    try:
        for record in reader:
            if _is_empty(record):
                continue
            if columns is None:
                columns, headers = _normalize_headers(record)
                continue
            position += 1
            if len(record) != len(columns):
                errors.append(
                    f"Row {position}: expected {len(columns)} fields "
                    f"but parsed {len(record)}"
                )
                continue
            rows.append(dict(zip(columns, record)))
    except csv.Error as exc:
        errors.append(f"Line {reader.line_num}: {exc}")

    if errors:
        raise ParseError(f"CSV parsing errors: {', '.join(errors)}", details=errors)

    return ParsedTable(columns=columns or [], headers=headers, rows=rows)


def parse_header(data: bytes) -> list[str]:
    """Return the searchable header names of ``data`` without reading its rows."""
    reader = csv.reader(io.StringIO(decode_text(data), newline=""), strict=True)
    try:
        for record in reader:
            if not _is_empty(record):
                return _normalize_headers(record)[1]
    except csv.Error as exc:
        raise ParseError(f"CSV parsing errors: Line {reader.line_num}: {exc}") from exc
    return []


def serialize(rows: Iterable[Mapping[str, str]], columns: Sequence[str]) -> str:
    """Render ``rows`` as CSV text with ``columns`` as the header line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator=_LINE_TERMINATOR)
    writer.writerow(columns)
    for row in rows:
        writer.writerow([row.get(column, "") for column in columns])
    return buffer.getvalue()


def _is_empty(record: Sequence[str]) -> bool:
    return not record or (len(record) == 1 and record[0] == "")


def _normalize_headers(record: Sequence[str]) -> tuple[list[str], list[str]]:
    columns: list[str] = []
    searchable: list[str] = []
    seen: set[str] = set()

    for raw in record:
        name = raw.strip()
        candidate = name
        suffix = 0
        while candidate in seen:
            suffix += 1
            candidate = f"{name}_{suffix}"
        seen.add(candidate)
        columns.append(candidate)
        if name:
            searchable.append(candidate)

    return columns, searchable


__all__ = [
    "ParsedTable",
    "Row",
    "decode_text",
    "parse_csv",
    "parse_header",
    "parse_text",
    "serialize",
]
